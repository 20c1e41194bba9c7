"""
Study Stats Service: application layer orchestrator.

Coordinates fetching cards from the repository and computing metrics over them.
"""

import logging
from datetime import datetime

from cardwise.domain.scheduling.models import QueueFilter
from cardwise.domain.scheduling.ports import CardRepository

from .metrics_calculator import MetricsCalculator, StudyStats

logger = logging.getLogger(__name__)


class StudyStatsService:
    """
    Application service for dashboard statistics.

    Follows Dependency Inversion: depends on CardRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        card_repo: CardRepository,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            card_repo: The repository (port) for listing cards.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._repo = card_repo
        self._calc = calculator or MetricsCalculator()

    def get_study_stats(self, card_filter: QueueFilter | None, now: datetime) -> StudyStats:
        cards = self._repo.list_cards(card_filter)
        stats = self._calc.study_stats(cards, now)
        logger.debug(f"Study stats over {stats.total} cards: {stats}")
        return stats

    def get_readiness_score(self, card_filter: QueueFilter | None, now: datetime) -> int:
        """
        Readiness 0-100 for the filtered cards, e.g. one job application.
        """
        return self._calc.readiness_score(self._repo.list_cards(card_filter), now)
