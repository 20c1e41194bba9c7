"""
Storage Factory
Centralizes the logic for selecting storage adapters and wiring services.
"""

import logging

from cardwise.application.config import AppConfig
from cardwise.application.review_calculator import ReviewCalculator
from cardwise.application.session_manager import SessionManager
from cardwise.application.stats import MetricsCalculator, StudyStatsService
from cardwise.domain.scheduling.ports import CardRepository, StudyLog
from cardwise.infrastructure.adapters.memory import InMemoryCardRepository, InMemoryStudyLog
from cardwise.infrastructure.adapters.yaml_store import YamlCardRepository, YamlStudyLog

logger = logging.getLogger(__name__)


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation selected by config.
    """
    if config.backend == "memory":
        # Seeded from the deck file; reviews stay in memory only
        cards = YamlCardRepository(config.deck_file).list_cards() if config.deck_file else []
        logger.debug(f"Backend: memory, {len(cards)} cards seeded from {config.deck_file}")
        return InMemoryCardRepository(cards)

    logger.debug(f"Backend: YAML deck at {config.deck_file}")
    return YamlCardRepository(config.deck_file)


def get_study_log(config: AppConfig) -> StudyLog:
    if config.backend == "memory":
        return InMemoryStudyLog()
    return YamlStudyLog(config.log_file)


def get_session_manager(
    config: AppConfig,
    card_repo: CardRepository | None = None,
    study_log: StudyLog | None = None,
) -> SessionManager:
    return SessionManager(
        card_repo or get_card_repository(config),
        study_log or get_study_log(config),
        calculator=ReviewCalculator(config.scheduling_params()),
    )


def get_stats_service(
    config: AppConfig, card_repo: CardRepository | None = None
) -> StudyStatsService:
    return StudyStatsService(
        card_repo or get_card_repository(config),
        calculator=MetricsCalculator(config.mastery_interval_days),
    )
