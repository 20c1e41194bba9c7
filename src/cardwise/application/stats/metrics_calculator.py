"""
Metrics calculator for deriving study insights from a set of cards.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from cardwise.application.mastery import classify, days_until_review, is_due, is_overdue
from cardwise.application.utils.dates import round_half_up
from cardwise.domain import constants
from cardwise.domain.scheduling.models import Card, MasteryLevel


@dataclass
class StudyStats:
    """
    Counts over a card set.

    The four mastery counts always sum to ``total``. ``due_today`` counts
    every card due now or earlier (never-reviewed cards included);
    ``overdue`` is its subset due before today.
    """

    total: int = 0
    new: int = 0
    learning: int = 0
    reviewing: int = 0
    mastered: int = 0
    due_today: int = 0
    overdue: int = 0

    def count(self, level: MasteryLevel) -> int:
        return getattr(self, level.value)


class MetricsCalculator:
    """
    Computes derived metrics from cards and their scheduling state.

    Stateless and side-effect free.
    """

    def __init__(self, mastery_interval_days: int = constants.MASTERY_INTERVAL_DAYS):
        self.mastery_interval_days = mastery_interval_days

    def study_stats(self, cards: Iterable[Card], now: datetime) -> StudyStats:
        stats = StudyStats()
        for card in cards:
            stats.total += 1
            level = classify(card.scheduling, self.mastery_interval_days)
            setattr(stats, level.value, stats.count(level) + 1)

            if is_due(card.scheduling, now):
                stats.due_today += 1
                if is_overdue(card.scheduling, now):
                    stats.overdue += 1
        return stats

    def readiness_score(self, cards: Iterable[Card], now: datetime) -> int:
        """
        Preparedness 0-100, averaged over cards.

        Each card scores by mastery level; due reviewed cards lose points per
        overdue day, down to a floor.
        """
        scores = [self._card_score(card, now) for card in cards]
        if not scores:
            return 0
        return round_half_up(sum(scores) / len(scores))

    def _card_score(self, card: Card, now: datetime) -> int:
        level = classify(card.scheduling, self.mastery_interval_days)
        score = constants.READINESS_WEIGHTS[level.value]

        if level is not MasteryLevel.NEW and is_due(card.scheduling, now):
            days_overdue = abs(days_until_review(card.scheduling, now))
            score = max(
                score - days_overdue * constants.READINESS_OVERDUE_PENALTY,
                constants.READINESS_FLOOR,
            )
        return score
