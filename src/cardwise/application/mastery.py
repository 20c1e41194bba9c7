"""
Mastery classifier and due-date predicates.

classify() is a pure function of the scheduling state and never looks at the
clock. The due-date helpers take ``now`` explicitly.
"""

from datetime import datetime

from cardwise.application.utils.dates import (
    ceil_days,
    round_half_up,
    start_of_day,
    start_of_tomorrow,
)
from cardwise.domain import constants
from cardwise.domain.scheduling.models import MasteryLevel, SchedulingState


def classify(
    state: SchedulingState | None,
    mastery_interval_days: int = constants.MASTERY_INTERVAL_DAYS,
) -> MasteryLevel:
    """
    Coarse mastery label for a card.

    NEW: never succeeded nor failed. LEARNING: one or two successes in a row.
    MASTERED: three or more successes with a long interval. REVIEWING covers
    everything else, including lapsed cards still awaiting relearning.
    """
    if state is None:
        return MasteryLevel.NEW
    if state.repetitions == 0 and state.lapses == 0:
        return MasteryLevel.NEW
    if state.repetitions in (1, 2):
        return MasteryLevel.LEARNING
    if (
        state.repetitions >= constants.MASTERY_MIN_REPETITIONS
        and state.interval_days >= mastery_interval_days
    ):
        return MasteryLevel.MASTERED
    return MasteryLevel.REVIEWING


def is_overdue(state: SchedulingState | None, now: datetime) -> bool:
    """Due strictly before the start of today."""
    if state is None:
        return False
    return state.due_at < start_of_day(now)


def is_due_today(state: SchedulingState | None, now: datetime) -> bool:
    """Due at some point within today's calendar day."""
    if state is None:
        return False
    return start_of_day(now) <= state.due_at < start_of_tomorrow(now)


def is_due(state: SchedulingState | None, now: datetime) -> bool:
    """
    Due right now or earlier. Cards without a state are always due.
    """
    if state is None:
        return True
    return state.due_at <= now


def days_until_review(state: SchedulingState | None, now: datetime) -> int:
    """
    Whole days until the card is due, rounded up; negative when overdue.
    """
    if state is None:
        return 0
    return ceil_days(state.due_at - now)


def format_interval(days: int) -> str:
    """Human-readable interval, e.g. "6 days" or "3 weeks"."""
    if days <= 0:
        return "Now"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        weeks = round_half_up(days / 7)
        return "1 week" if weeks == 1 else f"{weeks} weeks"
    if days < 365:
        months = round_half_up(days / 30)
        return "1 month" if months == 1 else f"{months} months"
    years = round_half_up(days / 365)
    return "1 year" if years == 1 else f"{years} years"
