"""
Queue builder for study sessions.

Builds ordered study queues by:
1. Filtering candidates by profile/application
2. Partitioning them into overdue, due-today and new cards
3. Ordering each partition and applying the review/new caps
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from cardwise.application.utils.dates import start_of_day, start_of_tomorrow
from cardwise.domain import constants
from cardwise.domain.scheduling.models import Card, QueueCaps, QueueFilter, StudyMode

logger = logging.getLogger(__name__)


@dataclass
class QueueBuildResult:
    """Result of queue building operation."""

    overdue: list[str]  # Most overdue first
    due: list[str]  # Due later today, earliest first
    new: list[str]  # Discovery order
    dropped_review: list[str] = field(default_factory=list)  # Cut by max_review
    dropped_new: list[str] = field(default_factory=list)  # Cut by max_new
    excluded: list[str] = field(default_factory=list)  # Not due and not new

    @property
    def ordered(self) -> list[str]:
        return self.overdue + self.due + self.new


def caps_for_mode(mode: StudyMode) -> QueueCaps:
    """Default caps per study mode; quick sessions are short."""
    if mode is StudyMode.QUICK:
        return QueueCaps(max_review=constants.QUICK_MAX_REVIEW, max_new=constants.QUICK_MAX_NEW)
    return QueueCaps(max_review=constants.DEFAULT_MAX_REVIEW, max_new=constants.DEFAULT_MAX_NEW)


def build_queue(
    cards: Iterable[Card],
    card_filter: QueueFilter | None,
    caps: QueueCaps,
    now: datetime,
) -> list[str]:
    """
    Select and order the card ids for one study session.

    Returns an empty list (never raises) when nothing qualifies.
    """
    return build_queue_detailed(cards, card_filter, caps, now).ordered


def build_queue_detailed(
    cards: Iterable[Card],
    card_filter: QueueFilter | None,
    caps: QueueCaps,
    now: datetime,
) -> QueueBuildResult:
    """
    Build a study queue and keep the diagnostics of what was cut.

    Args:
        cards: Candidate cards, in discovery order
        card_filter: Optional profile/application restriction
        caps: Maximum review (overdue + due) and new cards
        now: Current time; "today" is now's calendar day

    Returns:
        QueueBuildResult with ordered partitions and diagnostics
    """
    today = start_of_day(now)
    tomorrow = start_of_tomorrow(now)

    overdue: list[Card] = []
    due: list[Card] = []
    new: list[Card] = []
    excluded: list[str] = []

    for card in cards:
        if card_filter is not None and not card_filter.matches(card):
            continue

        state = card.scheduling
        if state is None or state.last_reviewed_at is None:
            new.append(card)
        elif state.due_at < today:
            overdue.append(card)
        elif state.due_at < tomorrow:
            due.append(card)
        elif state.repetitions == 0:
            # Lapsed and waiting to be relearned
            new.append(card)
        else:
            excluded.append(card.id)

    # sorted() is stable, so ties keep discovery order
    overdue = sorted(overdue, key=lambda c: c.scheduling.due_at)
    due = sorted(due, key=lambda c: c.scheduling.due_at)

    review_ids = [c.id for c in overdue + due]
    kept_review = review_ids[: max(0, caps.max_review)]
    new_ids = [c.id for c in new]
    kept_new = new_ids[: max(0, caps.max_new)]

    overdue_count = min(len(overdue), len(kept_review))
    result = QueueBuildResult(
        overdue=kept_review[:overdue_count],
        due=kept_review[overdue_count:],
        new=kept_new,
        dropped_review=review_ids[len(kept_review) :],
        dropped_new=new_ids[len(kept_new) :],
        excluded=excluded,
    )

    logger.debug(
        f"Queue built: overdue={len(result.overdue)} due={len(result.due)} "
        f"new={len(result.new)} dropped={len(result.dropped_review) + len(result.dropped_new)} "
        f"excluded={len(excluded)}"
    )
    return result
