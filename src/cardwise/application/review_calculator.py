"""
Review calculator: SM-2 style scheduling updates.

Maps a card's scheduling state plus a rating to the next scheduling state.
This is a pure computation module with no I/O; the current time is always
passed in by the caller.
"""

import logging
from datetime import datetime, timedelta

from cardwise.application.utils.dates import round_half_up
from cardwise.domain.scheduling.models import Rating, SchedulingParams, SchedulingState

logger = logging.getLogger(__name__)


class ReviewCalculator:
    """
    Computes scheduling states from ratings.

    Stateless and side-effect free: every method returns a new SchedulingState
    and never touches its input.
    """

    def __init__(self, params: SchedulingParams | None = None):
        self.params = params or SchedulingParams()

    def initialize(self, now: datetime) -> SchedulingState:
        """
        Fresh state for a card on first contact, due immediately.
        """
        return SchedulingState(
            interval_days=0,
            repetitions=0,
            ease_factor=max(self.params.minimum_ease, self.params.starting_ease),
            lapses=0,
            due_at=now,
            last_reviewed_at=None,
        )

    def advance(
        self, state: SchedulingState | None, rating: Rating, now: datetime
    ) -> SchedulingState:
        """
        Apply a review outcome.

        Args:
            state: Current state, or None if the card was never initialized.
            rating: The user's rating for this review.
            now: Review time; the new due date is counted from here.

        Returns:
            The next SchedulingState.
        """
        if state is None:
            state = self.initialize(now)

        rating = Rating(rating)
        if rating.is_lapse:
            repetitions = 0
            interval = self.params.lapse_interval
            ease = state.ease_factor - self.params.lapse_penalty
            lapses = state.lapses + 1
        else:
            repetitions = state.repetitions + 1
            interval = self._success_interval(repetitions, state)
            ease = state.ease_factor + self._ease_bonus(rating)
            lapses = state.lapses

        ease = max(self.params.minimum_ease, round(ease, 4))
        logger.debug(
            f"advance rating={rating.name} reps={state.repetitions}->{repetitions} "
            f"interval={state.interval_days}->{interval} ease={state.ease_factor}->{ease}"
        )

        return SchedulingState(
            interval_days=interval,
            repetitions=repetitions,
            ease_factor=ease,
            lapses=lapses,
            due_at=now + timedelta(days=interval),
            last_reviewed_at=now,
        )

    def _success_interval(self, repetitions: int, state: SchedulingState) -> int:
        if repetitions == 1:
            return self.params.first_interval
        if repetitions == 2:
            return self.params.second_interval
        # Growth uses the ease in effect before this review's nudge.
        return max(1, round_half_up(state.interval_days * state.ease_factor))

    def _ease_bonus(self, rating: Rating) -> float:
        if rating is Rating.PERFECT:
            return self.params.perfect_bonus
        if rating is Rating.EASY:
            return self.params.easy_bonus
        return 0.0


_default = ReviewCalculator()


def initialize(now: datetime) -> SchedulingState:
    """Module-level shortcut using default parameters."""
    return _default.initialize(now)


def advance(state: SchedulingState | None, rating: Rating, now: datetime) -> SchedulingState:
    """Module-level shortcut using default parameters."""
    return _default.advance(state, rating, now)
