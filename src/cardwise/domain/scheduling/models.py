"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum

from cardwise.domain import constants


class Rating(IntEnum):
    """User rating for a single review, weakest to strongest recall."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4
    PERFECT = 5

    @property
    def is_lapse(self) -> bool:
        return self <= Rating.HARD


class MasteryLevel(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"


class StudyMode(str, Enum):
    DAILY = "daily"
    APPLICATION = "application"
    QUICK = "quick"
    ALL_DUE = "all-due"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class SchedulingParams:
    """
    Tunable constants for the review calculator.

    Defaults follow conventional SM-2 values.
    """

    starting_ease: float = constants.STARTING_EASE
    minimum_ease: float = constants.MINIMUM_EASE
    lapse_penalty: float = constants.LAPSE_PENALTY
    easy_bonus: float = constants.EASY_BONUS
    perfect_bonus: float = constants.PERFECT_BONUS
    first_interval: int = constants.FIRST_INTERVAL
    second_interval: int = constants.SECOND_INTERVAL
    lapse_interval: int = constants.LAPSE_INTERVAL


@dataclass(frozen=True)
class SchedulingState:
    """
    Spaced-repetition bookkeeping attached to a card.

    Attributes:
        interval_days: Days until the next due date after the last review.
        repetitions: Consecutive successful reviews since the last lapse.
        ease_factor: Multiplier controlling interval growth.
        lapses: Failed reviews ever.
        due_at: Next scheduled review time.
        last_reviewed_at: Time of the last review, None if never reviewed.
    """

    interval_days: int
    repetitions: int
    ease_factor: float
    lapses: int
    due_at: datetime
    last_reviewed_at: datetime | None = None


@dataclass(frozen=True)
class Card:
    """
    A question/answer unit as seen by the scheduler.

    Content is carried for display only; the scheduler never reads it.
    """

    id: str
    question: str = ""
    answer: str = ""
    profile_id: str | None = None
    application_id: str | None = None
    scheduling: SchedulingState | None = None
    practice_count: int = 0
    last_practiced_at: datetime | None = None


@dataclass(frozen=True)
class QueueFilter:
    """
    Candidate restrictions for queue building.

    Cards without an owning profile are shared and match every profile.
    """

    profile_id: str | None = None
    application_id: str | None = None

    def matches(self, card: Card) -> bool:
        if self.profile_id and card.profile_id and card.profile_id != self.profile_id:
            return False
        if self.application_id and card.application_id != self.application_id:
            return False
        return True


@dataclass(frozen=True)
class QueueCaps:
    max_review: int = constants.DEFAULT_MAX_REVIEW
    max_new: int = constants.DEFAULT_MAX_NEW


def empty_histogram() -> dict[Rating, int]:
    return {rating: 0 for rating in Rating}


def average_of(histogram: dict[Rating, int]) -> float:
    """Mean rating value of a histogram, 0.0 when empty."""
    total = sum(histogram.values())
    if total == 0:
        return 0.0
    weighted = sum(int(rating) * count for rating, count in histogram.items())
    return round(weighted / total, 2)


@dataclass
class StudySession:
    """
    One study session. Owned and mutated only by the SessionManager.
    """

    id: str
    profile_id: str
    mode: StudyMode
    queue: list[str]
    started_at: datetime
    current_index: int = 0
    cards_reviewed: int = 0
    ratings_histogram: dict[Rating, int] = field(default_factory=empty_histogram)
    status: SessionStatus = SessionStatus.ACTIVE
    ended_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def is_exhausted(self) -> bool:
        return self.current_index >= len(self.queue)

    @property
    def current_card_id(self) -> str | None:
        if self.is_exhausted:
            return None
        return self.queue[self.current_index]

    @property
    def cards_remaining(self) -> int:
        return len(self.queue) - self.current_index

    @property
    def average_rating(self) -> float:
        return average_of(self.ratings_histogram)


@dataclass(frozen=True)
class ProgressRecord:
    """
    Longitudinal study progress for one profile.

    Replaced wholesale on session completion, never on abandonment.
    """

    profile_id: str
    total_cards_studied: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: date | None = None
    total_reviews: int = 0
    sessions_completed: int = 0
    total_study_time_minutes: int = 0
    average_rating: float = 0.0


@dataclass(frozen=True)
class SessionHistoryEntry:
    """Immutable snapshot of a completed session."""

    session_id: str
    profile_id: str
    mode: StudyMode
    cards_reviewed: int
    ratings_histogram: dict[Rating, int]
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    average_rating: float = 0.0


@dataclass(frozen=True)
class SessionStats:
    total_sessions: int
    total_cards_studied: int
    average_rating: float
    current_streak: int
    longest_streak: int
