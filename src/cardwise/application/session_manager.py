"""
Session Manager: application layer orchestrator for study sessions.

Owns the lifecycle of study sessions (Idle -> Active -> Completed/Abandoned),
applies the review calculator on every answer, writes card state back through
the CardRepository port, and on completion updates progress and history
through the StudyLog port.

The in-memory session is the source of truth while it is active. Storage
writes are side effects: a failed write is logged and scheduling continues.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from cardwise.application.id_service import generate_session_id
from cardwise.application.queue_builder import build_queue
from cardwise.application.review_calculator import ReviewCalculator
from cardwise.application.utils.dates import round_half_up
from cardwise.domain import constants
from cardwise.domain.errors import (
    NoCardsAvailable,
    OutOfOrderReview,
    QueueNotExhausted,
    SessionAlreadyActive,
    SessionNotActive,
    SessionNotFound,
)
from cardwise.domain.scheduling.models import (
    ProgressRecord,
    QueueCaps,
    QueueFilter,
    Rating,
    SchedulingState,
    SessionHistoryEntry,
    SessionStats,
    SessionStatus,
    StudyMode,
    StudySession,
    average_of,
)
from cardwise.domain.scheduling.ports import CardRepository, StudyLog

logger = logging.getLogger(__name__)


def next_progress(
    record: ProgressRecord, session: StudySession, now: datetime
) -> ProgressRecord:
    """
    Progress after completing ``session`` at ``now``.

    The streak grows by one when the previous study day was yesterday, holds
    when it was today, and restarts at 1 after any gap.
    """
    today = now.date()
    last = record.last_study_date

    if last == today - timedelta(days=1):
        current_streak = record.current_streak + 1
    elif last == today:
        current_streak = record.current_streak
    else:
        current_streak = 1

    reviewed = session.cards_reviewed
    total_reviews = record.total_reviews + reviewed
    weighted = record.average_rating * record.total_reviews + session.average_rating * reviewed
    duration = max(0.0, (now - session.started_at).total_seconds())

    return replace(
        record,
        total_cards_studied=record.total_cards_studied + reviewed,
        current_streak=current_streak,
        longest_streak=max(record.longest_streak, current_streak),
        last_study_date=today,
        total_reviews=total_reviews,
        sessions_completed=record.sessions_completed + 1,
        total_study_time_minutes=record.total_study_time_minutes + round_half_up(duration / 60),
        average_rating=round(weighted / (total_reviews or 1), 2),
    )


class SessionManager:
    """
    Drives study sessions for any number of profiles, one active each.

    Depends on the CardRepository and StudyLog abstractions, not concrete
    adapter implementations.
    """

    def __init__(
        self,
        card_repo: CardRepository,
        study_log: StudyLog,
        calculator: ReviewCalculator | None = None,
    ):
        """
        Args:
            card_repo: The repository (port) cards are read from and written to.
            study_log: The port progress and history are written to.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._cards = card_repo
        self._log = study_log
        self._calc = calculator or ReviewCalculator()
        self._active: dict[str, StudySession] = {}
        self._sessions: dict[str, StudySession] = {}
        self._progress: dict[str, ProgressRecord] = {}
        # Card states written during active sessions, keyed by card id
        self._written: dict[str, tuple[SchedulingState, int]] = {}

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def build_queue(
        self, card_filter: QueueFilter | None, caps: QueueCaps, now: datetime
    ) -> list[str]:
        """Build a queue from the cards currently in the repository."""
        return build_queue(self._cards.list_cards(card_filter), card_filter, caps, now)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(
        self,
        queue: list[str],
        mode: StudyMode,
        now: datetime,
        profile_id: str = constants.DEFAULT_PROFILE_ID,
    ) -> StudySession:
        """
        Start a session over ``queue``.

        Raises:
            NoCardsAvailable: The queue is empty.
            SessionAlreadyActive: The profile already has an active session.
        """
        if not queue:
            raise NoCardsAvailable()

        existing = self._active.get(profile_id)
        if existing is not None:
            raise SessionAlreadyActive(existing)

        session = StudySession(
            id=generate_session_id(),
            profile_id=profile_id,
            mode=StudyMode(mode),
            queue=list(queue),
            started_at=now,
        )
        self._active[profile_id] = session
        self._sessions[session.id] = session
        logger.info(
            f"Started {session.mode.value} session {session.id} "
            f"for '{profile_id}' with {len(queue)} cards"
        )
        return session

    def record_review(
        self, session: StudySession, card_id: str, rating: Rating, now: datetime
    ) -> SchedulingState:
        """
        Apply a rating to the session's current card.

        Returns:
            The card's new SchedulingState.

        Raises:
            SessionNotActive: The session is not the profile's active session.
            OutOfOrderReview: ``card_id`` is not the session's current card.
        """
        self._require_active(session)
        expected = session.current_card_id
        if card_id != expected:
            raise OutOfOrderReview(
                f"Expected card {expected!r} at position {session.current_index}, got {card_id!r}."
            )
        rating = Rating(rating)

        state, practice_count = self._current_state(card_id)
        new_state = self._calc.advance(state, rating, now)
        practice_count += 1
        self._written[card_id] = (new_state, practice_count)

        try:
            self._cards.update(card_id, new_state, practice_count, now)
        except Exception as e:
            logger.warning(f"Failed to persist review of card {card_id}: {e}")

        session.cards_reviewed += 1
        session.ratings_histogram[rating] = session.ratings_histogram.get(rating, 0) + 1
        session.current_index += 1

        logger.debug(
            f"Session {session.id}: {card_id} rated {rating.name}, "
            f"next due in {new_state.interval_days}d"
        )
        return new_state

    def end_session(self, session: StudySession, now: datetime) -> SessionHistoryEntry:
        """
        Complete an exhausted session, recording history and progress.

        Raises:
            SessionNotActive: The session is not active.
            QueueNotExhausted: Cards remain in the queue.
        """
        self._require_active(session)
        if not session.is_exhausted:
            raise QueueNotExhausted(
                f"Session {session.id} still has {session.cards_remaining} cards to review."
            )

        entry = SessionHistoryEntry(
            session_id=session.id,
            profile_id=session.profile_id,
            mode=session.mode,
            cards_reviewed=session.cards_reviewed,
            ratings_histogram=dict(session.ratings_histogram),
            started_at=session.started_at,
            ended_at=now,
            duration_seconds=max(0, int((now - session.started_at).total_seconds())),
            average_rating=average_of(session.ratings_histogram),
        )
        progress = next_progress(self.get_progress(session.profile_id), session, now)

        session.status = SessionStatus.COMPLETED
        session.ended_at = now
        self._release(session)
        self._progress[session.profile_id] = progress

        try:
            self._log.append_history(entry)
            self._log.save_progress(progress)
        except Exception as e:
            logger.warning(f"Failed to persist completion of session {session.id}: {e}")

        logger.info(
            f"Completed session {session.id}: {entry.cards_reviewed} cards, "
            f"streak {progress.current_streak}"
        )
        return entry

    def abandon_session(self, session: StudySession, now: datetime | None = None) -> None:
        """
        Abandon an active session at any point.

        Card states already written are kept; no history or progress is recorded.
        """
        self._require_active(session)
        session.status = SessionStatus.ABANDONED
        session.ended_at = now
        self._release(session)
        logger.info(
            f"Abandoned session {session.id} after {session.cards_reviewed}/"
            f"{len(session.queue)} cards"
        )

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def active_session(self, profile_id: str = constants.DEFAULT_PROFILE_ID) -> StudySession | None:
        return self._active.get(profile_id)

    def get_session(self, session_id: str) -> StudySession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Unknown session {session_id!r}") from None

    def get_progress(self, profile_id: str = constants.DEFAULT_PROFILE_ID) -> ProgressRecord:
        if profile_id in self._progress:
            return self._progress[profile_id]
        record = self._log.get_progress(profile_id)
        return record if record is not None else ProgressRecord(profile_id=profile_id)

    def recent_sessions(
        self,
        profile_id: str = constants.DEFAULT_PROFILE_ID,
        limit: int = constants.DEFAULT_HISTORY_LIMIT,
    ) -> list[SessionHistoryEntry]:
        return self._log.recent_history(profile_id, limit)

    def session_stats(self, profile_id: str = constants.DEFAULT_PROFILE_ID) -> SessionStats:
        progress = self.get_progress(profile_id)
        return SessionStats(
            total_sessions=progress.sessions_completed,
            total_cards_studied=progress.total_cards_studied,
            average_rating=progress.average_rating,
            current_streak=progress.current_streak,
            longest_streak=progress.longest_streak,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_active(self, session: StudySession) -> None:
        if not session.is_active or self._active.get(session.profile_id) is not session:
            raise SessionNotActive(
                f"Session {session.id} is {session.status.value}, not the active session."
            )

    def _release(self, session: StudySession) -> None:
        self._active.pop(session.profile_id, None)
        for card_id in session.queue:
            self._written.pop(card_id, None)

    def _current_state(self, card_id: str) -> tuple[SchedulingState | None, int]:
        if card_id in self._written:
            return self._written[card_id]
        card = self._cards.get(card_id)
        if card is None:
            logger.warning(f"Card {card_id} not found in repository; scheduling from scratch")
            return None, 0
        return card.scheduling, card.practice_count
