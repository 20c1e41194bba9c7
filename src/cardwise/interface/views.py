"""
Study screen states as a tagged variant.

Dashboard -> Setup -> Studying -> Complete -> Dashboard, mirroring the
session lifecycle Idle -> Active -> Completed/Abandoned -> Idle.
"""

from dataclasses import dataclass, field

from cardwise.domain.scheduling.models import (
    Card,
    ProgressRecord,
    SessionHistoryEntry,
    SessionStatus,
    StudyMode,
    StudySession,
)


@dataclass(frozen=True)
class Dashboard:
    progress: ProgressRecord
    recent: list[SessionHistoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class Setup:
    modes: tuple[StudyMode, ...] = tuple(StudyMode)


@dataclass(frozen=True)
class Studying:
    session: StudySession
    card: Card | None

    @property
    def position(self) -> str:
        return f"{self.session.current_index + 1}/{len(self.session.queue)}"


@dataclass(frozen=True)
class Complete:
    entry: SessionHistoryEntry


StudyView = Dashboard | Setup | Studying | Complete


def view_after(
    session: StudySession,
    progress: ProgressRecord,
    card: Card | None = None,
    entry: SessionHistoryEntry | None = None,
) -> StudyView:
    """
    The screen to show for a session in its current status.

    Abandoned sessions return to the dashboard; so do completed sessions
    whose history entry is not at hand.
    """
    if session.status is SessionStatus.ACTIVE:
        return Studying(session=session, card=card)
    if session.status is SessionStatus.COMPLETED and entry is not None:
        return Complete(entry=entry)
    return Dashboard(progress=progress)
