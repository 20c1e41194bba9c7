# Domain Scheduling Package
from .models import (
    Card,
    MasteryLevel,
    ProgressRecord,
    QueueCaps,
    QueueFilter,
    Rating,
    SchedulingParams,
    SchedulingState,
    SessionHistoryEntry,
    SessionStats,
    SessionStatus,
    StudyMode,
    StudySession,
)
from .ports import CardRepository, StudyLog

__all__ = [
    "Card",
    "CardRepository",
    "MasteryLevel",
    "ProgressRecord",
    "QueueCaps",
    "QueueFilter",
    "Rating",
    "SchedulingParams",
    "SchedulingState",
    "SessionHistoryEntry",
    "SessionStats",
    "SessionStatus",
    "StudyLog",
    "StudyMode",
    "StudySession",
]
