"""
Ports (interfaces) for card and study-log storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, ProgressRecord, QueueFilter, SchedulingState, SessionHistoryEntry


class CardRepository(ABC):
    """
    Port for reading cards and writing back their scheduling state.

    Implementations:
        - InMemoryCardRepository: Dict-backed, used by tests and the API server.
        - YamlCardRepository: Reads and rewrites a YAML deck file.

    Writes need not be durable immediately; callers never read their own
    writes back during a session.
    """

    @abstractmethod
    def list_cards(self, card_filter: QueueFilter | None = None) -> list[Card]:
        """
        List cards matching the filter, in discovery order.

        Args:
            card_filter: Optional restriction by profile/application.

        Returns:
            Cards with their SchedulingState if they have one.
        """
        pass

    @abstractmethod
    def get(self, card_id: str) -> Card | None:
        pass

    @abstractmethod
    def update(
        self,
        card_id: str,
        state: SchedulingState,
        practice_count: int,
        last_practiced_at: datetime,
    ) -> None:
        """
        Persist a card's new scheduling state and practice counters.
        """
        pass


class StudyLog(ABC):
    """
    Port for progress records and the append-only session history.
    """

    @abstractmethod
    def get_progress(self, profile_id: str) -> ProgressRecord | None:
        pass

    @abstractmethod
    def save_progress(self, record: ProgressRecord) -> None:
        pass

    @abstractmethod
    def append_history(self, entry: SessionHistoryEntry) -> None:
        pass

    @abstractmethod
    def recent_history(self, profile_id: str, limit: int) -> list[SessionHistoryEntry]:
        """
        Return the most recent entries for a profile, newest first.
        """
        pass
