"""
In-memory storage adapters.

Used by the test-suite and by the API server's ``memory`` backend.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from cardwise.domain.scheduling.models import (
    Card,
    ProgressRecord,
    QueueFilter,
    SchedulingState,
    SessionHistoryEntry,
)
from cardwise.domain.scheduling.ports import CardRepository, StudyLog

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[str, Card] = {card.id: card for card in cards}

    def add(self, card: Card) -> None:
        self._cards[card.id] = card

    def list_cards(self, card_filter: QueueFilter | None = None) -> list[Card]:
        cards = self._cards.values()
        if card_filter is None:
            return list(cards)
        return [card for card in cards if card_filter.matches(card)]

    def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def update(
        self,
        card_id: str,
        state: SchedulingState,
        practice_count: int,
        last_practiced_at: datetime,
    ) -> None:
        card = self._cards.get(card_id)
        if card is None:
            raise KeyError(card_id)
        self._cards[card_id] = replace(
            card,
            scheduling=state,
            practice_count=practice_count,
            last_practiced_at=last_practiced_at,
        )


class InMemoryStudyLog(StudyLog):
    def __init__(self):
        self._progress: dict[str, ProgressRecord] = {}
        self._history: list[SessionHistoryEntry] = []

    def get_progress(self, profile_id: str) -> ProgressRecord | None:
        return self._progress.get(profile_id)

    def save_progress(self, record: ProgressRecord) -> None:
        self._progress[record.profile_id] = record

    def append_history(self, entry: SessionHistoryEntry) -> None:
        self._history.append(entry)

    def recent_history(self, profile_id: str, limit: int) -> list[SessionHistoryEntry]:
        entries = [e for e in self._history if e.profile_id == profile_id]
        return list(reversed(entries))[:limit]
