"""
YAML Store: infrastructure adapters backed by YAML files.

The deck file holds a ``cards:`` list; each card may carry a ``scheduling:``
block written back after every review. The study log file holds ``progress:``
keyed by profile and an append-only ``history:`` list.

Example deck::

    cards:
      - id: k8s-pods
        question: What is a Pod?
        answer: The smallest deployable unit in Kubernetes.
        profile_id: default
        application_id: acme-sre
"""

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from cardwise.domain.errors import StorageError
from cardwise.domain.scheduling.models import (
    Card,
    ProgressRecord,
    QueueFilter,
    Rating,
    SchedulingState,
    SessionHistoryEntry,
    StudyMode,
)
from cardwise.domain.scheduling.ports import CardRepository, StudyLog
from cardwise.infrastructure.utils.yaml_io import dump_yaml_file, load_yaml_file

logger = logging.getLogger(__name__)


# ---------- Value conversion ----------


def _parse_datetime(value: Any) -> datetime | None:
    """
    Timezone-aware datetime from a stored value.

    Naive timestamps and bare dates (as hand-edited decks often have) are
    read as local time.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as e:
            raise StorageError(f"Invalid timestamp {value!r}") from e

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def _parse_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise StorageError(f"Invalid date {value!r}") from e


def _format(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def state_to_dict(state: SchedulingState) -> dict[str, Any]:
    return {
        "interval_days": state.interval_days,
        "repetitions": state.repetitions,
        "ease_factor": state.ease_factor,
        "lapses": state.lapses,
        "due_at": _format(state.due_at),
        "last_reviewed_at": _format(state.last_reviewed_at),
    }


def state_from_dict(data: dict[str, Any]) -> SchedulingState:
    try:
        return SchedulingState(
            interval_days=int(data["interval_days"]),
            repetitions=int(data["repetitions"]),
            ease_factor=float(data["ease_factor"]),
            lapses=int(data.get("lapses", 0)),
            due_at=_parse_datetime(data["due_at"]),
            last_reviewed_at=_parse_datetime(data.get("last_reviewed_at")),
        )
    except KeyError as e:
        raise StorageError(f"Scheduling block is missing field {e}") from e


def card_from_dict(data: dict[str, Any]) -> Card:
    if "id" not in data:
        raise StorageError(f"Card without an id: {data.get('question', data)!r}")
    scheduling = data.get("scheduling")
    return Card(
        id=str(data["id"]),
        question=data.get("question", ""),
        answer=data.get("answer", ""),
        profile_id=data.get("profile_id"),
        application_id=data.get("application_id"),
        scheduling=state_from_dict(scheduling) if scheduling else None,
        practice_count=int(data.get("practice_count", 0)),
        last_practiced_at=_parse_datetime(data.get("last_practiced_at")),
    )


def progress_to_dict(record: ProgressRecord) -> dict[str, Any]:
    return {
        "total_cards_studied": record.total_cards_studied,
        "current_streak": record.current_streak,
        "longest_streak": record.longest_streak,
        "last_study_date": _format(record.last_study_date),
        "total_reviews": record.total_reviews,
        "sessions_completed": record.sessions_completed,
        "total_study_time_minutes": record.total_study_time_minutes,
        "average_rating": record.average_rating,
    }


def progress_from_dict(profile_id: str, data: dict[str, Any]) -> ProgressRecord:
    return ProgressRecord(
        profile_id=profile_id,
        total_cards_studied=int(data.get("total_cards_studied", 0)),
        current_streak=int(data.get("current_streak", 0)),
        longest_streak=int(data.get("longest_streak", 0)),
        last_study_date=_parse_date(data.get("last_study_date")),
        total_reviews=int(data.get("total_reviews", 0)),
        sessions_completed=int(data.get("sessions_completed", 0)),
        total_study_time_minutes=int(data.get("total_study_time_minutes", 0)),
        average_rating=float(data.get("average_rating", 0.0)),
    )


def entry_to_dict(entry: SessionHistoryEntry) -> dict[str, Any]:
    return {
        "session_id": entry.session_id,
        "profile_id": entry.profile_id,
        "mode": entry.mode.value,
        "cards_reviewed": entry.cards_reviewed,
        "ratings": {r.name.lower(): n for r, n in entry.ratings_histogram.items()},
        "started_at": _format(entry.started_at),
        "ended_at": _format(entry.ended_at),
        "duration_seconds": entry.duration_seconds,
        "average_rating": entry.average_rating,
    }


def entry_from_dict(data: dict[str, Any]) -> SessionHistoryEntry:
    return SessionHistoryEntry(
        session_id=data["session_id"],
        profile_id=data["profile_id"],
        mode=StudyMode(data["mode"]),
        cards_reviewed=int(data["cards_reviewed"]),
        ratings_histogram={
            Rating[name.upper()]: int(n) for name, n in (data.get("ratings") or {}).items()
        },
        started_at=_parse_datetime(data["started_at"]),
        ended_at=_parse_datetime(data["ended_at"]),
        duration_seconds=int(data.get("duration_seconds", 0)),
        average_rating=float(data.get("average_rating", 0.0)),
    )


# ---------- Adapters ----------


class YamlCardRepository(CardRepository):
    """
    Card repository over a single YAML deck file.

    The file is re-read on every call so external edits are picked up; each
    update rewrites it, preserving every key this adapter does not own.
    """

    def __init__(self, deck_file: Path):
        self.deck_file = deck_file

    def _raw_cards(self) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        data = load_yaml_file(self.deck_file)
        cards = data.get("cards") or []
        if not isinstance(cards, list):
            raise StorageError(f"{self.deck_file}: 'cards' must be a list")
        return data, [c for c in cards if isinstance(c, dict)]

    def list_cards(self, card_filter: QueueFilter | None = None) -> list[Card]:
        _, raw = self._raw_cards()
        cards = [card_from_dict(c) for c in raw]
        if card_filter is None:
            return cards
        return [card for card in cards if card_filter.matches(card)]

    def get(self, card_id: str) -> Card | None:
        _, raw = self._raw_cards()
        for c in raw:
            if str(c.get("id")) == card_id:
                return card_from_dict(c)
        return None

    def update(
        self,
        card_id: str,
        state: SchedulingState,
        practice_count: int,
        last_practiced_at: datetime,
    ) -> None:
        data, raw = self._raw_cards()
        for c in raw:
            if str(c.get("id")) == card_id:
                c["scheduling"] = state_to_dict(state)
                c["practice_count"] = practice_count
                c["last_practiced_at"] = _format(last_practiced_at)
                break
        else:
            raise StorageError(f"Card {card_id!r} not found in {self.deck_file}")

        dump_yaml_file(self.deck_file, data)
        logger.debug(f"Wrote scheduling for {card_id} to {self.deck_file.name}")


class YamlStudyLog(StudyLog):
    def __init__(self, log_file: Path):
        self.log_file = log_file

    def _load(self) -> dict[str, Any]:
        data = load_yaml_file(self.log_file)
        data.setdefault("progress", {})
        data.setdefault("history", [])
        return data

    def get_progress(self, profile_id: str) -> ProgressRecord | None:
        raw = self._load()["progress"].get(profile_id)
        if raw is None:
            return None
        return progress_from_dict(profile_id, raw)

    def save_progress(self, record: ProgressRecord) -> None:
        data = self._load()
        data["progress"][record.profile_id] = progress_to_dict(record)
        dump_yaml_file(self.log_file, data)

    def append_history(self, entry: SessionHistoryEntry) -> None:
        data = self._load()
        data["history"].append(entry_to_dict(entry))
        dump_yaml_file(self.log_file, data)
        logger.info(f"Recorded session {entry.session_id} in {self.log_file.name}")

    def recent_history(self, profile_id: str, limit: int) -> list[SessionHistoryEntry]:
        entries = [
            entry_from_dict(e) for e in self._load()["history"] if e.get("profile_id") == profile_id
        ]
        return list(reversed(entries))[:limit]
