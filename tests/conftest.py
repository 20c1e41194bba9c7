from datetime import datetime, timedelta, timezone

import pytest

from cardwise.application.session_manager import SessionManager
from cardwise.domain.scheduling.models import Card, SchedulingState
from cardwise.infrastructure.adapters.memory import InMemoryCardRepository, InMemoryStudyLog

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def reviewed_state(
    due_at: datetime,
    interval_days: int = 6,
    repetitions: int = 2,
    ease_factor: float = 2.5,
    lapses: int = 0,
) -> SchedulingState:
    """A state whose last review sits ``interval_days`` before ``due_at``."""
    return SchedulingState(
        interval_days=interval_days,
        repetitions=repetitions,
        ease_factor=ease_factor,
        lapses=lapses,
        due_at=due_at,
        last_reviewed_at=due_at - timedelta(days=interval_days),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repo():
    return InMemoryCardRepository(
        [
            Card(id="a", question="Q a", answer="A a", profile_id="default"),
            Card(id="b", question="Q b", answer="A b", profile_id="default"),
            Card(id="c", question="Q c", answer="A c"),
        ]
    )


@pytest.fixture
def study_log():
    return InMemoryStudyLog()


@pytest.fixture
def manager(repo, study_log):
    return SessionManager(repo, study_log)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("CARDWISE_DATA_DIR", str(home / ".config/cardwise"))
    return home


@pytest.fixture
def make_state():
    return reviewed_state
