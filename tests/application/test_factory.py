import yaml

from cardwise.application.config import resolve_config
from cardwise.application.factory import (
    get_card_repository,
    get_session_manager,
    get_study_log,
)
from cardwise.domain.scheduling.models import QueueCaps, Rating, StudyMode
from cardwise.infrastructure.adapters.memory import InMemoryCardRepository, InMemoryStudyLog
from cardwise.infrastructure.adapters.yaml_store import YamlCardRepository, YamlStudyLog


def _write_deck(path):
    path.write_text(yaml.safe_dump({"cards": [{"id": "a"}, {"id": "b"}]}))


def test_yaml_backend(mock_home, tmp_path):
    config = resolve_config({"deck_file": tmp_path / "cards.yaml"})
    assert isinstance(get_card_repository(config), YamlCardRepository)
    assert isinstance(get_study_log(config), YamlStudyLog)


def test_memory_backend_is_seeded_from_deck(mock_home, tmp_path, now):
    deck = tmp_path / "cards.yaml"
    _write_deck(deck)
    config = resolve_config({"backend": "memory", "deck_file": deck})

    repo = get_card_repository(config)
    manager = get_session_manager(config, card_repo=repo)

    assert isinstance(repo, InMemoryCardRepository)
    assert isinstance(get_study_log(config), InMemoryStudyLog)
    queue = manager.build_queue(None, QueueCaps(), now)
    assert queue == ["a", "b"]

    session = manager.start_session(queue, StudyMode.DAILY, now)
    manager.record_review(session, "a", Rating.GOOD, now)

    assert repo.get("a").scheduling is not None
    # The deck file is never written
    assert "scheduling" not in yaml.safe_load(deck.read_text())["cards"][0]


def test_memory_backend_without_deck_file(mock_home, tmp_path):
    config = resolve_config({"backend": "memory", "deck_file": tmp_path / "missing.yaml"})
    assert get_card_repository(config).list_cards() == []
