from pathlib import Path

import pytest
from pydantic import ValidationError

from cardwise.application.config import AppConfig, resolve_config
from cardwise.domain.scheduling.models import QueueCaps, SchedulingParams, StudyMode


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "yaml"
    assert config.profile_id == "default"
    assert config.deck_file == config.data_dir / "cards.yaml"
    assert config.log_file == config.data_dir / "study_log.yaml"
    assert config.scheduling_params() == SchedulingParams()


def test_cli_overrides_win(mock_home, tmp_path, monkeypatch):
    monkeypatch.setenv("CARDWISE_PROFILE_ID", "from-env")
    deck = tmp_path / "deck.yaml"

    config = resolve_config({"profile_id": "from-cli", "deck_file": deck, "backend": None})

    assert config.profile_id == "from-cli"
    assert config.deck_file == deck.resolve()
    assert config.backend == "yaml"


def test_env_vars(mock_home, monkeypatch):
    monkeypatch.setenv("CARDWISE_PROFILE_ID", "alice")
    monkeypatch.setenv("CARDWISE_QUICK_MAX_NEW", "5")
    monkeypatch.setenv("CARDWISE_BACKEND", "memory")

    config = resolve_config()

    assert config.profile_id == "alice"
    assert config.backend == "memory"
    assert config.caps_for(StudyMode.QUICK) == QueueCaps(max_review=10, max_new=5)


def test_data_dir_moves_default_files(mock_home, tmp_path):
    config = resolve_config({"data_dir": tmp_path / "data"})
    assert config.deck_file == (tmp_path / "data" / "cards.yaml").resolve()


def test_paths_are_expanded(mock_home):
    config = AppConfig(data_dir="~/cards")
    assert config.data_dir == Path(mock_home / "cards").resolve()


@pytest.mark.parametrize(
    "mode, caps",
    [
        (StudyMode.QUICK, QueueCaps(max_review=10, max_new=3)),
        (StudyMode.DAILY, QueueCaps(max_review=50, max_new=10)),
        ("application", QueueCaps(max_review=50, max_new=10)),
        (StudyMode.ALL_DUE, QueueCaps(max_review=50, max_new=10)),
    ],
)
def test_caps_for(mock_home, mode, caps):
    assert resolve_config().caps_for(mode) == caps


def test_scheduling_params_follow_config(mock_home):
    params = resolve_config({"second_interval": 4, "starting_ease": 2.0}).scheduling_params()
    assert params.second_interval == 4
    assert params.starting_ease == 2.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"minimum_ease": 0},
        {"first_interval": 0},
        {"backend": "anki"},
        {"starting_ease": 1.0},
        {"starting_ease": 1.5, "minimum_ease": 1.8},
    ],
)
def test_invalid_values_are_rejected(mock_home, overrides):
    with pytest.raises(ValidationError):
        resolve_config(overrides)


def test_starting_ease_from_env_respects_floor(mock_home, monkeypatch):
    monkeypatch.setenv("CARDWISE_STARTING_EASE", "1.0")
    with pytest.raises(ValidationError, match="minimum_ease"):
        resolve_config()
