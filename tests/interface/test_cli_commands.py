"""Tests for CLI commands: help, config, queue, study, stats, progress, history and serve."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from cardwise.interface.cli import app

runner = CliRunner()

DECK = {
    "cards": [
        {"id": "pods", "question": "What is a Pod?", "answer": "Smallest deployable unit."},
        {"id": "joins", "question": "Inner vs outer join?", "answer": "Outer keeps unmatched rows."},
    ]
}


@pytest.fixture
def data_dir(mock_home):
    path = mock_home / ".config/cardwise"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def deck(data_dir):
    path = data_dir / "cards.yaml"
    path.write_text(yaml.safe_dump(DECK, sort_keys=False))
    return path


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition practice" in result.stdout
    assert "study" in result.stdout
    assert "queue" in result.stdout


# --- Config ---


@patch("cardwise.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "data_dir": Path("/tmp/cards"),
        "backend": "yaml",
        "profile_id": "default",
    }
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["data_dir"] == str(Path("/tmp/cards"))
    assert output_data["backend"] == "yaml"


# --- Queue ---


def test_queue_json(deck):
    result = runner.invoke(app, ["queue", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["queue"] == ["pods", "joins"]
    assert data["new"] == ["pods", "joins"]
    assert data["dropped"] == 0


def test_queue_quick_mode_caps_new_cards(data_dir):
    cards = [{"id": f"c{i}", "question": "q", "answer": "a"} for i in range(5)]
    (data_dir / "cards.yaml").write_text(yaml.safe_dump({"cards": cards}))

    result = runner.invoke(app, ["queue", "--mode", "quick", "--json"])

    data = json.loads(result.stdout)
    assert data["queue"] == ["c0", "c1", "c2"]
    assert data["dropped"] == 2


def test_queue_human_output(deck):
    result = runner.invoke(app, ["queue"])
    assert result.exit_code == 0
    assert "New: 2" in result.stdout
    assert "never reviewed" in result.stdout


def test_queue_with_explicit_deck(mock_home, tmp_path):
    path = tmp_path / "other.yaml"
    path.write_text(yaml.safe_dump({"cards": [{"id": "x"}]}))

    result = runner.invoke(app, ["queue", "--deck", str(path), "--json"])

    assert json.loads(result.stdout)["queue"] == ["x"]


def test_queue_empty_deck(data_dir):
    result = runner.invoke(app, ["queue"])
    assert result.exit_code == 0
    assert "Nothing due" in result.stdout


def test_queue_malformed_deck(data_dir):
    (data_dir / "cards.yaml").write_text("cards: [\n")
    result = runner.invoke(app, ["queue"])
    assert result.exit_code == 1


# --- Study ---


def test_study_session_completes(deck, data_dir):
    result = runner.invoke(app, ["study"], input="\n3\n\n5\n")

    assert result.exit_code == 0, result.stdout
    assert "What is a Pod?" in result.stdout
    assert "Smallest deployable unit." in result.stdout
    assert "Next review in 1 day." in result.stdout
    assert "Session complete: 2 cards, average rating 4.00" in result.stdout
    assert "Streak: 1 days" in result.stdout

    cards = yaml.safe_load(deck.read_text())["cards"]
    assert cards[0]["scheduling"]["repetitions"] == 1
    assert cards[1]["practice_count"] == 1

    log = yaml.safe_load((data_dir / "study_log.yaml").read_text())
    assert log["progress"]["default"]["sessions_completed"] == 1
    assert len(log["history"]) == 1


def test_study_again_has_nothing_due(deck):
    runner.invoke(app, ["study"], input="\n3\n\n3\n")

    result = runner.invoke(app, ["study"])

    assert result.exit_code == 0
    assert "Nothing due" in result.stdout


def test_study_rejects_bad_rating(deck):
    result = runner.invoke(app, ["study"], input="\n9\n\n3\n\n3\n")

    assert result.exit_code == 0
    assert "Please enter a number from 1 to 5." in result.stdout
    assert "Session complete: 2 cards" in result.stdout


def test_study_quit_abandons(deck, data_dir):
    result = runner.invoke(app, ["study"], input="\n1\n\nq\n")

    assert result.exit_code == 0
    assert "Session abandoned" in result.stdout

    cards = yaml.safe_load(deck.read_text())["cards"]
    assert cards[0]["scheduling"]["lapses"] == 1
    assert "scheduling" not in cards[1]
    assert not (data_dir / "study_log.yaml").exists()


def test_study_empty_deck(data_dir):
    result = runner.invoke(app, ["study"])
    assert result.exit_code == 0
    assert "Nothing due" in result.stdout


# --- Stats / progress / history ---


def test_stats_json(deck):
    result = runner.invoke(app, ["stats", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["total"] == 2
    assert data["new"] == 2
    assert data["readiness"] == 10


def test_progress_and_history_after_study(deck):
    runner.invoke(app, ["study"], input="\n3\n\n4\n")

    progress = json.loads(runner.invoke(app, ["progress"]).stdout)
    assert progress["sessions_completed"] == 1
    assert progress["current_streak"] == 1
    assert progress["average_rating"] == 3.5

    history = runner.invoke(app, ["history"])
    assert history.exit_code == 0
    assert "daily" in history.stdout
    assert "2/2 good" in history.stdout


def test_history_empty(data_dir):
    result = runner.invoke(app, ["history"])
    assert "No completed sessions yet." in result.stdout


# --- Server ---


@patch("uvicorn.run")
def test_serve_command(mock_run):
    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with("cardwise.server:app", host="127.0.0.1", port=9000, reload=False)


def test_queue_labels_use_configured_mastery_threshold(data_dir, monkeypatch):
    deck = {
        "cards": [
            {
                "id": "steady",
                "scheduling": {
                    "interval_days": 10,
                    "repetitions": 3,
                    "ease_factor": 2.5,
                    "lapses": 0,
                    "due_at": "2020-01-11T09:00:00+00:00",
                    "last_reviewed_at": "2020-01-01T09:00:00+00:00",
                },
            }
        ]
    }
    (data_dir / "cards.yaml").write_text(yaml.safe_dump(deck))

    assert "[reviewing]" in runner.invoke(app, ["queue"]).stdout

    monkeypatch.setenv("CARDWISE_MASTERY_INTERVAL_DAYS", "10")
    assert "[mastered]" in runner.invoke(app, ["queue"]).stdout
