from pathlib import Path

import pytest
from pydantic import ValidationError

from studymate.application import config as config_module
from studymate.application.config import AppConfig, resolve_config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """No user config file and no STUDYMATE_* variables leak into tests."""
    monkeypatch.setattr(config_module, "CONFIG_FILES", [tmp_path / "missing.toml"])
    for name in ("API_URL", "API_TOKEN", "FLASHCARD_COUNT", "QUIZ_QUESTION_COUNT", "VERBOSE"):
        monkeypatch.delenv(f"STUDYMATE_{name}", raising=False)


def test_defaults():
    cfg = resolve_config()
    assert cfg.api_url == "http://localhost:5000/api"
    assert cfg.api_token is None
    assert cfg.flashcard_count == 10
    assert cfg.quiz_question_count == 5
    assert cfg.advance_on_review is True


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("STUDYMATE_API_TOKEN", "secret")
    monkeypatch.setenv("STUDYMATE_QUIZ_QUESTION_COUNT", "8")

    cfg = resolve_config()
    assert cfg.api_token == "secret"
    assert cfg.quiz_question_count == 8


def test_cli_overrides_win_and_none_is_ignored(monkeypatch):
    monkeypatch.setenv("STUDYMATE_API_URL", "http://env.example/api")

    cfg = resolve_config({"api_url": "http://cli.example/api/", "api_token": None})
    assert cfg.api_url == "http://cli.example/api"
    assert cfg.api_token is None


def test_toml_file_is_read(monkeypatch, tmp_path):
    toml_file = tmp_path / "config.toml"
    toml_file.write_text('api_url = "http://toml.example/api"\nflashcard_count = 20\n')
    monkeypatch.setattr(config_module, "CONFIG_FILES", [toml_file])

    cfg = resolve_config()
    assert cfg.api_url == "http://toml.example/api"
    assert cfg.flashcard_count == 20


def test_env_beats_toml(monkeypatch, tmp_path):
    toml_file = tmp_path / "config.toml"
    toml_file.write_text("flashcard_count = 20\n")
    monkeypatch.setattr(config_module, "CONFIG_FILES", [toml_file])
    monkeypatch.setenv("STUDYMATE_FLASHCARD_COUNT", "3")

    assert resolve_config().flashcard_count == 3


@pytest.mark.parametrize("field", ["flashcard_count", "quiz_question_count"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValidationError):
        AppConfig(**{field: 0})


def test_log_dir_expands_user(mock_home):
    cfg = AppConfig(log_dir="~/logs")
    assert cfg.log_dir == Path(mock_home) / "logs"


def test_session_ttl_from_env(monkeypatch):
    monkeypatch.setenv("STUDYMATE_SESSION_TTL_SECONDS", "120")
    assert resolve_config().session_ttl_seconds == 120.0

    with pytest.raises(ValidationError):
        AppConfig(session_ttl_seconds=0)
