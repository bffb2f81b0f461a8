from pathlib import Path

import pytest

from mapscli.domain.models.common import Api
from mapscli.infrastructure.config import settings


def write_yaml(tmp_path: Path, text: str) -> Path:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(text)
    return config_file


def test_yaml_values_and_nested_keys(tmp_path):
    config_file = write_yaml(tmp_path, "maps:\n  api_key: yaml-key\nretry:\n  base_interval: 2\n")
    settings.load_configuration(config_file=config_file)
    assert settings.get_api_key() == "yaml-key"
    assert settings.get_config("retry.base_interval") == 2
    assert settings.get_config("retry.missing", "fallback") == "fallback"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    config_file = write_yaml(tmp_path, "retry:\n  multiplier: 3\n")
    monkeypatch.setenv("RETRY_MULTIPLIER", "2.5")
    settings.load_configuration(config_file=config_file)
    assert settings.get_config("retry.multiplier") == 2.5


def test_env_api_key_wins(tmp_path, monkeypatch):
    config_file = write_yaml(tmp_path, "maps:\n  api_key: yaml-key\n")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-key")
    settings.load_configuration(config_file=config_file)
    assert settings.get_api_key() == "env-key"


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("GOOGLE_MAPS_API_KEY=dotenv-key\n")
    # Registered with monkeypatch so the value loaded from .env is removed afterwards
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "placeholder")
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY")
    settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=env_file)
    assert settings.get_api_key() == "dotenv-key"


def test_test_config_has_highest_priority(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT", "5")
    settings.set_config_for_testing({"http.timeout": 12})
    assert settings.get_request_timeout() == 12.0
    settings.clear_test_config()
    assert settings.get_request_timeout() == 5.0


def test_request_timeout_default():
    assert settings.get_request_timeout() == settings.DEFAULT_HTTP_TIMEOUT


def test_invalid_yaml_is_ignored(tmp_path):
    config_file = write_yaml(tmp_path, "maps: [unclosed\n")
    settings.load_configuration(config_file=config_file)
    assert settings.get_config("maps") is None


def test_rate_limits(tmp_path):
    config_file = write_yaml(tmp_path, (
        "rate_limits:\n"
        "  all: {requests: 50, per_seconds: 1}\n"
        "  places: {requests: 1}\n"
        "  roads: {requests: 3}\n"
        "  geocoding: {per_seconds: 2}\n"
    ))
    settings.load_configuration(config_file=config_file)
    assert settings.get_rate_limits() == {Api.ALL: (50.0, 1.0), Api.PLACES: (1.0, 1.0)}


def test_backoff_schedule_from_config():
    settings.set_config_for_testing({
        "retry.base_interval": 1,
        "retry.multiplier": 2,
        "retry.max_attempts": 4,
        "retry.jitter_factor": 0,
    })
    schedule = settings.get_backoff_schedule()
    assert schedule.base_interval == 1.0
    assert schedule.multiplier == 2.0
    assert schedule.max_attempts == 4
    assert schedule.jitter_factor == 0.0
    assert schedule.max_elapsed_time == 900.0


def test_deadline():
    assert settings.get_deadline() is None
    settings.set_config_for_testing({"retry.deadline": "30"})
    assert settings.get_deadline() == 30.0


@pytest.mark.parametrize("raw, expected", [("true", True), ("False", False), ("3", 3), ("1.5", 1.5), ("abc", "abc")])
def test_env_values_are_coerced(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_VALUE", raw)
    assert settings.get_config("some.value") == expected
