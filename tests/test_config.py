import pytest

from strangerlink.__main__ import parse_args
from strangerlink.config import ConfigError, Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.port == 8080
    assert settings.escalation_delay_ms == 60000
    assert settings.partition_by_mode is True
    assert settings.log_level == "INFO"


def test_from_env():
    settings = Settings.from_env(
        {
            "HOST": "127.0.0.1",
            "PORT": "3000",
            "ESCALATION_DELAY_MS": "1500",
            "PARTITION_BY_MODE": "off",
            "LOG_LEVEL": "debug",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 3000
    assert settings.escalation_delay_ms == 1500
    assert settings.partition_by_mode is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"PORT": "http"},
        {"PORT": "70000"},
        {"ESCALATION_DELAY_MS": "-1"},
        {"PARTITION_BY_MODE": "maybe"},
        {"LOG_LEVEL": "chatty"},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ConfigError):
        Settings.from_env(env)


def test_cli_flags_override_env(monkeypatch):
    monkeypatch.setenv("PORT", "3000")
    monkeypatch.setenv("ESCALATION_DELAY_MS", "1000")
    settings = parse_args(["--port", "9000", "--single-queue"])
    assert settings.port == 9000
    assert settings.escalation_delay_ms == 1000
    assert settings.partition_by_mode is False
