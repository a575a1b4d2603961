"""Runtime settings, read from environment variables."""

import logging
import os

from strangerlink.escalation import DEFAULT_DELAY_MS

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    pass


def _parse_bool(name, value):
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name, value, minimum=0):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if number < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {number}")
    return number


class Settings:
    def __init__(self, host="0.0.0.0", port=8080, escalation_delay_ms=DEFAULT_DELAY_MS,
                 partition_by_mode=True, log_level="INFO"):
        self.host = host
        self.port = _parse_int("port", port)
        if self.port > 65535:
            raise ConfigError(f"port must be <= 65535, got {self.port}")
        self.escalation_delay_ms = _parse_int("escalation_delay_ms", escalation_delay_ms)
        self.partition_by_mode = bool(partition_by_mode)
        self.log_level = str(log_level).upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"unknown log level: {log_level!r}")

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        kwargs = {}
        if "HOST" in env:
            kwargs["host"] = env["HOST"]
        if "PORT" in env:
            kwargs["port"] = env["PORT"]
        if "ESCALATION_DELAY_MS" in env:
            kwargs["escalation_delay_ms"] = env["ESCALATION_DELAY_MS"]
        if "PARTITION_BY_MODE" in env:
            kwargs["partition_by_mode"] = _parse_bool("PARTITION_BY_MODE", env["PARTITION_BY_MODE"])
        if "LOG_LEVEL" in env:
            kwargs["log_level"] = env["LOG_LEVEL"]
        return cls(**kwargs)

    def __repr__(self):
        return (
            f"Settings(host={self.host!r}, port={self.port}, "
            f"escalation_delay_ms={self.escalation_delay_ms}, "
            f"partition_by_mode={self.partition_by_mode}, log_level={self.log_level!r})"
        )
