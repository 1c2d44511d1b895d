"""
Environment-driven configuration.

``FLASK_ENV`` picks one of the config classes below; individual settings are
read through ``EnvReader`` so malformed values fall back to defaults and are
reported in ``ENV_DIAGNOSTICS`` instead of failing at import time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Mapping

from .utils.coercion import BOOL_WORDS

ENV_KEY = "FLASK_ENV"
DEFAULT_ENV = "development"
KNOWN_ENVS = ("development", "testing", "staging", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Decimal places a caller may request; the Decimal context carries 28 digits.
PRECISION_CEILING = 28


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    source: str
    raw_value: str


class EnvReader:
    """Typed access to environment variables; bad values become warnings."""

    def __init__(self, data: Mapping[str, str] | None = None):
        self._data = dict(os.environ if data is None else data)
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def _clean(self, key: str) -> str | None:
        value = (self._data.get(key) or "").strip()
        return value or None

    def str(self, key: str, default: str | None = None) -> str | None:
        value = self._clean(key)
        return default if value is None else value

    def int(self, key: str, default: int = 0) -> int:
        value = self._clean(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            self.warn(f"{key} expected integer but received {value!r}; falling back to {default}.")
            return default

    def bool(self, key: str, default: bool = False) -> bool:
        value = self._clean(key)
        if value is None:
            return default
        parsed = BOOL_WORDS.get(value.lower())
        if parsed is None:
            self.warn(f"{key} expected boolean but received {value!r}; falling back to {default}.")
            return default
        return parsed

    def choice(self, key: str, options: Iterable[str], default: str) -> str:
        value = self._clean(key)
        if value is None:
            return default
        if value.upper() not in options:
            self.warn(f"{key}={value!r} is not one of {sorted(options)}; falling back to {default}.")
            return default
        return value.upper()

    def bounded_int(self, key: str, default: int, low: int, high: int) -> int:
        value = self.int(key, default)
        if low <= value <= high:
            return value
        clamped = min(max(value, low), high)
        self.warn(f"{key}={value} outside [{low}, {high}]; using {clamped}.")
        return clamped


def resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    raw_value = reader.str(ENV_KEY, DEFAULT_ENV) or DEFAULT_ENV
    name = raw_value.lower()
    if name not in KNOWN_ENVS:
        raise RuntimeError(f"Invalid {ENV_KEY}={raw_value!r}. Expected one of {list(KNOWN_ENVS)}.")
    return EnvironmentInfo(name=name, source=ENV_KEY, raw_value=raw_value)


env = EnvReader()
ENV_INFO = resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')
    JSON_SORT_KEYS = False

    LOG_LEVEL = env.choice('LOG_LEVEL', LOG_LEVELS, 'WARNING')
    LOG_REDACT_PII = env.bool('LOG_REDACT_PII', True)

    # Register the system unit catalog when the app starts
    MEASUREMENT_SEED_SYSTEM_UNITS = env.bool('MEASUREMENT_SEED_SYSTEM_UNITS', True)
    # Reject (instead of warn about) values finer than the source unit's precision
    MEASUREMENT_STRICT_PRECISION = env.bool('MEASUREMENT_STRICT_PRECISION', False)
    MEASUREMENT_MAX_PRECISION = env.bounded_int('MEASUREMENT_MAX_PRECISION', 10, 0, PRECISION_CEILING)


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True
    LOG_LEVEL = env.choice('LOG_LEVEL', LOG_LEVELS, 'DEBUG')


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    MEASUREMENT_SEED_SYSTEM_UNITS = False


class StagingConfig(BaseConfig):
    ENV = 'staging'
    DEBUG = False


class ProductionConfig(BaseConfig):
    ENV = 'production'
    DEBUG = False
    LOG_LEVEL = env.choice('LOG_LEVEL', LOG_LEVELS, 'INFO')
    MEASUREMENT_STRICT_PRECISION = env.bool('MEASUREMENT_STRICT_PRECISION', True)


config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
}

Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    # class bodies above read each key more than once
    'warnings': tuple(dict.fromkeys(env.warnings)),
}
