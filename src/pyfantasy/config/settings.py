"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .rules import DEFAULT_RULES_KEY, RULES_BY_KEY


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "PYFANTASY_DB_PATH"
_RULES_ENV = "PYFANTASY_RULES"
_COMMIT_RETRIES_ENV = "PYFANTASY_COMMIT_RETRIES"
_SCORING_JOBS_ENV = "PYFANTASY_SCORING_JOBS"
_FIRST_LOCK_ENV = "PYFANTASY_FIRST_LOCK"
_LOCK_HOURS_ENV = "PYFANTASY_LOCK_HOURS"
_PERIODS_ENV = "PYFANTASY_PERIODS"

_DEFAULT_DB_PATH = Path("pyfantasy.sqlite")
_DEFAULT_FIRST_LOCK = datetime(2024, 8, 18, 11, 0, tzinfo=timezone.utc)


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_datetime(name: str, default: datetime) -> datetime:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Invalid datetime for %s: %s; using default %s", name, raw, default.isoformat())
        return default
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _env_rules_key(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    key = raw.strip().upper()
    if key not in RULES_BY_KEY:
        logger.warning("Unknown rule set for %s: %s; using default %s", name, raw, default)
        return default
    return key


@dataclass(frozen=True)
class Settings:
    db_path: Path = _DEFAULT_DB_PATH
    rules_key: str = DEFAULT_RULES_KEY
    commit_retries: int = 3
    scoring_jobs: int = 1
    first_lock: datetime = _DEFAULT_FIRST_LOCK
    lock_hours: float = 7.0
    periods: int = 38

    @classmethod
    def from_env(cls) -> "Settings":
        raw_path = os.getenv(_DB_PATH_ENV)
        return cls(
            db_path=Path(raw_path) if raw_path else _DEFAULT_DB_PATH,
            rules_key=_env_rules_key(_RULES_ENV, DEFAULT_RULES_KEY),
            commit_retries=_env_int(_COMMIT_RETRIES_ENV, 3, min_value=0),
            scoring_jobs=_env_int(_SCORING_JOBS_ENV, 1, min_value=1),
            first_lock=_env_datetime(_FIRST_LOCK_ENV, _DEFAULT_FIRST_LOCK),
            lock_hours=_env_float(_LOCK_HOURS_ENV, 7.0, clamp_min=0.0),
            periods=_env_int(_PERIODS_ENV, 38, min_value=1),
        )
