"""
Runtime configuration.

Settings come from environment variables, optionally seeded from a ``.env``
file in the working directory. The Gemini API key is the only required
value; without it the application refuses to start.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from .errors import ConfigurationError, ValidationError
from .paths import data_directory, roster_path
from .tardiness import ON_TIME_POLICIES, parse_clock

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_SCHOOL_START_TIME = "07:30"
DEFAULT_ON_TIME_POLICY = "exclude"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SecretValue:
    """Holds a credential without exposing it through str() or repr()."""

    def __init__(self, value: str):
        self._value = value

    def get_value(self) -> str:
        return self._value

    def __str__(self) -> str:
        return "********"

    def __repr__(self) -> str:
        return "SecretValue(********)"

    def __eq__(self, other) -> bool:
        if isinstance(other, SecretValue):
            return self._value == other._value
        return False

    def __hash__(self) -> int:
        return hash(self._value)


@dataclass(frozen=True)
class Settings:
    api_key: SecretValue
    model: str
    school_start_time: str
    on_time_policy: str
    data_dir: Path
    log_level: str
    roster_file: Path


def load_settings(
    env: Mapping[str, str] | None = None,
    data_dir: Path | None = None,
) -> Settings:
    """Build settings from ``env`` (the process environment by default).

    Raises:
        ConfigurationError: the API key is missing, or a value is invalid.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    api_key = (env.get("LAZGO_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError("LAZGO_API_KEY environment variable not set")

    start_time = (env.get("LAZGO_SCHOOL_START_TIME") or DEFAULT_SCHOOL_START_TIME).strip()
    try:
        parse_clock(start_time)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid LAZGO_SCHOOL_START_TIME: {start_time}") from exc

    policy = (env.get("LAZGO_ON_TIME_POLICY") or DEFAULT_ON_TIME_POLICY).strip().lower()
    if policy not in ON_TIME_POLICIES:
        raise ConfigurationError(
            f"LAZGO_ON_TIME_POLICY must be one of {', '.join(ON_TIME_POLICIES)}, got: {policy}"
        )

    log_level = (env.get("LAZGO_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(f"Invalid LAZGO_LOG_LEVEL: {log_level}")

    if data_dir is None:
        raw_dir = (env.get("LAZGO_DATA_DIR") or "").strip()
        data_dir = Path(raw_dir).expanduser() if raw_dir else data_directory()
    raw_roster = (env.get("LAZGO_ROSTER_FILE") or "").strip()
    roster_file = Path(raw_roster).expanduser() if raw_roster else roster_path(Path(data_dir))

    return Settings(
        api_key=SecretValue(api_key),
        model=(env.get("LAZGO_MODEL") or DEFAULT_MODEL).strip(),
        school_start_time=start_time,
        on_time_policy=policy,
        data_dir=Path(data_dir),
        log_level=log_level,
        roster_file=roster_file,
    )
