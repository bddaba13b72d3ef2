"""Environment and ``.env`` configuration for the CLI and host helpers.

Purpose
-------
Resolve the handful of settings the command line and :func:`close_and_wait`
callers share, from explicit values, the process environment, or a nearby
``.env`` file.

Contents
--------
* ``DOTENV_ENV_VAR`` / :func:`should_use_dotenv` / :func:`enable_dotenv` -
  opt-in ``.env`` loading.
* :class:`CloseSettings` / :func:`load_settings` - validated settings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from threading import Lock
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

DOTENV_ENV_VAR = "CLOSABLE_USE_DOTENV"
TIMEOUT_ENV_VAR = "CLOSABLE_TIMEOUT"
LOG_LEVEL_ENV_VAR = "CLOSABLE_LOG_LEVEL"

DEFAULT_TIMEOUT = timedelta(seconds=5)
DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY = {"1", "true", "yes", "on"}
_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_DOTENV_LOCK = Lock()
_DOTENV_LOADED: Path | None = None


def should_use_dotenv(*, explicit: bool | None, env_value: str | None) -> bool:
    """Decide whether ``.env`` loading is enabled.

    An explicit CLI flag wins over the ``CLOSABLE_USE_DOTENV`` toggle.

    Examples
    --------
    >>> should_use_dotenv(explicit=None, env_value="yes")
    True
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv(search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` without overriding existing variables.

    The search walks upwards from ``search_from`` (default: the working
    directory). Repeated calls return the first loaded path.
    """

    global _DOTENV_LOADED
    with _DOTENV_LOCK:
        if _DOTENV_LOADED is not None:
            return _DOTENV_LOADED
        if search_from is None:
            found = find_dotenv(usecwd=True)
        else:
            found = _find_upwards(search_from)
        if not found:
            return None
        path = Path(found).resolve()
        load_dotenv(path, override=False)
        _DOTENV_LOADED = path
        return path


def _find_upwards(start: Path) -> str:
    for directory in (start.resolve(), *start.resolve().parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return str(candidate)
    return ""


def _reset_dotenv_state_for_testing() -> None:
    """Forget which ``.env`` was loaded so tests start clean."""

    global _DOTENV_LOADED
    with _DOTENV_LOCK:
        _DOTENV_LOADED = None


@dataclass(frozen=True, slots=True)
class CloseSettings:
    """Validated settings shared by the CLI and host helpers."""

    timeout: timedelta = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def python_log_level(self) -> int:
        """Return the :mod:`logging` constant for :attr:`log_level`."""

        return getattr(logging, self.log_level)


def load_settings(env: Mapping[str, str] | None = None) -> CloseSettings:
    """Build :class:`CloseSettings` from ``env`` (default: ``os.environ``).

    Raises
    ------
    ValueError
        When a variable is present but malformed.
    """

    source = os.environ if env is None else env
    return CloseSettings(
        timeout=_coerce_timeout(source.get(TIMEOUT_ENV_VAR)),
        log_level=_coerce_log_level(source.get(LOG_LEVEL_ENV_VAR)),
    )


def _coerce_timeout(raw: str | None) -> timedelta:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise ValueError(f"{TIMEOUT_ENV_VAR} must be a number of seconds, got {raw!r}") from exc
    if seconds <= 0:
        raise ValueError(f"{TIMEOUT_ENV_VAR} must be positive, got {raw!r}")
    return timedelta(seconds=seconds)


def _coerce_log_level(raw: str | None) -> str:
    if raw is None or not raw.strip():
        return DEFAULT_LOG_LEVEL
    normalized = raw.strip().upper()
    if normalized not in _LEVEL_NAMES:
        raise ValueError(f"{LOG_LEVEL_ENV_VAR} must be one of {', '.join(_LEVEL_NAMES)}, got {raw!r}")
    return normalized


__all__ = [
    "CloseSettings",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_TIMEOUT",
    "DOTENV_ENV_VAR",
    "LOG_LEVEL_ENV_VAR",
    "TIMEOUT_ENV_VAR",
    "enable_dotenv",
    "load_settings",
    "should_use_dotenv",
]
