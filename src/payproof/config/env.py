"""Typed accessors over ``os.environ``."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def _non_blank(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the named variables, collecting every blank or unset one into a single error."""

    values = {name: _non_blank(name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in values.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars([name])[name]


def float_env_var(name: str, default: float) -> float:
    """Return an optional positive float; ``default`` when the variable is unset or blank."""

    raw = _non_blank(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def log_level_env_var(name: str, default: str = "INFO") -> int:
    """Return a ``logging`` level from a name such as ``DEBUG`` or ``warning``."""

    raw = (_non_blank(name) or default).strip().upper()
    level = logging.getLevelNamesMapping().get(raw)
    if level is None:
        raise ConfigurationError(f"{name} must be a logging level name, got {raw!r}")
    return level
