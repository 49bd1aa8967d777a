"""Environment variable helpers for cache configuration."""

from __future__ import annotations

import logging
import os

_LOGGER = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"1", "true", "yes", "y"})
FALSE_VALUES = frozenset({"0", "false", "no", "n"})


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


def parse_flag(raw: str) -> bool | None:
    """Return the boolean spelled by ``raw``, or None when it is not one.

    Returns
    -------
    bool | None
        Parsed boolean, or None for unrecognised text.
    """
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def env_bool(name: str, *, default: bool) -> bool:
    """Parse an environment variable as a boolean.

    Invalid values are logged and replaced by ``default``.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Value used when the variable is unset, empty, or invalid.

    Returns
    -------
    bool
        Parsed boolean or default.
    """
    raw = env_value(name)
    if raw is None:
        return default
    parsed = parse_flag(raw)
    if parsed is None:
        _LOGGER.warning("Invalid boolean for %s: %r", name, raw)
        return default
    return parsed


def env_int(name: str, *, default: int) -> int:
    """Parse an environment variable as an integer with error logging.

    Returns
    -------
    int
        Parsed integer or default.
    """
    raw = env_value(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        _LOGGER.warning("Invalid integer for %s: %r", name, raw)
        return default


__all__ = ["FALSE_VALUES", "TRUE_VALUES", "env_bool", "env_int", "env_value", "parse_flag"]
