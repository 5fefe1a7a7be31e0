"""Lookups on key files that treat missing groups or keys as None."""

from __future__ import annotations

import configparser

_TRUE = frozenset({"true", "1"})
_FALSE = frozenset({"false", "0"})


def optional_string(config: configparser.RawConfigParser, group: str, key: str) -> str | None:
    """Return a string value, or None if the group or key does not exist."""
    try:
        return config.get(group, key, raw=True)
    except (configparser.NoSectionError, configparser.NoOptionError):
        return None


def optional_bool(config: configparser.RawConfigParser, group: str, key: str) -> bool | None:
    """Return a boolean value, or None if the group or key does not exist.

    Only ``true``, ``false``, ``1`` and ``0`` are accepted; anything else
    raises ValueError.
    """
    value = optional_string(config, group, key)
    if value is None:
        return None
    text = value.strip()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(
        f"Value \u201c{value}\u201d cannot be interpreted as a boolean."
    )