"""Helpers for turning failures into logged defaults."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def log_err_or_else(func: Callable[[], T], default: Callable[[], T]) -> T:
    """Return ``func()``; on an exception, log it and return ``default()``."""
    try:
        return func()
    except Exception as e:  # noqa: BLE001
        logger.debug("%s", e)
        return default()


def log_err_default(func: Callable[[], T], default_factory: Callable[[], T]) -> T:
    """Return ``func()``; on an exception, log it and return a fresh default."""
    return log_err_or_else(func, default_factory)