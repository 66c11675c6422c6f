"""Severity ordering shared by the database logger and the stdlib bridge."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .exceptions import InvalidArgument


LEVELS: Tuple[str, ...] = ("debug", "info", "warn", "error", "fatal")

_RANKS: Dict[str, int] = {name: rank for rank, name in enumerate(LEVELS)}


def normalize_level(level: Optional[str]) -> str:
    """Return the lower-cased level name ("" for None)."""
    if level is None:
        return ""
    return str(level).strip().lower()


def rank(level: str) -> Optional[int]:
    """Position of ``level`` in the severity order, or None if unknown."""
    return _RANKS.get(normalize_level(level))


def from_logging_level(levelno: int) -> str:
    """Map a :mod:`logging` level number onto the severity enumeration."""
    if levelno >= logging.CRITICAL:
        return "fatal"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class LevelFilter:
    """Accept levels at or above a configurable minimum severity."""

    def __init__(self, minimum: str = "debug") -> None:
        self._minimum = LEVELS[0]
        self.minimum = minimum

    @property
    def minimum(self) -> str:
        return self._minimum

    @minimum.setter
    def minimum(self, value: str) -> None:
        level = normalize_level(value)
        if level not in _RANKS:
            raise InvalidArgument(
                f"Unknown log level {value!r}; expected one of {', '.join(LEVELS)}"
            )
        self._minimum = level

    def is_level(self, level: str) -> bool:
        """Return True when ``level`` passes the minimum severity.

        Unknown levels never pass.
        """
        position = rank(level)
        if position is None:
            return False
        return position >= _RANKS[self._minimum]

    def __repr__(self) -> str:
        return f"LevelFilter(minimum={self._minimum!r})"
