"""levels.py - Severity levels and the level gate.

Levels reuse the numeric values of the standard ``logging`` constants, so a
``Level`` can be handed straight to ``logging.Logger.log()`` by the sink.
"""

import logging
from enum import IntEnum
from typing import Union

from .errors import ConfigurationError


class Level(IntEnum):
    """Record severity, ordered ``DEBUG < INFO < WARN < ERROR``."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR

    @property
    def label(self) -> str:
        """Uppercase wire name, e.g. ``"WARN"``."""
        return self.name


_NAMES = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
}


def parse_level(value: Union[Level, str, int]) -> Level:
    """Normalise a level given as a ``Level``, a name, or a ``logging`` int.

    Raises:
        ConfigurationError: If ``value`` does not name one of the four levels.

    Example:
        >>> parse_level("Warning")
        <Level.WARN: 30>
    """
    if isinstance(value, Level):
        return value
    if isinstance(value, str):
        try:
            return _NAMES[value.strip().lower()]
        except KeyError:
            raise ConfigurationError(f"unknown log level: {value!r}") from None
    # bool is an int subclass; True would silently become level 1
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Level(value)
        except ValueError:
            raise ConfigurationError(f"unknown log level: {value!r}") from None
    raise ConfigurationError(
        f"log level must be a Level, str or int, got {type(value).__name__}"
    )


def should_emit(record_level: Level, threshold: Level, is_enabled: bool) -> bool:
    """Return True if a record at ``record_level`` may reach the sink."""
    if not is_enabled:
        return False
    return record_level >= threshold
