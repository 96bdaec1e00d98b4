"""emitter.py - Pluggable sink for emitted records.

The loggers never write text themselves; they hand a record and its level to an
``Emitter``. Two implementations ship with the package:

    LoggingEmitter  - forwards to a standard ``logging.Logger`` (the default,
                      configured by ``ctxlog.handler.build_sink_logger``).
    CaptureEmitter  - keeps every emitted record in memory, in wire shape.
                      Used by the test-suite and handy in application tests.

Typical usage::

    from ctxlog import CaptureEmitter, LoggerSetup, create_context_logger

    sink = CaptureEmitter()
    logger = create_context_logger(LoggerSetup(level="debug"), emitter=sink)
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .handler import to_wire
from .levels import Level


class Emitter(ABC):
    """Abstract base class for record destinations.

    Example:
        >>> class PrintEmitter(Emitter):
        ...     def emit(self, level, record):
        ...         print(level.label, record["event"]["name"])
    """

    @abstractmethod
    def emit(self, level: Level, record: Dict[str, Any]) -> None:
        """Deliver one record at ``level``.

        Args:
            level: Level the record is emitted at. For replayed buffered
                records this is ``Level.INFO``, not the original debug level.
            record: The record dict built by ``RecordFormatter``.
        """


class LoggingEmitter(Emitter):
    """Emit through a standard ``logging.Logger``.

    The structured record travels on the ``LogRecord`` as ``ctxlog_record`` and
    the wire level name as ``ctxlog_level``, ready for ``JSONFormatter`` or
    ``PrettyFormatter``. The message itself is the event name, so unrelated
    formatters still print something sensible.

    Failures while writing are handled by the handler's own ``handleError()``,
    like any other stdlib log call.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def emit(self, level: Level, record: Dict[str, Any]) -> None:
        event = record.get("event") or {}
        self._logger.log(
            int(level),
            "%s",
            event.get("name", ""),
            extra={"ctxlog_record": record, "ctxlog_level": level.label},
        )


class CaptureEmitter(Emitter):
    """Collect emitted records in memory, flattened to the wire shape.

    Attributes:
        records: Wire-shaped dicts in emission order, each with a ``level``
            key holding the label (``"DEBUG"``, ``"INFO"``, ...).
    """

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def emit(self, level: Level, record: Dict[str, Any]) -> None:
        with self._lock:
            self.records.append(to_wire(record, level.label))

    @property
    def levels(self) -> List[str]:
        """Level labels of the captured records, in order."""
        return [r["level"] for r in self.records]

    @property
    def names(self) -> List[str]:
        """Event names of the captured records, in order."""
        return [r["event"].get("name") for r in self.records]

    def clear(self) -> None:
        with self._lock:
            self.records.clear()

    def __len__(self) -> int:
        return len(self.records)
