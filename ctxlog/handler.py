"""handler.py - Rendering of ctxlog records through the standard ``logging`` stack.

The default sink is an ordinary ``logging.Logger``. ``LoggingEmitter`` hands
each record to it with the structured payload attached to the ``LogRecord``
(as ``ctxlog_record`` / ``ctxlog_level``), and one of the formatters below turns
that payload into text:

    JSONFormatter:   One JSON object per line, the compatibility wire shape::

                         {"time": "...", "level": "INFO", <attachments>, "event": {...}}

    PrettyFormatter: A compact human-readable message, intended for
                     ``rich.logging.RichHandler`` which adds colour, time and level.

Both formatters also accept plain stdlib records, so they can be attached to any
handler in an application's existing logging setup.
"""

import itertools
import logging
import sys
import time
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger.json import JsonFormatter
from rich.console import Console
from rich.logging import RichHandler

from .config import LoggerSetup

RESERVED_FIELDS = ("time", "level", "event")

_sink_ids = itertools.count(1)


def to_wire(record: Dict[str, Any], label: str) -> Dict[str, Any]:
    """Flatten a record into the wire shape under the level name ``label``.

    Attachments are lifted to the top level; they never override ``time``,
    ``level`` or ``event``.
    """
    wire: Dict[str, Any] = {"time": record.get("time"), "level": label}
    for key, value in (record.get("attachments") or {}).items():
        if key not in RESERVED_FIELDS:
            wire[key] = value
    wire["event"] = record.get("event", {})
    return wire


def _label(record: logging.LogRecord) -> str:
    label = getattr(record, "ctxlog_level", None)
    if label:
        return label
    return "WARN" if record.levelname == "WARNING" else record.levelname


class JSONFormatter(JsonFormatter):
    """Formats records as single-line JSON in the ctxlog wire shape.

    ``python-json-logger`` does the rendering; ``add_fields`` replaces its
    default field selection with ``time``, ``level``, attachments and
    ``event``. Plain stdlib records become ``{"event": {"name": <message>}}``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("json_ensure_ascii", False)
        super().__init__(*args, **kwargs)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        ct = time.gmtime(record.created)
        return time.strftime(datefmt or "%Y-%m-%dT%H:%M:%S", ct) + f".{int(record.msecs):03d}Z"

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        payload = getattr(record, "ctxlog_record", None)
        if payload is None:
            # A foreign stdlib record: wrap its message as the event name.
            event = {"name": record.message}
            event.update(message_dict)
            payload = {"time": self.formatTime(record), "event": event}
        log_record.update(to_wire(payload, _label(record)))


class PrettyFormatter(logging.Formatter):
    """Formats records as ``name: details key=value ...`` for console output.

    Error details render as ``!! Type: message`` at the end of the line.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = getattr(record, "ctxlog_record", None)
        if payload is None:
            return super().format(record)

        event = dict(payload.get("event", {}))
        parts = [str(event.pop("name", ""))]
        details = event.pop("details", None)
        if details:
            parts[0] += f": {details}"
        error = event.pop("error", None)
        fields = {**(payload.get("attachments") or {}), **event}
        parts.extend(f"{key}={value!r}" for key, value in fields.items())
        if isinstance(error, dict):
            parts.append(f"!! {error.get('type')}: {error.get('message')}")
        return " ".join(parts)


def build_sink_logger(setup: LoggerSetup, stream: Optional[TextIO] = None) -> logging.Logger:
    """Configure and return a fresh stdlib logger backing one default sink.

    Each call returns its own child of ``setup.name`` (``ctxlog.sink.1``,
    ``ctxlog.sink.2``, ...) carrying exactly one handler, so two loggers built
    from the same setup name never share or replace each other's output. The
    logger does not propagate and has its level opened fully, since filtering
    already happened in the level gate.

    Args:
        setup: Logger configuration; ``pretty_log`` selects the renderer.
        stream: Destination for output. Defaults to ``sys.stdout``.

    Returns:
        The configured ``logging.Logger``.
    """
    logger = logging.getLogger(setup.name).getChild(str(next(_sink_ids)))

    if setup.pretty_log:
        console = Console(file=stream) if stream is not None else Console()
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(PrettyFormatter())
    else:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(JSONFormatter())

    handler.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger
