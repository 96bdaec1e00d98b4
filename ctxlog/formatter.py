"""formatter.py - Turns a caller's payload into a canonical record.

A record is a plain dict::

    {
        "time": "2024-01-15T12:34:56.789Z",
        "attachments": {"service": "billing"},
        "event": {"name": "charge", "details": "...", ...extra fields},
    }

Error records additionally carry ``event["error"] = {"type", "message", ...}``.
The level is deliberately absent: it is supplied at emission time, which is what
lets a buffered debug record be replayed later at INFO.

Nothing in this module raises into the caller. A misbehaving attachment
producer or ``to_dict()`` hook degrades to the base fields and leaves a note on
the internal diagnostic logger.
"""

import sys
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Union

from .clock import now_utc
from .config import AttachmentProducer
from .errors import diagnostics

Record = Dict[str, Any]
Info = Union[str, Mapping]

# Single well-known hook an error may expose to contribute extra fields.
ERROR_FIELDS_HOOK = "to_dict"


def safe_str(value: Any) -> str:
    """Return ``str(value)``, or a placeholder if its ``__str__`` raises."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def serialize_error(error: Any) -> Dict[str, Any]:
    """Serialise an error value into ``{"type", "message", ...extra}``.

    The base fields come from the error's class name and ``str(error)``. If the
    error exposes a callable ``to_dict()`` returning a mapping, those fields
    are merged on top and may override the base ones. Any failure in the hook
    falls back to the base fields.

    Args:
        error: Usually an exception instance, but any value is accepted.

    Returns:
        A new dict; never raises.

    Example:
        >>> serialize_error(ValueError("Oops"))
        {'type': 'ValueError', 'message': 'Oops'}
    """
    serialized: Dict[str, Any] = {
        "type": type(error).__name__,
        "message": safe_str(error),
    }
    try:
        hook = getattr(error, ERROR_FIELDS_HOOK, None)
    except Exception:
        hook = None
    if not callable(hook):
        return serialized

    try:
        extra = hook()
    except Exception as exc:
        diagnostics.warning(
            "%s.%s() raised %s; using base error fields",
            serialized["type"], ERROR_FIELDS_HOOK, type(exc).__name__,
        )
        return serialized
    if not isinstance(extra, Mapping):
        diagnostics.warning(
            "%s.%s() returned %s instead of a mapping; using base error fields",
            serialized["type"], ERROR_FIELDS_HOOK, type(extra).__name__,
        )
        return serialized

    serialized.update(extra)
    return serialized


class RecordFormatter:
    """Builds records from per-call payloads, attachments and the clock.

    Attributes:
        _log_attachments: Optional producer called once per record.
        _clock: Zero-argument callable returning the ``time`` string.
    """

    def __init__(
        self,
        log_attachments: Optional[AttachmentProducer] = None,
        clock: Callable[[], str] = now_utc,
    ) -> None:
        self._log_attachments = log_attachments
        self._clock = clock

    def format(self, info: Info, **fields: Any) -> Record:
        """Build a record from ``info`` plus any keyword ``fields``.

        ``info`` is either a mapping holding at least ``name`` or just the
        event name as a string. Keyword fields are merged into the event and
        win over keys of the same name in ``info``.
        """
        return {
            "time": self._clock(),
            "attachments": self._attachments(),
            "event": self._event(info, fields),
        }

    def format_error(self, info: Info, **fields: Any) -> Record:
        """Build an error record; the ``error`` field is serialised.

        When no ``error`` is given and the call happens inside an ``except``
        block, the exception being handled is used instead.
        """
        event = self._event(info, fields)
        if "error" in event:
            error = event.pop("error")
        else:
            error = sys.exc_info()[1]
        event["error"] = (
            serialize_error(error)
            if error is not None
            else {"type": "Error", "message": ""}
        )
        return {
            "time": self._clock(),
            "attachments": self._attachments(),
            "event": event,
        }

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    @staticmethod
    def _event(info: Info, fields: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(info, Mapping):
            event = dict(info)
        else:
            event = {"name": safe_str(info)}
        event.update(fields)
        return event

    def _attachments(self) -> Dict[str, Any]:
        if self._log_attachments is None:
            return {}
        try:
            produced = self._log_attachments()
        except Exception as exc:
            diagnostics.warning(
                "log_attachments raised %s; record emitted without attachments",
                type(exc).__name__,
            )
            return {}
        if not isinstance(produced, Mapping):
            diagnostics.warning(
                "log_attachments returned %s instead of a mapping; ignored",
                type(produced).__name__,
            )
            return {}
        return {str(key): value for key, value in produced.items()}
