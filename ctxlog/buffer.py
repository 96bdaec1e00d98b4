"""buffer.py - Per-execution log streams and the registry that owns them.

A ``LogStream`` holds the debug records withheld for one execution flow. Records
are stored already serialised and joined by ``LOG_SEP``; a flush reads the whole
text back, splits it on the separator and decodes each segment on its own, so
one damaged segment cannot take the rest of the replay down with it.

``BufferRegistry`` maps execution ids to streams and is the only shared mutable
state in the package.

Design decisions:
    - ``LOG_SEP`` is the ASCII record separator (``\\x1e``), the same framing
      byte RFC 7464 uses for JSON text sequences. Segments are produced with
      ``json.dumps(..., ensure_ascii=True)``, which escapes every control
      character inside strings, so the separator can never occur within a
      serialised record.
    - Every registry operation runs under one ``threading.Lock``. The critical
      sections are a dict lookup and a list append, so contention is negligible,
      and the single lock makes create-or-fetch, append and drain atomic per id
      even if two tasks happen to share an identifier.
    - Streams are unbounded. A stream that is neither flushed nor deleted stays
      resident; ``ctxlog.instrument.log_scope`` exists to make cleanup automatic.
"""

import json
import threading
from typing import Any, Dict, List

from .errors import BufferSegmentError, diagnostics
from .formatter import safe_str

LOG_SEP = "\x1e"


def encode_segment(record: Dict[str, Any]) -> str:
    """Serialise a record into a single buffer segment.

    Values JSON cannot represent are rendered with ``safe_str()``. A record
    that still cannot be encoded (e.g. a circular reference) is replaced by a
    reduced record keeping its time and event name, plus a
    ``serialization_error`` note. Never raises.

    Returns:
        Compact JSON text guaranteed free of ``LOG_SEP``.
    """
    try:
        return json.dumps(record, ensure_ascii=True, separators=(",", ":"), default=safe_str)
    except Exception as exc:
        diagnostics.warning("record could not be serialised for buffering: %s", safe_str(exc))
        event = record.get("event") or {}
        reduced = {
            "time": safe_str(record.get("time", "")),
            "attachments": {},
            "event": {
                "name": safe_str(event.get("name", "")),
                "serialization_error": f"{type(exc).__name__}: {safe_str(exc)}",
            },
        }
        return json.dumps(reduced, ensure_ascii=True, separators=(",", ":"))


def decode_segment(segment: str) -> Dict[str, Any]:
    """Parse one buffer segment back into a record.

    Raises:
        BufferSegmentError: If the segment is not valid JSON or not a record.
    """
    try:
        record = json.loads(segment)
    except ValueError as exc:
        raise BufferSegmentError(f"malformed buffer segment: {exc}", segment) from exc
    if not isinstance(record, dict) or not isinstance(record.get("event"), dict):
        raise BufferSegmentError("buffer segment is not a log record", segment)
    return record


class LogStream:
    """Append-only text buffer of ``LOG_SEP``-delimited segments.

    Example:
        >>> stream = LogStream()
        >>> stream.write('{"event":{"name":"a"}}')
        >>> stream.write('{"event":{"name":"b"}}')
        >>> len(stream)
        2
        >>> LogStream.split(stream.read())
        ['{"event":{"name":"a"}}', '{"event":{"name":"b"}}']
        >>> len(stream)
        0
    """

    __slots__ = ("_parts", "_count")

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._count = 0

    def write(self, segment: str) -> None:
        """Append one serialised record, preceded by the separator if needed."""
        if self._parts:
            self._parts.append(LOG_SEP)
        self._parts.append(segment)
        self._count += 1

    def read(self) -> str:
        """Return the whole buffered text and empty the stream."""
        text = "".join(self._parts)
        self._parts.clear()
        self._count = 0
        return text

    @staticmethod
    def split(text: str) -> List[str]:
        """Split text produced by ``read()`` into its segments."""
        if not text:
            return []
        return text.split(LOG_SEP)

    def __len__(self) -> int:
        """Return the number of buffered records."""
        return self._count

    def __repr__(self) -> str:  # pragma: no cover
        return f"LogStream(records={self._count})"


class BufferRegistry:
    """Owns at most one ``LogStream`` per execution id.

    Example:
        >>> registry = BufferRegistry()
        >>> registry.append("req-1", '{"event":{"name":"a"}}')
        >>> registry.has_pending("req-1")
        True
        >>> registry.drain("req-1")
        ['{"event":{"name":"a"}}']
        >>> "req-1" in registry
        False
    """

    def __init__(self) -> None:
        self._streams: Dict[str, LogStream] = {}
        self._lock = threading.Lock()

    def ensure(self, execution_id: str) -> LogStream:
        """Return the stream for ``execution_id``, creating it if absent."""
        with self._lock:
            return self._ensure(execution_id)

    def append(self, execution_id: str, segment: str) -> None:
        """Append a serialised record to the stream for ``execution_id``."""
        with self._lock:
            self._ensure(execution_id).write(segment)

    def has_pending(self, execution_id: str) -> bool:
        """True iff a stream exists for ``execution_id`` and is non-empty."""
        with self._lock:
            stream = self._streams.get(execution_id)
            return stream is not None and len(stream) > 0

    def drain(self, execution_id: str) -> List[str]:
        """Remove the stream for ``execution_id`` and return its segments.

        The stream no longer exists afterwards. Returns an empty list when
        there was no stream.
        """
        with self._lock:
            stream = self._streams.pop(execution_id, None)
        if stream is None:
            return []
        # The stream is detached from the registry, so no writer can reach it.
        return LogStream.split(stream.read())

    def delete(self, execution_id: str) -> None:
        """Discard the stream for ``execution_id`` without emitting anything."""
        with self._lock:
            self._streams.pop(execution_id, None)

    def _ensure(self, execution_id: str) -> LogStream:
        stream = self._streams.get(execution_id)
        if stream is None:
            stream = self._streams[execution_id] = LogStream()
        return stream

    def __contains__(self, execution_id: object) -> bool:
        with self._lock:
            return execution_id in self._streams

    def __len__(self) -> int:
        """Return the number of live streams (useful for leak checks)."""
        with self._lock:
            return len(self._streams)
