"""errors.py - Exception types raised by ctxlog.

Only configuration problems ever reach the caller. Everything that can go wrong
while a record is being formatted, buffered, or replayed is absorbed inside the
package and reported through the internal diagnostic logger instead.
"""

import logging

# Diagnostic channel for degraded serialization and corrupted buffer segments.
# Kept apart from the sink logger so diagnostics never end up inside a
# context's own stream. Silent unless the application configures it.
diagnostics = logging.getLogger("ctxlog.internal")
diagnostics.addHandler(logging.NullHandler())


class CtxlogError(Exception):
    """Base class for all ctxlog exceptions."""


class ConfigurationError(CtxlogError, ValueError):
    """Raised at construction time for an invalid logger setup.

    Examples include an unknown level name, a ``log_attachments`` value that is
    not callable, or a flag that is not a boolean. Logging calls themselves
    never raise this.
    """


class BufferSegmentError(CtxlogError):
    """A buffered segment could not be decoded back into a record.

    Raised by :func:`ctxlog.buffer.decode_segment` and always handled by the
    flush, which skips the segment and carries on with the rest.

    Attributes:
        segment: The raw text that failed to decode.
    """

    def __init__(self, message: str, segment: str = "") -> None:
        super().__init__(message)
        self.segment = segment
