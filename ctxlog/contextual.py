"""contextual.py - Context-scoped logging with buffer-and-flush on error.

``ContextLogger`` keeps debug records out of the sink and stores them per
execution flow. If the flow later logs an error, the error is emitted first and
the stored debug records follow, replayed at INFO in their original order. If
the flow finishes cleanly, ``delete_log_stream()`` drops them without a trace.

Debug output is mostly noise until something fails; right before a failure it
is the most useful signal there is. Replaying at INFO lets it through a sink
whose threshold sits above DEBUG.

Per execution id the logger moves between two states::

    NoBuffer  --debug-->            Buffering   (stream created, record stored)
    Buffering --debug-->            Buffering   (record stored)
    Buffering --error-->            NoBuffer    (error, then replay at INFO)
    Buffering --delete_log_stream-> NoBuffer    (records discarded)
    NoBuffer  --error-->            NoBuffer    (error only)

With ``enable_log_streams=False`` the registry is never touched: debug goes
through the level gate at DEBUG and error emits the error record only.

Typical usage::

    from ctxlog import ContextVarExecution, LoggerSetup, create_context_logger

    execution = ContextVarExecution()
    logger = create_context_logger(LoggerSetup(level="info"), context=execution)

    async def handle(request):
        with execution.bind(request.id):
            try:
                logger.debug({"name": "payload", "details": request.body})
                ...
            except Exception as exc:
                logger.error({"name": "handle.failed", "error": exc})
                raise
            finally:
                logger.delete_log_stream()
"""

from typing import Any, Iterable, Optional

from .buffer import BufferRegistry, decode_segment, encode_segment
from .config import LoggerSetup
from .context import NO_EXECUTION_ID, ContextVarExecution, ExecutionContext
from .core import SimpleLogger
from .emitter import Emitter
from .errors import BufferSegmentError, ConfigurationError, diagnostics
from .formatter import Info
from .levels import Level


class ContextLogger:
    """Buffers debug records per execution flow and flushes them on error.

    The logger is a wrapper around a ``SimpleLogger``: ``info`` and ``warn``
    go straight to it, ``debug`` is stored, ``error`` is emitted through it and
    then triggers the replay.

    Execution ids listed in ``no_context_ids`` (by default the "-" sentinel of
    ``ContextVarExecution`` and the empty string) mean "no flow is active".
    Calls made under them are never buffered: debug is emitted directly at
    DEBUG and error does not replay anything. Buffering under a shared sentinel
    would mix records of unrelated calls into one stream.

    Attributes:
        core (SimpleLogger): The direct logger doing gating and emission.
        context (ExecutionContext): Source of the current execution id.
        registry (BufferRegistry): Owner of the per-flow streams.
        enable_log_streams (bool): False turns buffering off entirely.
    """

    def __init__(
        self,
        core: SimpleLogger,
        context: ExecutionContext,
        enable_log_streams: bool = True,
        registry: Optional[BufferRegistry] = None,
        no_context_ids: Iterable[str] = (NO_EXECUTION_ID, ""),
    ) -> None:
        """Initialise the context logger.

        Args:
            core: Logger used for every emission.
            context: Supplies ``current_execution_id()`` on each call.
            enable_log_streams: When True (default) debug records are stored
                and only dumped if an error occurs in the same flow.
            registry: Stream registry. Defaults to a private one; pass a shared
                instance to let several loggers flush each other's streams.
            no_context_ids: Identifiers treated as "no active flow".

        Raises:
            ConfigurationError: If an argument has the wrong type.
        """
        if not isinstance(core, SimpleLogger):
            raise ConfigurationError(
                f"core must be a SimpleLogger, got {type(core).__name__}"
            )
        if not callable(getattr(context, "current_execution_id", None)):
            raise ConfigurationError("context must provide current_execution_id()")
        if not isinstance(enable_log_streams, bool):
            raise ConfigurationError(
                f"enable_log_streams must be a bool, got {type(enable_log_streams).__name__}"
            )
        self.core = core
        self.context = context
        self.enable_log_streams = enable_log_streams
        self.registry = registry if registry is not None else BufferRegistry()
        self._no_context_ids = frozenset(no_context_ids)

    # ---------------------------------------------------------------------- #
    # Logging interface
    # ---------------------------------------------------------------------- #

    def debug(self, info: Info, **fields: Any) -> None:
        """Store a debug record in the current flow's stream.

        Logs directly at DEBUG when buffering is disabled or no flow is active.
        """
        execution_id = self._buffering_id()
        if execution_id is None:
            self.core.debug(info, **fields)
            return
        if not self.core.is_enabled:
            # Nothing could ever be replayed from a disabled logger.
            return
        record = self.core.formatter.format(info, **fields)
        self.registry.append(execution_id, encode_segment(record))

    def info(self, info: Info, **fields: Any) -> None:
        self.core.info(info, **fields)

    def warn(self, info: Info, **fields: Any) -> None:
        self.core.warn(info, **fields)

    warning = warn

    def error(self, info: Info, **fields: Any) -> None:
        """Log the error, then replay the current flow's stream at INFO.

        The error record always goes out first. The stream is gone afterwards.
        """
        self.core.error(info, **fields)

        execution_id = self._buffering_id()
        if execution_id is None or not self.registry.has_pending(execution_id):
            return
        self._replay(execution_id)

    # ---------------------------------------------------------------------- #
    # Stream lifecycle
    # ---------------------------------------------------------------------- #

    def create_log_stream(self) -> None:
        """Create the stream for the current flow if it does not exist yet."""
        execution_id = self._buffering_id()
        if execution_id is not None:
            self.registry.ensure(execution_id)

    def delete_log_stream(self) -> None:
        """Discard the current flow's stream and everything pending in it.

        Call this when a flow ends without error; a stream that is never
        flushed or deleted stays in memory for the life of the process.
        """
        execution_id = self.active_execution_id()
        if execution_id is not None:
            self.registry.delete(execution_id)

    def has_pending(self) -> bool:
        """Return True if the current flow has buffered records."""
        execution_id = self.active_execution_id()
        return execution_id is not None and self.registry.has_pending(execution_id)

    def active_execution_id(self) -> Optional[str]:
        """Return the current execution id, or None when no flow is active.

        None is also returned when the identity adapter itself fails.
        """
        try:
            execution_id = self.context.current_execution_id()
        except Exception:
            diagnostics.exception("current_execution_id() failed; not buffering")
            return None
        if execution_id in self._no_context_ids:
            return None
        return execution_id

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _buffering_id(self) -> Optional[str]:
        if not self.enable_log_streams:
            return None
        return self.active_execution_id()

    def _replay(self, execution_id: str) -> None:
        for segment in self.registry.drain(execution_id):
            try:
                record = decode_segment(segment)
            except BufferSegmentError as exc:
                diagnostics.warning(
                    "skipped buffered record for %s: %s", execution_id, exc
                )
                continue
            self.core.emit(Level.INFO, record)


def create_context_logger(
    setup: Optional[LoggerSetup] = None,
    context: Optional[ExecutionContext] = None,
    enable_log_streams: bool = True,
    emitter: Optional[Emitter] = None,
) -> ContextLogger:
    """Build a ``ContextLogger`` over a fresh ``SimpleLogger``.

    Args:
        setup: Logger configuration. Defaults to ``LoggerSetup()``.
        context: Execution identity. Defaults to a new ``ContextVarExecution``;
            bind flows through ``logger.context.bind(...)``.
        enable_log_streams: See ``ContextLogger``.
        emitter: Record destination. Defaults to the stdlib sink.
    """
    if context is None:
        context = ContextVarExecution()
    return ContextLogger(
        SimpleLogger(setup, emitter=emitter),
        context,
        enable_log_streams=enable_log_streams,
    )
