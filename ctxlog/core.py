"""core.py - The direct leveled logger.

``SimpleLogger`` is the level gate, the record formatter and an emitter wired
together. Every call is gated, formatted and handed to the emitter straight
away. ``ContextLogger`` wraps an instance of it to add per-context buffering.
"""

from typing import Any, Dict, Optional

from .config import LoggerSetup
from .emitter import Emitter, LoggingEmitter
from .errors import ConfigurationError, diagnostics
from .formatter import Info, RecordFormatter
from .handler import build_sink_logger
from .levels import Level, should_emit


class SimpleLogger:
    """Logs in four levels: debug, info, warn and error.

    None of the logging methods return a value or raise. Failures inside a
    custom emitter are reported on the ``ctxlog.internal`` logger.

    Attributes:
        setup (LoggerSetup): The validated configuration.
        formatter (RecordFormatter): Builds records, including attachments.
        emitter (Emitter): Destination for records that pass the gate.

    Example:
        >>> logger = SimpleLogger(LoggerSetup(level="debug"))
        >>> logger.info({"name": "job.started", "details": "nightly export"})
        >>> logger.error({"name": "job.failed", "error": TimeoutError("db")})
    """

    def __init__(
        self,
        setup: Optional[LoggerSetup] = None,
        emitter: Optional[Emitter] = None,
        formatter: Optional[RecordFormatter] = None,
    ) -> None:
        """Initialise the logger.

        Args:
            setup: Logger configuration. Defaults to ``LoggerSetup()``.
            emitter: Record destination. Defaults to a ``LoggingEmitter`` over
                the stdlib logger built by ``build_sink_logger(setup)``.
            formatter: Record builder. Defaults to a ``RecordFormatter`` using
                ``setup.log_attachments``.

        Raises:
            ConfigurationError: If ``setup`` or ``emitter`` has the wrong type.
        """
        if setup is None:
            setup = LoggerSetup()
        if not isinstance(setup, LoggerSetup):
            raise ConfigurationError(
                f"setup must be a LoggerSetup, got {type(setup).__name__}"
            )
        if emitter is not None and not isinstance(emitter, Emitter):
            raise ConfigurationError(
                f"emitter must be an Emitter, got {type(emitter).__name__}"
            )
        self.setup = setup
        self.formatter = (
            formatter if formatter is not None else RecordFormatter(setup.log_attachments)
        )
        self.emitter = (
            emitter if emitter is not None else LoggingEmitter(build_sink_logger(setup))
        )

    @property
    def level(self) -> Level:
        return self.setup.level

    @property
    def is_enabled(self) -> bool:
        return self.setup.is_enabled

    def is_enabled_for(self, level: Level) -> bool:
        """Return True if a record at ``level`` would reach the emitter."""
        return should_emit(level, self.setup.level, self.setup.is_enabled)

    # ---------------------------------------------------------------------- #
    # Public interface
    # ---------------------------------------------------------------------- #

    def debug(self, info: Info, **fields: Any) -> None:
        """Log at DEBUG. Use it for detail that helps follow the code flow."""
        self._log(Level.DEBUG, info, fields)

    def info(self, info: Info, **fields: Any) -> None:
        """Log at INFO. Use it for the important steps of a flow."""
        self._log(Level.INFO, info, fields)

    def warn(self, info: Info, **fields: Any) -> None:
        """Log at WARN. Use it when something unexpected but survivable happened."""
        self._log(Level.WARN, info, fields)

    warning = warn

    def error(self, info: Info, **fields: Any) -> None:
        """Log at ERROR, serialising the ``error`` field of the payload.

        Args:
            info: Event payload. Its ``error`` entry (an exception, usually) is
                serialised into ``{"type", "message", ...}``. When it is
                missing, the exception currently being handled is used.
            **fields: Extra event fields.
        """
        if not self.is_enabled_for(Level.ERROR):
            return
        self._deliver(Level.ERROR, self.formatter.format_error(info, **fields))

    def emit(self, level: Level, record: Dict[str, Any]) -> None:
        """Gate and deliver an already formatted record at ``level``."""
        if self.is_enabled_for(level):
            self._deliver(level, record)

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _log(self, level: Level, info: Info, fields: Dict[str, Any]) -> None:
        if not self.is_enabled_for(level):
            return
        self._deliver(level, self.formatter.format(info, **fields))

    def _deliver(self, level: Level, record: Dict[str, Any]) -> None:
        try:
            self.emitter.emit(level, record)
        except Exception:
            # A broken sink must never break the application's own flow.
            diagnostics.exception("emitter %s failed", type(self.emitter).__name__)


def create_logger(
    setup: Optional[LoggerSetup] = None, emitter: Optional[Emitter] = None
) -> SimpleLogger:
    """Build a direct ``SimpleLogger``."""
    return SimpleLogger(setup, emitter=emitter)
