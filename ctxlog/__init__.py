"""ctxlog/__init__.py - Public API for the ctxlog package.

ctxlog is a structured leveled logger with two modes. ``SimpleLogger`` emits
debug/info/warn/error records straight to a sink. ``ContextLogger`` holds debug
records back per execution flow and releases them, relabelled as INFO, only if
that flow logs an error; a flow that ends cleanly drops them.

Quick start:
    from ctxlog import LoggerSetup, create_context_logger, log_scope

    logger = create_context_logger(LoggerSetup(level="info"))

    @log_scope(logger)                  # binds a flow id, cleans up on exit
    def charge(order_id: int) -> None:
        logger.debug({"name": "charge.lookup", "order_id": order_id})   # withheld
        logger.info({"name": "charge.started", "order_id": order_id})   # emitted
        raise TimeoutError("gateway")   # error logged, then the debug line at INFO

Exported names:
    LoggerSetup:           Validated construction options.
    EnvSettings:           CTXLOG_* environment variables, via pydantic-settings.
    SimpleLogger:          Direct leveled logger.
    ContextLogger:         Buffering logger that flushes on error.
    create_logger:         Factory for ``SimpleLogger``.
    create_context_logger: Factory for ``ContextLogger``.
    log_scope:             Decorator / context manager owning a flow's stream.
    ExecutionContext:      Interface supplying the current execution id.
    ContextVarExecution:   ContextVar-backed execution identity.
    StaticExecution:       Fixed execution identity.
    BufferRegistry:        Per-flow stream storage.
    Emitter:               Sink interface; LoggingEmitter and CaptureEmitter
                           are the bundled implementations.
    Level:                 Severity enum.
"""

from .buffer import BufferRegistry, LogStream
from .config import EnvSettings, LoggerSetup
from .context import NO_EXECUTION_ID, ContextVarExecution, ExecutionContext, StaticExecution
from .contextual import ContextLogger, create_context_logger
from .core import SimpleLogger, create_logger
from .emitter import CaptureEmitter, Emitter, LoggingEmitter
from .errors import BufferSegmentError, ConfigurationError, CtxlogError
from .formatter import RecordFormatter, serialize_error
from .handler import JSONFormatter, PrettyFormatter
from .instrument import log_scope
from .levels import Level, should_emit

__all__ = [
    "LoggerSetup",
    "EnvSettings",
    "SimpleLogger",
    "ContextLogger",
    "create_logger",
    "create_context_logger",
    "log_scope",
    "ExecutionContext",
    "ContextVarExecution",
    "StaticExecution",
    "NO_EXECUTION_ID",
    "BufferRegistry",
    "LogStream",
    "Emitter",
    "LoggingEmitter",
    "CaptureEmitter",
    "JSONFormatter",
    "PrettyFormatter",
    "RecordFormatter",
    "serialize_error",
    "Level",
    "should_emit",
    "CtxlogError",
    "ConfigurationError",
    "BufferSegmentError",
]
__version__ = "0.1.0"
