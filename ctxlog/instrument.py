"""instrument.py - Automatic stream lifecycle for a unit of work.

A ``ContextLogger`` stream must be flushed or deleted when its flow ends, or it
stays in memory forever. ``log_scope`` takes care of that around a function call
or a ``with`` block:

    on entry:     binds a fresh execution id (when the logger uses
                  ``ContextVarExecution`` and no flow is active) and creates
                  the stream;
    on exception: logs it with ``logger.error()``, which replays the buffered
                  debug records, then re-raises;
    on exit:      deletes the stream, whatever happened.

Usage::

    from ctxlog import create_context_logger, log_scope

    logger = create_context_logger()

    @log_scope(logger)
    async def handle(request):
        logger.debug({"name": "request.body", "details": request.body})
        ...

    with log_scope(logger, "nightly.export"):
        run_export()

Nested scopes on the same flow are transparent: only the outermost one creates,
flushes and deletes the stream, so an exception is logged once.
"""

import contextvars
import inspect
from contextlib import ExitStack
from functools import wraps
from typing import Callable, List, Optional, Tuple

from .contextual import ContextLogger
from .context import ContextVarExecution

# Execution id owned by the innermost active scope in this context.
_owned_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "ctxlog_scope_owner", default=None
)


class log_scope:
    """Decorator and context manager that owns a flow's log stream.

    Args:
        logger: The context logger whose stream is managed.
        name: Event name used when an exception is logged. Defaults to the
            decorated function's ``__qualname__``; required in practice for
            ``with`` blocks, where it falls back to ``"scope.failed"``.

    Raises:
        TypeError: If ``logger`` is not a ``ContextLogger``.

    Note:
        Exceptions are never swallowed. ``BaseException`` subclasses that are
        not ``Exception`` (``KeyboardInterrupt``, ``asyncio.CancelledError``)
        are not logged, but the stream is still deleted.

        One instance may be re-entered in nested ``with`` blocks; each entry
        keeps its own state. Share an instance across threads only through
        the decorator, which opens a fresh scope per call.
    """

    def __init__(self, logger: ContextLogger, name: Optional[str] = None) -> None:
        if not isinstance(logger, ContextLogger):
            raise TypeError(
                f"log_scope needs a ContextLogger, got {type(logger).__name__}"
            )
        self._logger = logger
        self._name = name
        # (exit stack, owner token or None), one entry per active __enter__.
        self._frames: List[Tuple[ExitStack, Optional[contextvars.Token]]] = []

    def __enter__(self) -> "log_scope":
        stack = ExitStack()
        logger = self._logger
        context = logger.context

        if isinstance(context, ContextVarExecution) and logger.active_execution_id() is None:
            stack.enter_context(context.bind())

        token = None
        execution_id = logger.active_execution_id()
        if execution_id is not None and _owned_id.get() != execution_id:
            token = _owned_id.set(execution_id)
            logger.create_log_stream()
        self._frames.append((stack, token))
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        stack, token = self._frames.pop()
        with stack:
            if token is not None:
                try:
                    if isinstance(exc, Exception):
                        self._logger.error(
                            {"name": self._name or "scope.failed", "error": exc}
                        )
                finally:
                    self._logger.delete_log_stream()
                    _owned_id.reset(token)
        return False

    def __call__(self, func: Callable) -> Callable:
        name = self._name or func.__qualname__
        logger = self._logger

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with log_scope(logger, name):
                    return await func(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            # A fresh scope per call keeps concurrent calls independent.
            with log_scope(logger, name):
                return func(*args, **kwargs)

        return wrapper
