"""context.py - Execution identity for context-scoped logging.

``ContextLogger`` needs exactly one thing from its environment: the identifier
of the logical execution flow making the current call. That capability is
expressed by the small ``ExecutionContext`` interface and injected at
construction, so the logger never reaches for hidden global state and tests
can substitute a fixed identity.

Two implementations are provided:

    ContextVarExecution: Backed by ``contextvars.ContextVar``, which gives
                         automatic isolation across threads and asyncio Tasks.
                         ``bind()`` opens a scope with a fresh or given id.

    StaticExecution:     A plain, reassignable id. Useful in scripts and tests.

The logger only ever reads the identifier; starting and ending a flow is the
adapter's (or the application's) business.
"""

import contextvars
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

# Returned when no flow is bound. ContextLogger never buffers under it.
NO_EXECUTION_ID = "-"


class ExecutionContext(ABC):
    """Supplies the current logical execution identifier.

    Example:
        >>> class RequestContext(ExecutionContext):
        ...     def current_execution_id(self) -> str:
        ...         return current_request().id
    """

    @abstractmethod
    def current_execution_id(self) -> str:
        """Return the opaque identifier of the caller's execution flow."""


class ContextVarExecution(ExecutionContext):
    """Execution identity stored in a ``contextvars.ContextVar``.

    Each instance owns its own ContextVar, so two loggers with separate
    ``ContextVarExecution`` objects do not see each other's bindings. Share one
    instance wherever a single notion of "current request" is wanted.

    New threads start with an empty context, and ``asyncio`` Tasks copy the
    context at creation, so a binding made inside a task is invisible to its
    siblings.

    Example:
        >>> ctx = ContextVarExecution()
        >>> ctx.current_execution_id()
        '-'
        >>> with ctx.bind("req-1"):
        ...     ctx.current_execution_id()
        'req-1'
    """

    def __init__(self, name: str = "ctxlog_execution_id") -> None:
        self._execution_id: contextvars.ContextVar[str] = contextvars.ContextVar(
            name, default=NO_EXECUTION_ID
        )

    def current_execution_id(self) -> str:
        return self._execution_id.get()

    @contextmanager
    def bind(self, execution_id: Optional[str] = None) -> Iterator[str]:
        """Bind an execution id for the duration of the ``with`` block.

        The previous value is restored on exit, normal or exceptional, so
        scopes nest cleanly.

        Args:
            execution_id: Identifier to bind. When omitted, a short random hex
                id (first 8 characters of a uuid4) is generated.

        Yields:
            The bound identifier.
        """
        if execution_id is None:
            execution_id = uuid.uuid4().hex[:8]
        token = self._execution_id.set(execution_id)
        try:
            yield execution_id
        finally:
            self._execution_id.reset(token)


class StaticExecution(ExecutionContext):
    """A fixed execution id, reassignable through the ``execution_id`` attribute."""

    def __init__(self, execution_id: str = NO_EXECUTION_ID) -> None:
        self.execution_id = execution_id

    def current_execution_id(self) -> str:
        return self.execution_id
