"""test_instrument.py - Unit and integration tests for log_scope.

Covers:
    - Successful calls leave no stream behind and emit nothing buffered
    - Exceptions are logged once, replay the buffer and are re-raised
    - Context-manager form, sync and async decorators
    - Nested scopes on one flow are transparent, including a reused instance
    - Concurrent async calls get independent flows
    - Scopes over StaticExecution and inside a manual bind()
    - BaseException outside Exception is not logged but still cleaned up
"""

import asyncio
import inspect

import pytest

from ctxlog.config import LoggerSetup
from ctxlog.context import ContextVarExecution, StaticExecution
from ctxlog.contextual import ContextLogger
from ctxlog.core import SimpleLogger
from ctxlog.emitter import CaptureEmitter
from ctxlog.instrument import log_scope


def _logger(context=None):
    sink = CaptureEmitter()
    logger = ContextLogger(
        SimpleLogger(LoggerSetup(level="info"), emitter=sink),
        context if context is not None else ContextVarExecution(),
    )
    return logger, sink


# ---------------------------------------------------------------------------
# Decorator: sync
# ---------------------------------------------------------------------------


class TestLogScopeDecorator:
    def setup_method(self):
        self.logger, self.sink = _logger()

    def test_successful_call_discards_buffer(self):
        """A call that returns normally emits no buffered records and leaks nothing."""
        logger = self.logger

        @log_scope(logger)
        def work():
            logger.debug("step")
            assert logger.has_pending() is True
            return 42

        assert work() == 42
        assert len(self.sink) == 0
        assert len(logger.registry) == 0

    def test_failing_call_logs_error_and_replays(self):
        """An exception is logged under the function's qualname, then re-raised."""
        logger = self.logger

        @log_scope(logger)
        def charge():
            logger.debug("lookup")
            logger.debug("reserve")
            raise TimeoutError("gateway")

        with pytest.raises(TimeoutError):
            charge()

        assert self.sink.levels == ["ERROR", "INFO", "INFO"]
        assert self.sink.names[0].endswith("charge")
        assert self.sink.names[1:] == ["lookup", "reserve"]
        assert self.sink.records[0]["event"]["error"] == {
            "type": "TimeoutError",
            "message": "gateway",
        }
        assert len(logger.registry) == 0

    def test_explicit_name_is_used(self):
        """log_scope(logger, name) sets the error event name."""

        @log_scope(self.logger, "billing.charge")
        def charge():
            raise ValueError("declined")

        with pytest.raises(ValueError):
            charge()
        assert self.sink.names == ["billing.charge"]

    def test_decorator_preserves_metadata(self):
        """functools.wraps keeps name and docstring."""

        @log_scope(self.logger)
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_scope_binds_fresh_id_per_call(self):
        """Each call runs under its own generated execution id."""
        logger = self.logger
        seen = []

        @log_scope(logger)
        def work():
            seen.append(logger.active_execution_id())

        work()
        work()
        assert len(set(seen)) == 2
        assert all(seen)
        assert logger.active_execution_id() is None


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestLogScopeContextManager:
    def setup_method(self):
        self.logger, self.sink = _logger()

    def test_with_block_success_discards_buffer(self):
        """Leaving the block normally deletes the stream."""
        with log_scope(self.logger, "export"):
            self.logger.debug("row 1")
        assert len(self.sink) == 0
        assert len(self.logger.registry) == 0

    def test_with_block_failure_logs_and_reraises(self):
        """An exception in the block is logged under the scope name."""
        with pytest.raises(KeyError):
            with log_scope(self.logger, "export"):
                self.logger.debug("row 1")
                raise KeyError("column")
        assert self.sink.names == ["export", "row 1"]

    def test_with_block_without_name_uses_default(self):
        """A nameless with-block logs 'scope.failed'."""
        with pytest.raises(RuntimeError):
            with log_scope(self.logger):
                raise RuntimeError("x")
        assert self.sink.names == ["scope.failed"]

    def test_base_exception_is_not_logged_but_cleaned_up(self):
        """KeyboardInterrupt propagates unlogged; the stream is still removed."""
        with pytest.raises(KeyboardInterrupt):
            with log_scope(self.logger, "export"):
                self.logger.debug("row 1")
                raise KeyboardInterrupt
        assert len(self.sink) == 0
        assert len(self.logger.registry) == 0

    def test_rejects_simple_logger(self):
        """log_scope needs a ContextLogger."""
        with pytest.raises(TypeError):
            log_scope(SimpleLogger(LoggerSetup(), emitter=CaptureEmitter()))


# ---------------------------------------------------------------------------
# Nesting
# ---------------------------------------------------------------------------


class TestLogScopeNesting:
    def setup_method(self):
        self.logger, self.sink = _logger()

    def test_nested_failure_is_logged_once(self):
        """An exception crossing two scopes produces a single error record."""
        logger = self.logger

        @log_scope(logger, "inner")
        def inner():
            logger.debug("inner step")
            raise ValueError("deep")

        @log_scope(logger, "outer")
        def outer():
            logger.debug("outer step")
            inner()

        with pytest.raises(ValueError):
            outer()

        assert self.sink.levels == ["ERROR", "INFO", "INFO"]
        assert self.sink.names == ["outer", "outer step", "inner step"]

    def test_inner_success_keeps_outer_buffer(self):
        """An inner scope finishing cleanly does not drop the outer flow's records."""
        logger = self.logger

        @log_scope(logger, "inner")
        def inner():
            logger.debug("inner step")

        @log_scope(logger, "outer")
        def outer():
            logger.debug("outer step")
            inner()
            raise RuntimeError("after inner")

        with pytest.raises(RuntimeError):
            outer()

        assert self.sink.names == ["outer", "outer step", "inner step"]

    def test_scope_inside_manual_bind_uses_bound_id(self):
        """Within execution.bind('req-9') the scope owns 'req-9'."""
        logger = self.logger
        with logger.context.bind("req-9"):
            with log_scope(logger, "handler"):
                logger.debug("x")
                assert logger.registry.has_pending("req-9") is True
            assert "req-9" not in logger.registry

    def test_reentering_one_instance_restores_outer_state(self):
        """A scope object reused in a nested with block unwinds both entries."""
        logger = self.logger
        scope = log_scope(logger, "job")

        with pytest.raises(KeyError):
            with scope:
                outer_id = logger.active_execution_id()
                logger.debug("outer step")
                with scope:
                    assert logger.active_execution_id() == outer_id
                    logger.debug("inner step")
                assert logger.has_pending() is True
                raise KeyError("missing")

        assert logger.active_execution_id() is None
        assert len(logger.registry) == 0
        assert self.sink.names == ["job", "outer step", "inner step"]


# ---------------------------------------------------------------------------
# Other identity adapters
# ---------------------------------------------------------------------------


class TestLogScopeStaticExecution:
    def test_static_id_is_owned(self):
        """With StaticExecution the scope manages the configured id."""
        logger, sink = _logger(StaticExecution("job-1"))
        with pytest.raises(ValueError):
            with log_scope(logger, "job"):
                logger.debug("x")
                raise ValueError("v")
        assert sink.names == ["job", "x"]
        assert len(logger.registry) == 0

    def test_sentinel_static_id_is_transparent(self):
        """Without an active flow the scope neither logs nor buffers."""
        logger, sink = _logger(StaticExecution())
        with pytest.raises(ValueError):
            with log_scope(logger, "job"):
                raise ValueError("v")
        assert len(sink) == 0


# ---------------------------------------------------------------------------
# Decorator: async
# ---------------------------------------------------------------------------


class TestLogScopeAsync:
    def test_async_function_is_wrapped(self):
        """Coroutine functions stay awaitable and are scoped."""
        logger, sink = _logger()

        @log_scope(logger, "fetch")
        async def fetch():
            logger.debug("request sent")
            await asyncio.sleep(0)
            raise ConnectionError("reset")

        assert inspect.iscoroutinefunction(fetch)
        with pytest.raises(ConnectionError):
            asyncio.run(fetch())
        assert sink.names == ["fetch", "request sent"]

    def test_concurrent_calls_are_isolated(self):
        """Concurrent scoped tasks replay only their own records."""
        logger, sink = _logger()

        @log_scope(logger, "job")
        async def job(n: int, fail: bool):
            for i in range(3):
                logger.debug({"name": f"job{n}-{i}"})
                await asyncio.sleep(0)
            if fail:
                raise RuntimeError(f"job{n}")

        async def main():
            return await asyncio.gather(
                job(1, False), job(2, True), job(3, False), return_exceptions=True
            )

        results = asyncio.run(main())

        assert isinstance(results[1], RuntimeError)
        assert sink.names == ["job", "job2-0", "job2-1", "job2-2"]
        assert len(logger.registry) == 0
