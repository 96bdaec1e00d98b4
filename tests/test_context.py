"""test_context.py - Unit tests for the execution identity adapters.

Covers:
    - ContextVarExecution returns the sentinel outside any binding
    - bind() sets, nests and restores the execution id
    - bind() generates an 8-char hex id when none is given
    - Thread and asyncio Task isolation
    - StaticExecution returns its reassignable id
"""

import asyncio
import threading

import pytest

from ctxlog.context import (
    NO_EXECUTION_ID,
    ContextVarExecution,
    ExecutionContext,
    StaticExecution,
)


# ---------------------------------------------------------------------------
# ContextVarExecution
# ---------------------------------------------------------------------------


class TestContextVarExecution:
    def setup_method(self):
        self.ctx = ContextVarExecution()

    def test_unbound_context_returns_sentinel(self):
        """With no binding, current_execution_id() returns NO_EXECUTION_ID."""
        assert self.ctx.current_execution_id() == NO_EXECUTION_ID

    def test_bind_sets_given_id(self):
        """Inside bind('req-1') the current id is 'req-1'."""
        with self.ctx.bind("req-1") as bound:
            assert bound == "req-1"
            assert self.ctx.current_execution_id() == "req-1"

    def test_bind_restores_previous_id_on_exit(self):
        """Leaving the with-block restores the sentinel."""
        with self.ctx.bind("req-1"):
            pass
        assert self.ctx.current_execution_id() == NO_EXECUTION_ID

    def test_bind_restores_previous_id_on_exception(self):
        """The binding is undone even when the block raises."""
        with pytest.raises(RuntimeError):
            with self.ctx.bind("req-1"):
                raise RuntimeError("boom")
        assert self.ctx.current_execution_id() == NO_EXECUTION_ID

    def test_nested_bind_restores_outer_id(self):
        """Nested bindings unwind to the enclosing id."""
        with self.ctx.bind("outer"):
            with self.ctx.bind("inner"):
                assert self.ctx.current_execution_id() == "inner"
            assert self.ctx.current_execution_id() == "outer"

    def test_bind_without_id_generates_hex_id(self):
        """bind() with no argument yields an 8-character hex id."""
        with self.ctx.bind() as bound:
            assert len(bound) == 8
            int(bound, 16)  # raises ValueError if not valid hex
            assert self.ctx.current_execution_id() == bound

    def test_generated_ids_differ(self):
        """Two generated bindings get different ids."""
        with self.ctx.bind() as first:
            pass
        with self.ctx.bind() as second:
            pass
        assert first != second

    def test_separate_instances_do_not_share_bindings(self):
        """Each ContextVarExecution owns its own ContextVar."""
        other = ContextVarExecution()
        with self.ctx.bind("mine"):
            assert other.current_execution_id() == NO_EXECUTION_ID

    def test_is_an_execution_context(self):
        """ContextVarExecution implements the ExecutionContext interface."""
        assert isinstance(self.ctx, ExecutionContext)


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


class TestContextVarExecutionIsolation:
    def test_binding_is_isolated_per_thread(self):
        """Each thread sees only its own binding."""
        ctx = ContextVarExecution()
        seen = {}
        barrier = threading.Barrier(2)

        def worker(name: str):
            with ctx.bind(name):
                barrier.wait()
                seen[name] = ctx.current_execution_id()

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("t1", "t2")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert seen == {"t1": "t1", "t2": "t2"}

    def test_binding_is_isolated_per_task(self):
        """Interleaved asyncio Tasks keep their own ids across awaits."""
        ctx = ContextVarExecution()

        async def worker(name: str):
            with ctx.bind(name):
                await asyncio.sleep(0)
                first = ctx.current_execution_id()
                await asyncio.sleep(0)
                return first, ctx.current_execution_id()

        async def main():
            return await asyncio.gather(worker("a"), worker("b"))

        assert asyncio.run(main()) == [("a", "a"), ("b", "b")]


# ---------------------------------------------------------------------------
# StaticExecution
# ---------------------------------------------------------------------------


class TestStaticExecution:
    def test_static_execution_returns_given_id(self):
        """current_execution_id() returns the configured id."""
        assert StaticExecution("A").current_execution_id() == "A"

    def test_static_execution_defaults_to_sentinel(self):
        """Without an id, StaticExecution reports no active flow."""
        assert StaticExecution().current_execution_id() == NO_EXECUTION_ID

    def test_static_execution_id_is_reassignable(self):
        """Assigning execution_id switches the current flow."""
        ctx = StaticExecution("A")
        ctx.execution_id = "B"
        assert ctx.current_execution_id() == "B"
