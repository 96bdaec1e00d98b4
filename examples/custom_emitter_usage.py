"""examples/custom_emitter_usage.py - Plug in your own sink.

Shows how to subclass Emitter to send records anywhere, here to an in-memory
list grouped by level, and how to drive a ContextLogger with a fixed
StaticExecution identity, e.g. inside a batch job.

Run:
    python examples/custom_emitter_usage.py
"""

from collections import defaultdict
from typing import Any, Dict, List

from ctxlog import (
    ContextLogger,
    Emitter,
    Level,
    LoggerSetup,
    SimpleLogger,
    StaticExecution,
)


class LevelBucketEmitter(Emitter):
    """Keeps emitted event names in one list per level."""

    def __init__(self) -> None:
        self.buckets: Dict[str, List[str]] = defaultdict(list)

    def emit(self, level: Level, record: Dict[str, Any]) -> None:
        self.buckets[level.label].append(record["event"]["name"])


if __name__ == "__main__":
    sink = LevelBucketEmitter()
    job = StaticExecution("batch-0")
    logger = ContextLogger(SimpleLogger(LoggerSetup(level="debug"), emitter=sink), job)

    for batch in range(3):
        job.execution_id = f"batch-{batch}"
        logger.debug({"name": f"batch-{batch}.rows", "count": 100})
        if batch == 1:
            logger.error({"name": f"batch-{batch}.failed", "error": ValueError("bad row 42")})
        else:
            logger.info({"name": f"batch-{batch}.done"})
            logger.delete_log_stream()

    for label, names in sink.buckets.items():
        print(f"{label:5} {names}")
    # INFO  ['batch-0.done', 'batch-1.rows', 'batch-2.done']
    # ERROR ['batch-1.failed']
