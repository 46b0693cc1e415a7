"""
Use Cases Layer

Aggregates business logic and provides use cases called from the runner.
"""

from maori_bench.use_cases.evaluation import (
    RunOptions,
    build_messages,
    build_work_items,
    execute_unit,
    failure_result,
    generate_run_id,
    run_benchmark,
    summarize,
)

__all__ = [
    "RunOptions",
    "build_messages",
    "build_work_items",
    "execute_unit",
    "failure_result",
    "generate_run_id",
    "run_benchmark",
    "summarize",
]
