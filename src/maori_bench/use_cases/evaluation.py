"""
Benchmark Execution

Handles single units of work through full benchmark runs, including result aggregation.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Callable

import pandas as pd

from maori_bench.domain.constants import DEFAULT_SYSTEM_PROMPT, EXACT_SYSTEM_PROMPT
from maori_bench.domain.entities import (
    ModelSpec,
    ModelSummary,
    Run,
    RunResult,
    RunSummary,
    TestDefinition,
    WorkItem,
)
from maori_bench.domain.value_objects import Progress
from maori_bench.harness_config import HarnessConfig, RetryConfig, TokenEstimateConfig
from maori_bench.infrastructure.model_clients.base import CompletionClient
from maori_bench.infrastructure.model_clients.factory import create_client
from maori_bench.reporting import (
    RAW_RESULTS_FILENAME,
    TRACES_DIRNAME,
    save_raw_results,
    write_report,
    write_summary_markdown,
    write_trace,
)
from maori_bench.retry import retry_with_config
from maori_bench.scheduler import BudgetedScheduler
from maori_bench.scoring.scorer import evaluate
from maori_bench.token_estimator import estimate_tokens

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Inputs for a benchmark run"""
    suite: list[TestDefinition]
    models: list[ModelSpec]
    out_dir: str | Path = "results"
    suite_path: str = ""
    config: HarnessConfig = field(default_factory=HarnessConfig)


def generate_run_id(now: datetime | None = None) -> str:
    """UTC timestamp plus a short random suffix, e.g. 20250101120000-1a2b3c4d"""
    now = now or datetime.now(timezone.utc)
    return f"{now.strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8]}"


def build_work_items(
    models: list[ModelSpec],
    suite: list[TestDefinition],
    token_config: TokenEstimateConfig | None = None,
) -> list[WorkItem]:
    """
    Expand the model x test cross-product (models outer, tests inner).

    Args:
        models: Resolved models
        suite: Validated tests
        token_config: Token estimation constants

    Returns:
        list[WorkItem]: One item per (model, test)
    """
    return [
        WorkItem(
            model=model,
            test=test,
            estimated_tokens=estimate_tokens(test.prompt, token_config),
        )
        for model in models
        for test in suite
    ]


def build_messages(test: TestDefinition) -> list[dict[str, str]]:
    """System prompt (strict for exact evaluation) followed by the test prompt"""
    system = EXACT_SYSTEM_PROMPT if test.eval_type == "exact" else DEFAULT_SYSTEM_PROMPT
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": test.prompt},
    ]


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


def failure_result(item: WorkItem, error: BaseException, latency_ms: int = 0) -> RunResult:
    """Zero-scored result for a unit that could not complete"""
    return RunResult(
        test_id=item.test.id,
        model=item.model.name,
        provider_id=item.model.provider_id,
        prompt=item.prompt,
        response="",
        score=0.0,
        latency_ms=latency_ms,
        expected=item.test.expected,
        error=str(error) or type(error).__name__,
    )


def execute_unit(
    item: WorkItem,
    client: CompletionClient,
    retry_config: RetryConfig | None = None,
    *,
    grader_model: str | None = None,
) -> RunResult:
    """
    Execute a single unit of work.

    The completion call is retried on transient failures; latency covers the
    retried call only. Any failure, including an evaluator failure, yields a
    zero-scored result carrying the error message instead of raising.

    Args:
        item: Unit of work
        client: Completion client
        retry_config: Retry configuration (default: RetryConfig())
        grader_model: Grader model for llm-judge tests

    Returns:
        RunResult: Result of the unit
    """
    if retry_config is None:
        retry_config = RetryConfig()

    messages = build_messages(item.test)
    params = dict(item.model.params or {})

    start = time.perf_counter()
    try:
        completion = retry_with_config(
            lambda: client.complete(item.model.provider_id, messages, params),
            retry_config,
        )
        latency_ms = _elapsed_ms(start)
        judge_kwargs = {"grader_model": grader_model} if grader_model else {}
        unit_score = evaluate(item.test, completion.text, client, **judge_kwargs)
    except Exception as e:
        logger.warning("Unit %s | %s failed: %s", item.model.name, item.test.id, e)
        return failure_result(item, e, _elapsed_ms(start))

    return RunResult(
        test_id=item.test.id,
        model=item.model.name,
        provider_id=item.model.provider_id,
        prompt=item.prompt,
        response=completion.text,
        score=unit_score,
        latency_ms=latency_ms,
        raw=completion.raw,
        expected=item.test.expected,
    )


def summarize(results: list[RunResult]) -> RunSummary:
    """
    Aggregate per-model and overall mean scores.

    Args:
        results: Settled unit results (any order)

    Returns:
        RunSummary: Per-model {tests, avg_score} and the overall average
    """
    if not results:
        return RunSummary()

    df = pd.DataFrame({
        "model": [r.model for r in results],
        "score": [float(r.score) for r in results],
    })
    grouped = df.groupby("model", sort=True)["score"].agg(["count", "mean"])
    by_model = {
        str(model_name): ModelSummary(tests=int(row["count"]), avg_score=float(row["mean"]))
        for model_name, row in grouped.iterrows()
    }
    return RunSummary(by_model=by_model, overall_avg=float(df["score"].mean()))


def run_benchmark(
    options: RunOptions,
    client: CompletionClient | None = None,
    on_progress: Callable[[Progress], None] | None = None,
) -> Run:
    """
    Execute every (model, test) unit under the configured budgets.

    Client construction, configuration validation and output directory
    creation happen before anything is scheduled; failures there propagate to
    the caller, and invalid configuration leaves nothing on disk. Afterwards
    no single unit can abort the run: every unit yields exactly one result.

    Args:
        options: Suite, models, output directory and configuration
        client: Completion client (created from config if not provided)
        on_progress: Called once per settled unit with a Progress snapshot

    Returns:
        Run: The finalized run (also written to <out_dir>/<run_id>/report.json)
    """
    config = options.config
    if client is None:
        client = create_client(config)
    if config.retry.retries < 0:
        raise ValueError(f"retries must be at least 0, got {config.retry.retries}.")
    items = build_work_items(options.models, options.suite, config.tokens)
    scheduler = BudgetedScheduler.from_config(config.scheduler)

    run_id = generate_run_id()
    run_dir = Path(options.out_dir).resolve() / run_id

    total = len(items)
    results: list[RunResult] = []
    progress = {"completed": 0}
    lock = threading.Lock()
    started_at = datetime.now(timezone.utc).isoformat()

    def _run_unit(item: WorkItem) -> RunResult:
        result = execute_unit(
            item, client, config.retry, grader_model=config.llm_judge.grader_model
        )
        write_trace(run_dir, result)
        return result

    def _on_settled(item: WorkItem, future: Future) -> None:
        # Never-admissible units, trace write failures and aborted tasks end up here
        error = future.exception()
        if error is None:
            result = future.result()
        else:
            logger.warning("Unit %s | %s failed: %s", item.model.name, item.test.id, error)
            result = failure_result(item, error)
            try:
                write_trace(run_dir, result)
            except OSError as write_error:
                logger.warning("Could not write trace for %s | %s: %s", item.model.name, item.test.id, write_error)

        with lock:
            results.append(result)
            progress["completed"] += 1
            if on_progress is not None:
                on_progress(Progress(completed=progress["completed"], total=total, last=result))

    logger.info("Run %s: %d models x %d tests = %d units", run_id, len(options.models), len(options.suite), total)

    # Leaving the block waits for every unit and its completion callback
    with scheduler:
        (run_dir / TRACES_DIRNAME).mkdir(parents=True, exist_ok=True)
        for item in items:
            future = scheduler.schedule(partial(_run_unit, item), item.estimated_tokens)
            future.add_done_callback(partial(_on_settled, item))

    finished_at = datetime.now(timezone.utc).isoformat()
    final_results = list(results)

    run = Run(
        run_id=run_id,
        run_dir=str(run_dir),
        started_at=started_at,
        finished_at=finished_at,
        suite_path=options.suite_path,
        models=list(options.models),
        results=final_results,
        summary=summarize(final_results),
    )
    write_report(run)
    write_summary_markdown(run)
    save_raw_results(final_results, run_dir / RAW_RESULTS_FILENAME)
    return run
