"""
maori-bench CLI Runner

Usage:
    python -m maori_bench.runner validate --suite tests.json
    python -m maori_bench.runner run --models openai/gpt-4o,anthropic/claude-3.5-sonnet
    python -m maori_bench.runner run --models gpt-4o --max-rpm 30 --max-tpm 60000 --retries 3
    python -m maori_bench.runner report --run results/20250101120000-1a2b3c4d
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from maori_bench.domain.value_objects import Progress
from maori_bench.harness_config import HarnessConfig, load_config
from maori_bench.model_config import load_models_config, parse_model_list, resolve_models
from maori_bench.reporting import load_report, print_run_summary
from maori_bench.suite_loader import load_suite, validate_suite_file
from maori_bench.use_cases.evaluation import RunOptions, run_benchmark


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="maori-bench",
        description="maori-bench: Māori LLM benchmark",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate the JSON test suite")
    validate.add_argument(
        "--suite",
        default="tests.json",
        help="Path to the test suite JSON file (default: tests.json)",
    )

    run = subparsers.add_parser("run", help="Run the benchmark suite against one or more models")
    run.add_argument(
        "-m", "--models",
        required=True,
        help="Comma-separated model names or provider ids",
    )
    run.add_argument(
        "--suite",
        default="tests.json",
        help="Path to the test suite JSON file (default: tests.json)",
    )
    run.add_argument(
        "--model-config",
        default="models.config.json",
        help="Path to the models config file (default: models.config.json)",
    )
    run.add_argument(
        "-c", "--concurrency",
        type=int,
        default=None,
        help="Max concurrent requests (default: HARNESS_MAX_CONCURRENT or 4)",
    )
    run.add_argument(
        "--max-rpm",
        type=int,
        default=None,
        help="Max requests per minute (default: HARNESS_MAX_RPM or 60)",
    )
    run.add_argument(
        "--max-tpm",
        type=int,
        default=None,
        help="Max estimated tokens per minute (default: HARNESS_MAX_TPM or 120000)",
    )
    run.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Retries on 429/5xx (default: HARNESS_RETRIES or 2)",
    )
    run.add_argument(
        "--timeout-seconds",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: HARNESS_TIMEOUT_SECONDS or 30)",
    )
    run.add_argument(
        "--out",
        default="results",
        help="Output directory for results (default: results)",
    )

    report = subparsers.add_parser("report", help="Print a summary for a given run directory")
    report.add_argument(
        "-r", "--run",
        required=True,
        help="Path to the run directory (e.g. results/<run-id>)",
    )

    return parser.parse_args(argv)


def apply_overrides(config: HarnessConfig, args: argparse.Namespace) -> HarnessConfig:
    """Apply CLI flags on top of the environment configuration"""
    scheduler = config.scheduler
    if args.concurrency is not None:
        scheduler = replace(scheduler, max_concurrent=args.concurrency)
    if args.max_rpm is not None:
        scheduler = replace(scheduler, max_requests_per_minute=args.max_rpm)
    if args.max_tpm is not None:
        scheduler = replace(scheduler, max_tokens_per_minute=args.max_tpm)

    retry = config.retry
    if args.retries is not None:
        retry = replace(retry, retries=args.retries)

    openrouter = config.openrouter
    if args.timeout_seconds is not None:
        openrouter = replace(openrouter, timeout_seconds=args.timeout_seconds)

    return replace(config, scheduler=scheduler, retry=retry, openrouter=openrouter)


def _print_progress(progress: Progress) -> None:
    last = progress.last
    if last is None:
        print(f"[{progress.completed}/{progress.total}]")
        return
    status = f"ERROR: {last.error[:100]}" if last.error else f"Score: {last.score:.2f}"
    print(
        f"[{progress.completed}/{progress.total}] {last.model} | {last.test_id} "
        f"| {status} | Latency: {last.latency_ms}ms"
    )


def cmd_validate(args: argparse.Namespace) -> int:
    suite_path = Path(args.suite).resolve()
    print(f"\n=== Validating test suite: {suite_path} ===\n")
    try:
        issues = validate_suite_file(suite_path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"  Validation error: {e}")
        return 1

    if issues:
        print(f"  Validation failed with {len(issues)} error(s):")
        for issue in issues:
            print(f"   - {issue.format()}")
        return 1

    with open(suite_path, "r", encoding="utf-8") as f:
        count = len(json.load(f))
    print(f"  Validation passed ({count} tests).")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config = apply_overrides(load_config(), args)
    suite_path = Path(args.suite).resolve()

    print(f"\n=== Loading test suite: {suite_path} ===\n")
    try:
        issues = validate_suite_file(suite_path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: Could not read suite: {e}")
        return 1
    if issues:
        print("ERROR: Suite validation failed. Use `maori-bench validate` for details.")
        return 1
    suite = load_suite(suite_path)

    models = resolve_models(parse_model_list(args.models), load_models_config(args.model_config))
    if not models:
        print("ERROR: No models resolved. Provide --models or a valid models config.")
        return 1

    total = len(models) * len(suite)
    print(f"  Tests: {len(suite)}")
    print(f"  Models: {[m.name for m in models]}")
    print(f"  Concurrency: {config.scheduler.max_concurrent}")
    print(f"  Budgets: {config.scheduler.max_requests_per_minute} req/min, "
          f"{config.scheduler.max_tokens_per_minute} tokens/min")
    print(f"  Retries: {config.retry.retries}")
    print()
    print(f"=== Running Benchmark ({total} total) ===\n")

    try:
        run = run_benchmark(
            RunOptions(
                suite=suite,
                models=models,
                out_dir=args.out,
                suite_path=str(suite_path),
                config=config,
            ),
            on_progress=_print_progress,
        )
    except Exception as e:
        print(f"ERROR: Run failed: {e}")
        logging.getLogger(__name__).exception("Run failed")
        return 1

    print_run_summary(run)
    print("=== Output ===\n")
    print(f"  Run directory: {run.run_dir}")
    print()
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    run_dir = Path(args.run).resolve()
    try:
        run = load_report(run_dir)
    except FileNotFoundError:
        print(f"Report not found at {run_dir / 'report.json'}")
        return 1
    print_run_summary(run)
    return 0


COMMANDS = {
    "validate": cmd_validate,
    "run": cmd_run,
    "report": cmd_report,
}


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("HARNESS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args(argv)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
