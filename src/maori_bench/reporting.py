"""
Run Reporting

Writes per-unit trace files and run artifacts, and renders run summaries.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from maori_bench.domain.entities import Run, RunResult

TRACES_DIRNAME = "traces"
REPORT_FILENAME = "report.json"
SUMMARY_FILENAME = "summary.md"
RAW_RESULTS_FILENAME = "raw_results.csv"


def sanitize(name: str) -> str:
    """Replace anything outside [A-Za-z0-9_.-] with an underscore"""
    return re.sub(r"[^a-zA-Z0-9_.-]", "_", name)


def trace_filename(result: RunResult) -> str:
    """<model>__<test_id>.json, with a __FAIL suffix for errored or non-perfect units"""
    status = "__FAIL" if result.failed else ""
    return f"{sanitize(result.model)}__{sanitize(result.test_id)}{status}.json"


def _write_json(path: Path, data: dict) -> None:
    # default=str keeps odd raw payload values (datetimes etc.) serializable
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, default=str), encoding="utf-8")


def write_trace(run_dir: str | Path, result: RunResult) -> Path:
    """
    Write the trace artifact for one unit

    Args:
        run_dir: Run directory (traces go to <run_dir>/traces)
        result: Unit result

    Returns:
        Path of the written trace
    """
    path = Path(run_dir) / TRACES_DIRNAME / trace_filename(result)
    _write_json(path, {
        "test_id": result.test_id,
        "model": result.model,
        "provider_id": result.provider_id,
        "prompt": result.prompt,
        "response": result.response,
        "score": result.score,
        "latency_ms": result.latency_ms,
        "expected": result.expected,
        "error": result.error,
        "raw": result.raw,
    })
    return path


def write_report(run: Run) -> Path:
    """Write <run_dir>/report.json"""
    path = Path(run.run_dir) / REPORT_FILENAME
    _write_json(path, run.to_dict())
    return path


def load_report(run_dir: str | Path) -> Run:
    """
    Load a run from <run_dir>/report.json

    Raises:
        FileNotFoundError: If the report does not exist
    """
    path = Path(run_dir) / REPORT_FILENAME
    with open(path, "r", encoding="utf-8") as f:
        return Run.from_dict(json.load(f))


def save_raw_results(results: list[RunResult], raw_path: str | Path) -> None:
    """Save one row per unit result to CSV (raw payloads are left out)"""
    columns = [f for f in RunResult.__dataclass_fields__ if f != "raw"]
    rows = [{k: v for k, v in asdict(r).items() if k != "raw"} for r in results]
    raw_df = pd.DataFrame(rows, columns=columns)
    raw_df["expected"] = raw_df["expected"].map(
        lambda v: v if isinstance(v, str) or v is None else json.dumps(v, ensure_ascii=False)
    )
    Path(raw_path).parent.mkdir(parents=True, exist_ok=True)
    raw_df.to_csv(raw_path, index=False)


def format_pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _run_label(run: Run) -> str:
    return Path(run.run_dir).name if run.run_dir else run.run_id


def render_run_summary_markdown(run: Run) -> str:
    """Render a Markdown summary of a run"""
    lines = [
        f"# Run {_run_label(run)}",
        "",
        f"- Models: {', '.join(m.name for m in run.models)}",
        f"- Tests: {len(run.results)}",
        f"- Overall Avg: {format_pct(run.summary.overall_avg)}",
        "",
        "## By Model",
    ]
    for model, s in run.summary.by_model.items():
        lines.append(f"- {model}: {format_pct(s.avg_score)} ({s.tests} tests)")
    return "\n".join(lines)


def write_summary_markdown(run: Run) -> Path:
    """Write <run_dir>/summary.md"""
    path = Path(run.run_dir) / SUMMARY_FILENAME
    path.write_text(render_run_summary_markdown(run), encoding="utf-8")
    return path


def print_run_summary(run: Run) -> None:
    """Print a short run summary to stdout"""
    print(f"\n=== Run {_run_label(run)} ===\n")
    print(f"  Models: {', '.join(m.name for m in run.models)}")
    print(f"  Tests: {len(run.results)}")
    print(f"  Overall avg: {format_pct(run.summary.overall_avg)}")
    print("  By model:")
    for model, s in run.summary.by_model.items():
        print(f"    - {model:<40} {format_pct(s.avg_score):>7} ({s.tests} tests)")
    print()
