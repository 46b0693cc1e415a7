"""
Domain Entities

Defines the primary data structures used in a benchmark run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ModelSpec:
    """A model to benchmark (display name + OpenRouter provider id)"""
    name: str
    provider_id: str
    params: dict[str, Any] | None = None


@dataclass(frozen=True)
class TestDefinition:
    """A single validated test from the suite"""
    __test__ = False  # not a pytest class

    id: str
    task: str
    prompt: str
    eval: dict[str, Any]
    expected: Any = None
    metadata: dict[str, Any] | None = None

    @property
    def eval_type(self) -> str:
        return str(self.eval.get("type", ""))


@dataclass(frozen=True)
class WorkItem:
    """One (model, test) unit of work"""
    model: ModelSpec
    test: TestDefinition
    estimated_tokens: int

    @property
    def prompt(self) -> str:
        return self.test.prompt


@dataclass(frozen=True)
class RunResult:
    """Result of executing a single unit of work"""
    test_id: str
    model: str
    provider_id: str
    prompt: str
    response: str
    score: float
    latency_ms: int
    raw: Any = None
    expected: Any = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """True when the unit errored or did not score a perfect 1"""
        return bool(self.error) or self.score < 1

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RunResult":
        return cls(
            test_id=data["test_id"],
            model=data["model"],
            provider_id=data["provider_id"],
            prompt=data.get("prompt", ""),
            response=data.get("response", ""),
            score=float(data.get("score", 0.0)),
            latency_ms=int(data.get("latency_ms", 0)),
            raw=data.get("raw"),
            expected=data.get("expected"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ModelSummary:
    """Per-model aggregate"""
    tests: int
    avg_score: float


@dataclass(frozen=True)
class RunSummary:
    """Per-model and overall mean scores"""
    by_model: dict[str, ModelSummary] = field(default_factory=dict)
    overall_avg: float = 0.0

    def to_dict(self) -> dict:
        return {
            "by_model": {name: asdict(s) for name, s in self.by_model.items()},
            "overall_avg": self.overall_avg,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RunSummary":
        by_model = {
            name: ModelSummary(tests=int(s["tests"]), avg_score=float(s["avg_score"]))
            for name, s in data.get("by_model", {}).items()
        }
        return cls(by_model=by_model, overall_avg=float(data.get("overall_avg", 0.0)))


@dataclass
class Run:
    """A complete benchmark run"""
    run_id: str
    run_dir: str
    started_at: str
    finished_at: str
    suite_path: str
    models: list[ModelSpec]
    results: list[RunResult]
    summary: RunSummary

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "run_dir": self.run_dir,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "suite_path": self.suite_path,
            "models": [asdict(m) for m in self.models],
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Run":
        """Rebuild a run from a parsed report.json"""
        return cls(
            run_id=data["run_id"],
            run_dir=data.get("run_dir", ""),
            started_at=data.get("started_at", ""),
            finished_at=data.get("finished_at", ""),
            suite_path=data.get("suite_path", ""),
            models=[
                ModelSpec(name=m["name"], provider_id=m["provider_id"], params=m.get("params"))
                for m in data.get("models", [])
            ],
            results=[RunResult.from_dict(r) for r in data.get("results", [])],
            summary=RunSummary.from_dict(data.get("summary", {})),
        )
