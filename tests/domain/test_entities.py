"""Tests for domain entities and value objects"""

import dataclasses

import pytest

from maori_bench.domain.entities import (
    ModelSpec,
    ModelSummary,
    Run,
    RunResult,
    RunSummary,
    TestDefinition,
    WorkItem,
)
from maori_bench.domain.value_objects import Completion, Progress, TokenUsage


def _result(**overrides) -> RunResult:
    data = dict(
        test_id="kupu_001",
        model="gpt-4o",
        provider_id="openai/gpt-4o",
        prompt="Translate: water",
        response="wai",
        score=1.0,
        latency_ms=120,
    )
    data.update(overrides)
    return RunResult(**data)


class TestTestDefinition:
    def test_eval_type(self):
        test = TestDefinition(id="t1", task="translation", prompt="p", eval={"type": "exact"})
        assert test.eval_type == "exact"
        assert test.expected is None

    def test_unknown_eval_type_is_empty(self):
        test = TestDefinition(id="t1", task="translation", prompt="p", eval={})
        assert test.eval_type == ""


class TestWorkItem:
    def test_exposes_prompt(self):
        test = TestDefinition(id="t1", task="x", prompt="Kia ora?", eval={"type": "llm-judge"})
        item = WorkItem(model=ModelSpec("m", "p/m"), test=test, estimated_tokens=52)
        assert item.prompt == "Kia ora?"

    def test_is_immutable(self):
        test = TestDefinition(id="t1", task="x", prompt="p", eval={"type": "exact"})
        item = WorkItem(model=ModelSpec("m", "p/m"), test=test, estimated_tokens=52)
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.estimated_tokens = 1


class TestRunResult:
    def test_perfect_score_is_not_failed(self):
        assert _result().failed is False

    def test_partial_score_is_failed(self):
        assert _result(score=0.5).failed is True

    def test_error_is_failed(self):
        assert _result(score=1.0, error="boom").failed is True

    def test_from_dict_defaults(self):
        result = RunResult.from_dict({"test_id": "t", "model": "m", "provider_id": "p"})
        assert result.score == 0.0
        assert result.response == ""
        assert result.error is None


class TestRun:
    def test_to_dict_and_back(self):
        run = Run(
            run_id="20250101000000-abcd1234",
            run_dir="/tmp/results/20250101000000-abcd1234",
            started_at="2025-01-01T00:00:00+00:00",
            finished_at="2025-01-01T00:01:00+00:00",
            suite_path="tests.json",
            models=[ModelSpec("gpt-4o", "openai/gpt-4o", {"temperature": 0})],
            results=[_result(), _result(test_id="kupu_002", score=0.0, error="boom", response="")],
            summary=RunSummary(by_model={"gpt-4o": ModelSummary(tests=2, avg_score=0.5)}, overall_avg=0.5),
        )
        restored = Run.from_dict(run.to_dict())
        assert restored == run


class TestValueObjects:
    def test_token_usage_rejects_negative(self):
        with pytest.raises(ValueError):
            TokenUsage(input_tokens=-1)

    def test_completion_defaults(self):
        completion = Completion(text="wai")
        assert completion.raw is None
        assert completion.usage is None

    def test_progress(self):
        progress = Progress(completed=1, total=6)
        assert progress.last is None
