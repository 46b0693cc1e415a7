"""
Tests for the budgeted scheduler

Covers the rolling window, the three admission budgets, head-of-line
ordering and lifecycle (shutdown, cancellation).
"""

import threading
import time

import pytest

from maori_bench.harness_config import SchedulerConfig
from maori_bench.scheduler import BudgetedScheduler, BudgetExceededError, RateWindow


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def _scheduler(**kwargs) -> BudgetedScheduler:
    params = {
        "max_concurrent": 4,
        "max_requests_per_minute": 1000,
        "max_tokens_per_minute": 1_000_000,
        "poll_interval": 0.01,
    }
    params.update(kwargs)
    return BudgetedScheduler(
        params.pop("max_concurrent"),
        params.pop("max_requests_per_minute"),
        params.pop("max_tokens_per_minute"),
        **params,
    )


class TestRateWindow:
    def test_counts_recorded_entries(self):
        window = RateWindow(60.0)
        window.advance(0.0)
        window.record(0.0, 10)
        window.record(1.0, 15)
        assert window.request_count == 2
        assert window.token_sum == 25

    def test_entry_exactly_window_old_still_counts(self):
        window = RateWindow(60.0)
        window.record(0.0, 10)
        window.advance(60.0)
        assert window.request_count == 1
        assert window.token_sum == 10

    def test_prunes_entries_older_than_window(self):
        window = RateWindow(60.0)
        window.record(0.0, 10)
        window.record(30.0, 20)
        window.advance(60.5)
        assert window.request_count == 1
        assert window.token_sum == 20

    def test_never_rewinds(self):
        window = RateWindow(60.0)
        assert window.advance(100.0) == 100.0
        assert window.advance(50.0) == 100.0


class TestConstruction:
    @pytest.mark.parametrize("value", [0, -1, 1.5, True])
    def test_invalid_limits_rejected(self, value):
        with pytest.raises(ValueError):
            BudgetedScheduler(value, 10, 10)

    def test_invalid_poll_interval_rejected(self):
        with pytest.raises(ValueError, match="poll_interval"):
            BudgetedScheduler(1, 10, 10, poll_interval=0)

    def test_from_config(self):
        config = SchedulerConfig(
            max_concurrent=2,
            max_requests_per_minute=30,
            max_tokens_per_minute=5000,
            poll_interval_seconds=0.05,
        )
        with BudgetedScheduler.from_config(config) as scheduler:
            assert scheduler.max_concurrent == 2
            assert scheduler.max_requests_per_minute == 30
            assert scheduler.max_tokens_per_minute == 5000
            assert scheduler.poll_interval == 0.05


class TestExecution:
    def test_returns_task_result(self):
        with _scheduler() as scheduler:
            future = scheduler.schedule(lambda: 42, estimated_tokens=10)
            assert future.result(timeout=5) == 42

    def test_task_exception_settles_future(self):
        def boom():
            raise ValueError("boom")

        with _scheduler() as scheduler:
            future = scheduler.schedule(boom, estimated_tokens=10)
            error = future.exception(timeout=5)
        assert isinstance(error, ValueError)
        assert str(error) == "boom"

    def test_base_exception_settles_future(self):
        class Abort(BaseException):
            pass

        def abort():
            raise Abort("stop")

        with _scheduler(max_concurrent=1) as scheduler:
            aborted = scheduler.schedule(abort, estimated_tokens=10)
            after = scheduler.schedule(lambda: "next", estimated_tokens=10)
            assert isinstance(aborted.exception(timeout=5), Abort)
            assert after.result(timeout=5) == "next"

    def test_task_does_not_run_on_caller_thread(self):
        caller = threading.current_thread()
        with _scheduler() as scheduler:
            future = scheduler.schedule(threading.current_thread, estimated_tokens=10)
            assert future.result(timeout=5) is not caller

    def test_negative_estimate_rejected(self):
        with _scheduler() as scheduler:
            with pytest.raises(ValueError):
                scheduler.schedule(lambda: None, estimated_tokens=-1)

    def test_schedule_after_shutdown_raises(self):
        scheduler = _scheduler()
        scheduler.shutdown()
        with pytest.raises(RuntimeError):
            scheduler.schedule(lambda: None)

    def test_shutdown_drains_queue(self):
        scheduler = _scheduler(max_concurrent=1)
        futures = [scheduler.schedule(lambda: time.sleep(0.01), estimated_tokens=1) for _ in range(5)]
        scheduler.shutdown(wait=True)
        assert all(f.done() for f in futures)

    def test_cancelled_entry_is_skipped(self):
        release = threading.Event()
        calls = []

        with _scheduler(max_concurrent=1) as scheduler:
            blocker = scheduler.schedule(release.wait, estimated_tokens=1)
            assert _wait_until(blocker.running)
            skipped = scheduler.schedule(lambda: calls.append("skipped"), estimated_tokens=1)
            kept = scheduler.schedule(lambda: calls.append("kept"), estimated_tokens=1)
            assert skipped.cancel()
            release.set()
            kept.result(timeout=5)

        assert calls == ["kept"]


class TestConcurrencyBudget:
    def _track(self, state, lock, duration):
        def task():
            with lock:
                state["running"] += 1
                state["max"] = max(state["max"], state["running"])
            time.sleep(duration)
            with lock:
                state["running"] -= 1
        return task

    def test_max_concurrent_one_never_overlaps(self):
        state = {"running": 0, "max": 0}
        lock = threading.Lock()
        with _scheduler(max_concurrent=1) as scheduler:
            futures = [scheduler.schedule(self._track(state, lock, 0.02), estimated_tokens=1) for _ in range(5)]
        assert all(f.done() and f.exception() is None for f in futures)
        assert state["max"] == 1

    def test_concurrency_never_exceeds_limit(self):
        state = {"running": 0, "max": 0}
        lock = threading.Lock()
        with _scheduler(max_concurrent=3) as scheduler:
            futures = [scheduler.schedule(self._track(state, lock, 0.02), estimated_tokens=1) for _ in range(12)]
        assert all(f.done() for f in futures)
        assert 1 <= state["max"] <= 3


class TestRateBudgets:
    def test_request_budget_waits_for_window(self):
        clock = FakeClock()
        with _scheduler(max_requests_per_minute=2, clock=clock) as scheduler:
            futures = [scheduler.schedule(lambda: "ok", estimated_tokens=1) for _ in range(4)]
            assert _wait_until(lambda: futures[0].done() and futures[1].done())
            time.sleep(0.1)
            assert not futures[2].done()
            assert not futures[3].done()

            clock.advance(61)
            assert _wait_until(lambda: all(f.done() for f in futures))

    def test_token_budget_waits_for_window(self):
        clock = FakeClock()
        with _scheduler(max_tokens_per_minute=100, clock=clock) as scheduler:
            first = scheduler.schedule(lambda: "first", estimated_tokens=60)
            second = scheduler.schedule(lambda: "second", estimated_tokens=60)
            assert first.result(timeout=5) == "first"
            time.sleep(0.1)
            assert not second.done()

            clock.advance(61)
            assert second.result(timeout=5) == "second"

    def test_token_budget_allows_exact_fit(self):
        with _scheduler(max_tokens_per_minute=100) as scheduler:
            futures = [scheduler.schedule(lambda: None, estimated_tokens=50) for _ in range(2)]
            assert _wait_until(lambda: all(f.done() for f in futures))

    def test_oversized_estimate_fails_without_running(self):
        calls = []
        with _scheduler(max_tokens_per_minute=100) as scheduler:
            future = scheduler.schedule(lambda: calls.append(1), estimated_tokens=101)
            assert isinstance(future.exception(timeout=5), BudgetExceededError)
        assert calls == []

    def test_throttled_head_is_not_overtaken(self):
        clock = FakeClock()
        order = []
        with _scheduler(max_concurrent=1, max_tokens_per_minute=100, clock=clock) as scheduler:
            x = scheduler.schedule(lambda: order.append("x"), estimated_tokens=60)
            y = scheduler.schedule(lambda: order.append("y"), estimated_tokens=60)
            z = scheduler.schedule(lambda: order.append("z"), estimated_tokens=10)
            x.result(timeout=5)
            time.sleep(0.1)
            # z would fit the remaining budget but must wait behind y
            assert not y.done()
            assert not z.done()

            clock.advance(61)
            assert _wait_until(lambda: y.done() and z.done())

        assert order == ["x", "y", "z"]

    def test_admissions_per_window_stay_within_budget(self):
        clock = FakeClock()
        admitted_at = []
        lock = threading.Lock()

        def task():
            with lock:
                admitted_at.append(clock())

        with _scheduler(max_requests_per_minute=3, clock=clock) as scheduler:
            futures = [scheduler.schedule(task, estimated_tokens=1) for _ in range(9)]
            for batch in range(1, 4):
                assert _wait_until(lambda: len(admitted_at) == 3 * batch)
                time.sleep(0.05)
                assert len(admitted_at) == 3 * batch
                clock.advance(61)
            assert _wait_until(lambda: all(f.done() for f in futures))

        for t in admitted_at:
            in_window = [u for u in admitted_at if t - 60 <= u <= t]
            assert len(in_window) <= 3
