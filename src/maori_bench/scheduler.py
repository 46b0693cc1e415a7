"""
Budgeted Scheduler

Admits queued tasks under three independent budgets:

- at most ``max_concurrent`` tasks executing at once,
- at most ``max_requests_per_minute`` admissions in any trailing 60s window,
- at most ``max_tokens_per_minute`` estimated tokens admitted in that window.

A single coordinator thread owns the queue, the rolling window and the active
count. Callers and workers only talk to it through an inbox queue: a submitted
entry, a "settled" notice when a task finishes, or a shutdown request. Arrivals
and freed slots wake the coordinator immediately; while the head of the queue
is blocked on a rate budget it re-checks every ``poll_interval`` seconds, so
admission near a budget boundary lags window expiry by at most one interval.

A throttled head item stays at the front of the queue, so nothing queued
behind it is admitted first.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from maori_bench.domain.constants import (
    ADMISSION_POLL_SECONDS,
    DEFAULT_ESTIMATED_TOKENS,
    RATE_WINDOW_SECONDS,
)
from maori_bench.harness_config import SchedulerConfig

logger = logging.getLogger(__name__)

_SETTLED = object()
_SHUTDOWN = object()


class BudgetExceededError(Exception):
    """Raised for a task whose estimated cost can never fit the token budget"""
    pass


class RateWindow:
    """
    Rolling request and token logs over a trailing window

    The window only moves forward: a clock reading older than the last one
    seen is treated as the last one.
    """

    def __init__(self, window_seconds: float = RATE_WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds
        self._requests: deque[float] = deque()
        self._tokens: deque[tuple[float, int]] = deque()
        self._token_sum = 0
        self._now: float | None = None

    def advance(self, now: float) -> float:
        """Move the window to ``now`` and prune expired entries; returns the effective time"""
        if self._now is not None and now < self._now:
            now = self._now
        self._now = now
        while self._requests and now - self._requests[0] > self.window_seconds:
            self._requests.popleft()
        while self._tokens and now - self._tokens[0][0] > self.window_seconds:
            _, tokens = self._tokens.popleft()
            self._token_sum -= tokens
        return now

    def record(self, now: float, tokens: int) -> None:
        self._requests.append(now)
        self._tokens.append((now, tokens))
        self._token_sum += tokens

    @property
    def request_count(self) -> int:
        return len(self._requests)

    @property
    def token_sum(self) -> int:
        return self._token_sum


@dataclass
class QueueEntry:
    """A queued task with its future and estimated cost"""
    task: Callable[[], Any]
    future: Future
    estimated_tokens: int


class BudgetedScheduler:
    """
    Runs tasks on a worker pool subject to concurrency, request and token budgets

    Usage:
        with BudgetedScheduler(4, 60, 120_000) as scheduler:
            future = scheduler.schedule(call_model, estimated_tokens=300)
            future.result()
    """

    def __init__(
        self,
        max_concurrent: int,
        max_requests_per_minute: int,
        max_tokens_per_minute: int,
        *,
        poll_interval: float = ADMISSION_POLL_SECONDS,
        window_seconds: float = RATE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "scheduler",
    ) -> None:
        """
        Args:
            max_concurrent: Maximum number of tasks executing at once
            max_requests_per_minute: Maximum admissions per rolling window
            max_tokens_per_minute: Maximum estimated tokens admitted per rolling window
            poll_interval: Re-check interval (seconds) while the queue head is rate-limited
            window_seconds: Length of the rolling window (default: 60)
            clock: Monotonic time source in seconds
            name: Prefix for thread names
        """
        for label, value in (
            ("max_concurrent", max_concurrent),
            ("max_requests_per_minute", max_requests_per_minute),
            ("max_tokens_per_minute", max_tokens_per_minute),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{label} must be a positive integer, got {value!r}.")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive.")

        self.max_concurrent = max_concurrent
        self.max_requests_per_minute = max_requests_per_minute
        self.max_tokens_per_minute = max_tokens_per_minute
        self.poll_interval = poll_interval
        self._clock = clock

        # Coordinator-owned state
        self._pending: deque[QueueEntry] = deque()
        self._window = RateWindow(window_seconds)
        self._active = 0
        self._admitted = 0

        self._inbox: queue.Queue = queue.Queue()
        self._shutdown_lock = threading.Lock()
        self._shutdown = False
        self._workers = ThreadPoolExecutor(
            max_workers=max_concurrent, thread_name_prefix=f"{name}-worker"
        )
        self._coordinator = threading.Thread(
            target=self._coordinate, name=f"{name}-coordinator", daemon=True
        )
        self._coordinator.start()

    @classmethod
    def from_config(cls, config: SchedulerConfig, **kwargs: Any) -> "BudgetedScheduler":
        """Create a scheduler from SchedulerConfig"""
        return cls(
            config.max_concurrent,
            config.max_requests_per_minute,
            config.max_tokens_per_minute,
            poll_interval=config.poll_interval_seconds,
            **kwargs,
        )

    def schedule(
        self,
        task: Callable[[], Any],
        estimated_tokens: int = DEFAULT_ESTIMATED_TOKENS,
    ) -> Future:
        """
        Enqueue a task

        The task never runs on the calling thread. The returned future settles
        with the task's return value or exception once it has been admitted and
        executed.

        Args:
            task: Callable with no arguments
            estimated_tokens: Estimated token cost charged against the token budget

        Returns:
            Future for the task's outcome (already failed with BudgetExceededError
            when the estimate alone exceeds max_tokens_per_minute)

        Raises:
            ValueError: If estimated_tokens is negative
            RuntimeError: If the scheduler has been shut down
        """
        if estimated_tokens < 0:
            raise ValueError("estimated_tokens must be non-negative.")

        future: Future = Future()
        with self._shutdown_lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new tasks after shutdown")
            if estimated_tokens > self.max_tokens_per_minute:
                future.set_exception(BudgetExceededError(
                    f"Estimated {estimated_tokens} tokens exceeds the budget of "
                    f"{self.max_tokens_per_minute} tokens per minute"
                ))
                return future
            self._inbox.put(QueueEntry(task=task, future=future, estimated_tokens=estimated_tokens))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks; queued tasks still drain

        Args:
            wait: Block until every queued task has settled
        """
        with self._shutdown_lock:
            if not self._shutdown:
                self._shutdown = True
                self._inbox.put(_SHUTDOWN)
        if wait:
            self._coordinator.join()
            self._workers.shutdown(wait=True)

    def __enter__(self) -> "BudgetedScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Coordinator thread
    # ------------------------------------------------------------------

    def _coordinate(self) -> None:
        closing = False
        while True:
            # Freed slots arrive as messages; only rate budgets need a timed re-check
            rate_blocked = bool(self._pending) and self._active < self.max_concurrent
            try:
                message = self._inbox.get(timeout=self.poll_interval if rate_blocked else None)
            except queue.Empty:
                message = None

            while message is not None:
                if message is _SETTLED:
                    self._active -= 1
                elif message is _SHUTDOWN:
                    closing = True
                else:
                    self._pending.append(message)
                try:
                    message = self._inbox.get_nowait()
                except queue.Empty:
                    message = None

            self._admit()

            if closing and not self._pending and self._active == 0:
                break

        logger.debug("Scheduler drained after admitting %d tasks", self._admitted)
        self._workers.shutdown(wait=False)

    def _throttle_reason(self, entry: QueueEntry) -> str | None:
        if self._active >= self.max_concurrent:
            return "concurrency"
        if self._window.request_count >= self.max_requests_per_minute:
            return "requests per minute"
        if self._window.token_sum + entry.estimated_tokens > self.max_tokens_per_minute:
            return "tokens per minute"
        return None

    def _admit(self) -> None:
        while self._pending:
            entry = self._pending[0]
            now = self._window.advance(self._clock())

            reason = self._throttle_reason(entry)
            if reason is not None:
                logger.debug(
                    "Throttled on %s (active=%d, requests=%d, tokens=%d, queued=%d)",
                    reason, self._active, self._window.request_count,
                    self._window.token_sum, len(self._pending),
                )
                return

            self._pending.popleft()
            if not entry.future.set_running_or_notify_cancel():
                continue

            self._active += 1
            self._admitted += 1
            self._window.record(now, entry.estimated_tokens)
            self._workers.submit(self._execute, entry)

    # ------------------------------------------------------------------
    # Worker threads
    # ------------------------------------------------------------------

    def _execute(self, entry: QueueEntry) -> None:
        try:
            result = entry.task()
        except Exception as e:
            entry.future.set_exception(e)
        except BaseException as e:
            # Settle the future before the worker unwinds
            entry.future.set_exception(e)
            raise
        else:
            entry.future.set_result(result)
        finally:
            self._inbox.put(_SETTLED)
