"""
Domain Value Objects

Defines immutable data structures representing values returned by the
completion transport and reported while a run progresses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from maori_bench.domain.entities import RunResult


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by the provider"""
    input_tokens: int = 0
    output_tokens: int = 0

    def __post_init__(self):
        if self.input_tokens < 0:
            raise ValueError("input_tokens must be non-negative")
        if self.output_tokens < 0:
            raise ValueError("output_tokens must be non-negative")


@dataclass(frozen=True)
class Completion:
    """Completion response"""
    text: str
    raw: Any = None
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class Progress:
    """Progress snapshot emitted after each settled unit"""
    completed: int
    total: int
    last: RunResult | None = None
