"""
Domain Layer

Defines constants, entities, and value objects that form the core of the business logic.
Has no dependencies on external libraries.
"""

from maori_bench.domain.constants import (
    ADMISSION_POLL_SECONDS,
    DEFAULT_ESTIMATED_TOKENS,
    DEFAULT_GRADER_MODEL,
    EVAL_TYPES,
    RATE_WINDOW_SECONDS,
)
from maori_bench.domain.entities import (
    ModelSpec,
    ModelSummary,
    Run,
    RunResult,
    RunSummary,
    TestDefinition,
    WorkItem,
)
from maori_bench.domain.value_objects import (
    Completion,
    Progress,
    TokenUsage,
)

__all__ = [
    # constants
    "ADMISSION_POLL_SECONDS",
    "DEFAULT_ESTIMATED_TOKENS",
    "DEFAULT_GRADER_MODEL",
    "EVAL_TYPES",
    "RATE_WINDOW_SECONDS",
    # entities
    "ModelSpec",
    "ModelSummary",
    "Run",
    "RunResult",
    "RunSummary",
    "TestDefinition",
    "WorkItem",
    # value objects
    "Completion",
    "Progress",
    "TokenUsage",
]
