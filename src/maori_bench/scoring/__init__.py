"""
Scoring sub-package

Provides exact-match scoring, text normalization and LLM Judge scoring logic.
"""

from maori_bench.scoring.scorer import evaluate
from maori_bench.scoring.text_scorers import (
    NormalizeOptions,
    expected_values,
    normalize_macrons,
    normalize_text,
    score_exact,
)
from maori_bench.scoring.llm_judge import LLMJudgeScorer

__all__ = [
    # dispatcher
    "evaluate",
    # text scorers
    "NormalizeOptions",
    "expected_values",
    "normalize_macrons",
    "normalize_text",
    "score_exact",
    # llm judge
    "LLMJudgeScorer",
]
