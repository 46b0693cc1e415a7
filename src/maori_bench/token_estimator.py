"""
Token Estimator

Converts prompt length into a conservative token cost used for budget
accounting before true usage is known. This is a character-count heuristic,
not a tokenizer; estimates are never reconciled with provider usage.
"""

from __future__ import annotations

import math

from maori_bench.harness_config import TokenEstimateConfig


def estimate_tokens(text: str | None, config: TokenEstimateConfig | None = None) -> int:
    """
    Estimate the token cost of a prompt

    Args:
        text: Prompt text (None counts as empty)
        config: Estimation constants (defaults: 4 chars/token, +50 overhead, min 50)

    Returns:
        Estimated token count
    """
    if config is None:
        config = TokenEstimateConfig()
    if config.chars_per_token < 1:
        raise ValueError("chars_per_token must be at least 1.")

    length = len(text or "")
    return max(config.minimum, math.ceil(length / config.chars_per_token) + config.overhead)
