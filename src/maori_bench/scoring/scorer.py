"""
Scoring dispatch function

Routes to the appropriate evaluator based on the test's eval type.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from maori_bench.infrastructure.model_clients.base import CompletionClient

from maori_bench.domain.constants import DEFAULT_GRADER_MODEL
from maori_bench.domain.entities import TestDefinition
from maori_bench.scoring.llm_judge import LLMJudgeScorer
from maori_bench.scoring.text_scorers import score_exact

logger = logging.getLogger(__name__)


def evaluate(
    test: TestDefinition,
    response: str,
    client: CompletionClient | None = None,
    *,
    grader_model: str = DEFAULT_GRADER_MODEL,
) -> float:
    """
    Score a model response against a test definition

    Args:
        test: Test definition (eval.type selects the evaluator)
        response: Model response text
        client: Completion client used by llm-judge
        grader_model: Grader model for llm-judge

    Returns:
        Score in [0, 1]; unknown eval types score 0.0

    Raises:
        ValueError: When llm-judge is requested without a client
    """
    eval_type = test.eval_type

    if eval_type == "exact":
        return score_exact(test.eval, test.expected, response)

    if eval_type == "llm-judge":
        if client is None:
            raise ValueError("client is required for llm-judge scoring")
        judge = LLMJudgeScorer(client, grader_model=grader_model)
        return judge.judge(test.prompt, test.expected, response)

    logger.warning("Unknown eval type '%s' for test %s, scoring 0", eval_type, test.id)
    return 0.0
