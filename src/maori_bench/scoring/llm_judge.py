"""
LLM Judge scoring logic

Implements LLMJudgeScorer, which asks a separate grader model to rate an answer.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from maori_bench.infrastructure.model_clients.base import CompletionClient

from maori_bench.domain.constants import DEFAULT_GRADER_MODEL

logger = logging.getLogger(__name__)

GRADER_SYSTEM_PROMPT = (
    "You are a strict grader of Māori language answers. Ignore harmless formatting like quotes, "
    "trailing punctuation, or prefatory phrases (e.g., 'The answer is'). Grade semantic and "
    "orthographic correctness only. Output a single number between 0 and 1."
)


class LLMJudgeScorer:
    """
    Scorer that uses an LLM as a grader

    Passes the question, the model answer and the expected value(s) to the
    grader and reads back a number between 0 and 1.
    """

    _NUMBER_RE = re.compile(r"[01](?:\.\d+)?")

    def __init__(self, client: CompletionClient, grader_model: str = DEFAULT_GRADER_MODEL) -> None:
        self._client = client
        self.grader_model = grader_model

    def judge(self, prompt: str, expected: Any, actual: str) -> float:
        """
        Have the grader score the answer

        Args:
            prompt: The test prompt that was given to the model
            expected: Expected value(s)
            actual: The model's answer

        Returns:
            Score clamped to 0.0-1.0 (0.0 when the grader reply has no number)
        """
        completion = self._client.complete(
            self.grader_model,
            [
                {"role": "system", "content": GRADER_SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(prompt, expected, actual)},
            ],
            {"temperature": 0},
        )
        return self._parse_score(completion.text)

    @staticmethod
    def _build_prompt(prompt: str, expected: Any, actual: str) -> str:
        parts = [
            "You are evaluating an answer for a Māori language test.",
            "Provide a single number between 0 and 1 representing correctness.",
            "",
            f"Question prompt:\n{prompt}",
            "",
            f"Model answer:\n{actual}",
            "",
            f"Expected (may be array):\n{json.dumps(expected, ensure_ascii=False)}",
            "",
            "Return only the number.",
        ]
        return "\n".join(parts)

    def _parse_score(self, raw: str) -> float:
        """
        Extract the score from the grader's reply

        Parse order:
        1. JSON object with a "score" key
        2. First number starting with 0 or 1
        3. 0.0
        """
        text = (raw or "").strip()

        try:
            data = json.loads(text)
            if isinstance(data, dict) and "score" in data:
                return self._clamp(float(data["score"]))
        except (json.JSONDecodeError, ValueError, TypeError):
            pass

        m = self._NUMBER_RE.search(text)
        if m:
            return self._clamp(float(m.group(0)))

        logger.warning("Could not parse a score from grader response: %s", text[:200])
        return 0.0

    @staticmethod
    def _clamp(value: float) -> float:
        """Clamp score to the range 0.0-1.0"""
        return max(0.0, min(1.0, value))
