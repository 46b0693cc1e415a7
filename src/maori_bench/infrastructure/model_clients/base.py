"""
Completion client base class and transport error

Defines the abstract base class inherited by all completion clients and the
error type they raise when a call cannot complete.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from maori_bench.domain.value_objects import Completion


class TransportError(Exception):
    """Error raised when a completion call cannot complete"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionClient(ABC):
    """Abstract base class for completion clients"""

    @abstractmethod
    def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        params: dict[str, Any] | None = None,
    ) -> Completion:
        """Send a chat conversation and retrieve the completion"""
        pass
