"""
Completion client package

Provides a unified interface to the completion provider.
"""

from maori_bench.infrastructure.model_clients.base import CompletionClient, TransportError
from maori_bench.infrastructure.model_clients.factory import create_client
from maori_bench.domain.value_objects import Completion

__all__ = ["Completion", "CompletionClient", "TransportError", "create_client"]
