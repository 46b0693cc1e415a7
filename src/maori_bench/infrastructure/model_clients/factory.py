"""
Completion client factory

Creates the transport client from explicit harness configuration.
"""

from __future__ import annotations

from maori_bench.harness_config import HarnessConfig, load_config
from maori_bench.infrastructure.model_clients.base import CompletionClient
from maori_bench.infrastructure.model_clients.openrouter import OpenRouterClient


def create_client(config: HarnessConfig | None = None) -> CompletionClient:
    """
    Create the completion client

    Args:
        config: HarnessConfig (loads from env if not provided)

    Returns:
        CompletionClient: The OpenRouter client

    Raises:
        ValueError: When no API key is configured
    """
    if config is None:
        config = load_config()

    openrouter = config.openrouter
    return OpenRouterClient(
        api_key=openrouter.api_key,
        base_url=openrouter.base_url,
        timeout_seconds=openrouter.timeout_seconds,
        http_referer=openrouter.http_referer,
        x_title=openrouter.x_title,
    )
