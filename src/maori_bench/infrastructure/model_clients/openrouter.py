"""
OpenRouter (OpenAI-compatible API) completion client
"""

from typing import Any

import openai
from openai import OpenAI

from maori_bench.domain.constants import OPENROUTER_BASE_URL, OPENROUTER_DEFAULT_TITLE, TIMEOUT_STATUS_CODE
from maori_bench.domain.value_objects import Completion, TokenUsage
from maori_bench.infrastructure.model_clients.base import CompletionClient, TransportError


class OpenRouterClient(CompletionClient):
    """Client using OpenRouter through the OpenAI SDK"""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENROUTER_BASE_URL,
        timeout_seconds: float = 30.0,
        http_referer: str = "",
        x_title: str = OPENROUTER_DEFAULT_TITLE,
    ):
        """
        Args:
            api_key: OpenRouter API key
            base_url: API endpoint
            timeout_seconds: Per-call timeout in seconds (default: 30)
            http_referer: Value for the HTTP-Referer attribution header
            x_title: Value for the X-Title attribution header
        """
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY is not set")

        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        # Retries are owned by the harness, not the SDK
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
            default_headers={
                "HTTP-Referer": http_referer,
                "X-Title": x_title,
            },
        )

    @staticmethod
    def _request_params(params: dict[str, Any] | None) -> dict[str, Any]:
        """Forward only the numeric sampling parameters the API understands"""
        params = params or {}
        kwargs: dict[str, Any] = {}
        temperature = params.get("temperature")
        if isinstance(temperature, (int, float)) and not isinstance(temperature, bool):
            kwargs["temperature"] = temperature
        max_tokens = params.get("max_tokens")
        if isinstance(max_tokens, (int, float)) and not isinstance(max_tokens, bool):
            kwargs["max_tokens"] = int(max_tokens)
        return kwargs

    def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        params: dict[str, Any] | None = None,
    ) -> Completion:
        """
        Send a chat conversation and retrieve the completion

        Args:
            model: OpenRouter model id (e.g. openai/gpt-4o)
            messages: Ordered list of {role, content} messages
            params: Model parameter overrides

        Returns:
            Completion: Text, raw payload and token usage

        Raises:
            TransportError: When the call fails (status_code set when known)
        """
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                **self._request_params(params),
            )
        except openai.APITimeoutError as e:
            raise TransportError(
                f"Request timed out after {self.timeout_seconds}s", status_code=TIMEOUT_STATUS_CODE
            ) from e
        except openai.APIStatusError as e:
            raise TransportError(str(e), status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            raise TransportError(str(e)) from e

        choice = response.choices[0] if response.choices else None
        text = (choice.message.content if choice and choice.message else None) or ""

        usage = None
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )

        return Completion(text=text, raw=response.model_dump(), usage=usage)
