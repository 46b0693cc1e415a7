"""
Benchmark Harness Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from maori_bench.domain.constants import (
    ADMISSION_POLL_SECONDS,
    DEFAULT_GRADER_MODEL,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_TITLE,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_JITTER_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
    TOKEN_CHARS_PER_TOKEN,
    TOKEN_MINIMUM,
    TOKEN_OVERHEAD,
)


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class SchedulerConfig:
    """Concurrency and rate budget configuration"""
    max_concurrent: int = 4
    max_requests_per_minute: int = 60
    max_tokens_per_minute: int = 120_000
    poll_interval_seconds: float = ADMISSION_POLL_SECONDS


@dataclass
class RetryConfig:
    """Retry configuration for transient provider errors"""
    retries: int = 2
    base_delay_seconds: float = RETRY_BASE_DELAY_SECONDS
    max_delay_seconds: float = RETRY_MAX_DELAY_SECONDS
    jitter_seconds: float = RETRY_JITTER_SECONDS


@dataclass
class TokenEstimateConfig:
    """Heuristic token estimation constants"""
    chars_per_token: int = TOKEN_CHARS_PER_TOKEN
    overhead: int = TOKEN_OVERHEAD
    minimum: int = TOKEN_MINIMUM


@dataclass
class OpenRouterConfig:
    """OpenRouter (OpenAI-compatible API) configuration"""
    api_key: str = ""
    base_url: str = OPENROUTER_BASE_URL
    timeout_seconds: float = 30.0
    http_referer: str = ""
    x_title: str = OPENROUTER_DEFAULT_TITLE


@dataclass
class LLMJudgeConfig:
    """LLM grader configuration"""
    grader_model: str = DEFAULT_GRADER_MODEL


@dataclass
class HarnessConfig:
    """Overall benchmark harness configuration"""
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    tokens: TokenEstimateConfig = field(default_factory=TokenEstimateConfig)
    openrouter: OpenRouterConfig = field(default_factory=OpenRouterConfig)
    llm_judge: LLMJudgeConfig = field(default_factory=LLMJudgeConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format (the API key is never exported)"""
        data = asdict(self)
        data["openrouter"]["api_key"] = ""
        return {"harness_config": data}

    @classmethod
    def from_dict(cls, data: dict) -> "HarnessConfig":
        """Create from dictionary (handles presence/absence of harness_config key)"""
        config_data = data.get("harness_config", data)
        return cls(
            scheduler=SchedulerConfig(**config_data.get("scheduler", {})),
            retry=RetryConfig(**config_data.get("retry", {})),
            tokens=TokenEstimateConfig(**config_data.get("tokens", {})),
            openrouter=OpenRouterConfig(**config_data.get("openrouter", {})),
            llm_judge=LLMJudgeConfig(**config_data.get("llm_judge", {})),
        )


def load_config() -> HarnessConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        HarnessConfig
    """
    scheduler = SchedulerConfig(
        max_concurrent=_env_int("HARNESS_MAX_CONCURRENT", 4),
        max_requests_per_minute=_env_int("HARNESS_MAX_RPM", 60),
        max_tokens_per_minute=_env_int("HARNESS_MAX_TPM", 120_000),
        poll_interval_seconds=_env_float("HARNESS_POLL_INTERVAL_SECONDS", ADMISSION_POLL_SECONDS),
    )
    retry = RetryConfig(
        retries=_env_int("HARNESS_RETRIES", 2),
        base_delay_seconds=_env_float("HARNESS_RETRY_BASE_DELAY_SECONDS", RETRY_BASE_DELAY_SECONDS),
        max_delay_seconds=_env_float("HARNESS_RETRY_MAX_DELAY_SECONDS", RETRY_MAX_DELAY_SECONDS),
        jitter_seconds=_env_float("HARNESS_RETRY_JITTER_SECONDS", RETRY_JITTER_SECONDS),
    )
    tokens = TokenEstimateConfig(
        chars_per_token=_env_int("HARNESS_TOKEN_CHARS_PER_TOKEN", TOKEN_CHARS_PER_TOKEN),
        overhead=_env_int("HARNESS_TOKEN_OVERHEAD", TOKEN_OVERHEAD),
        minimum=_env_int("HARNESS_TOKEN_MINIMUM", TOKEN_MINIMUM),
    )
    openrouter = OpenRouterConfig(
        api_key=_env_str("OPENROUTER_API_KEY", ""),
        base_url=_env_str("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL),
        timeout_seconds=_env_float("HARNESS_TIMEOUT_SECONDS", 30.0),
        http_referer=_env_str("OPENROUTER_HTTP_REFERER", ""),
        x_title=_env_str("OPENROUTER_X_TITLE", OPENROUTER_DEFAULT_TITLE),
    )
    llm_judge = LLMJudgeConfig(
        grader_model=_env_str("LLM_JUDGE_GRADER_MODEL", DEFAULT_GRADER_MODEL),
    )
    return HarnessConfig(
        scheduler=scheduler,
        retry=retry,
        tokens=tokens,
        openrouter=openrouter,
        llm_judge=llm_judge,
    )
