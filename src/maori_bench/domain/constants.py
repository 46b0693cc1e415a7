"""
Domain Constants

Centrally manages constants shared across the benchmark harness.
"""

# Rolling window used for request / token budgets (seconds)
RATE_WINDOW_SECONDS = 60.0

# Interval at which a throttled queue is re-checked (seconds)
ADMISSION_POLL_SECONDS = 0.25

# Estimated token cost used when the caller does not supply one
DEFAULT_ESTIMATED_TOKENS = 500

# Token estimation heuristic (1 token ~ 4 chars, plus fixed overhead)
TOKEN_CHARS_PER_TOKEN = 4
TOKEN_OVERHEAD = 50
TOKEN_MINIMUM = 50

# Retry backoff (seconds)
RETRY_BASE_DELAY_SECONDS = 0.5
RETRY_MAX_DELAY_SECONDS = 8.0
RETRY_JITTER_SECONDS = 0.2

# Status codes that mark a failure as transient (plus anything >= 500)
RETRIABLE_STATUS_CODES = frozenset({429})
SERVER_ERROR_THRESHOLD = 500

# Status attached to a transport timeout so that it is retried
TIMEOUT_STATUS_CODE = 504

# Evaluator types accepted in a test definition
EVAL_TYPES = ("exact", "llm-judge")

# System prompts sent ahead of every test prompt
EXACT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Respond ONLY with the answer, and nothing else. "
    "Do not add any preamble, context, or commentary."
)
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Respond concisely."

# Grader used by llm-judge evaluation
DEFAULT_GRADER_MODEL = "openai/gpt-4o-mini"

# OpenRouter endpoint
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_TITLE = "maori-benchmark"
