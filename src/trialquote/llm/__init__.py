"""LLM client for TrialQuote."""

from trialquote.llm.client import (
    LLMClient,
    RetryConfig,
    create_llm_client,
    parse_json_response,
)

__all__ = [
    "LLMClient",
    "RetryConfig",
    "create_llm_client",
    "parse_json_response",
]
