"""Tests for the LLM client helpers."""

import pytest

from trialquote.config import LLMProvider
from trialquote.exceptions import LLMExtractionError
from trialquote.llm.client import (
    DEFAULT_MODELS,
    AnthropicClient,
    OpenAIClient,
    RetryConfig,
    create_llm_client,
    parse_json_response,
    retry_with_backoff,
)


def test_parse_plain_json() -> None:
    """Test parsing a bare JSON object."""
    assert parse_json_response('{"trialPhase": "II期"}') == {"trialPhase": "II期"}


def test_parse_fenced_json() -> None:
    """Test parsing JSON wrapped in a code fence."""
    response = 'Here you go:\n```json\n{"subjectCount": 200}\n```\nLet me know.'
    assert parse_json_response(response) == {"subjectCount": 200}


def test_parse_json_with_surrounding_prose() -> None:
    """Test parsing an object embedded in prose."""
    response = 'The extracted fields are {"sponsor": "Acme", "risks": []} as requested.'
    assert parse_json_response(response) == {"sponsor": "Acme", "risks": []}


@pytest.mark.parametrize("response", ["not json at all", "[1, 2, 3]", "{broken"])
def test_parse_invalid_response(response: str) -> None:
    """Test that unusable responses raise LLMExtractionError."""
    with pytest.raises(LLMExtractionError):
        parse_json_response(response)


def test_retry_config_delay() -> None:
    """Test exponential backoff with a cap."""
    config = RetryConfig(initial_delay=1.0, max_delay=5.0, exponential_base=2.0)

    assert config.get_delay(0) == 1.0
    assert config.get_delay(1) == 2.0
    assert config.get_delay(5) == 5.0


def test_retry_with_backoff_recovers() -> None:
    """Test that transient errors are retried."""
    config = RetryConfig(max_retries=2, initial_delay=0, retryable_errors=(ConnectionError,))
    attempts = []

    @retry_with_backoff(config)
    def flaky() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("temporary")
        return "ok"

    assert flaky() == "ok"
    assert len(attempts) == 3


def test_retry_with_backoff_gives_up() -> None:
    """Test that the last error is re-raised after the final attempt."""
    config = RetryConfig(max_retries=1, initial_delay=0, retryable_errors=(ConnectionError,))
    attempts = []

    @retry_with_backoff(config)
    def always_fails() -> None:
        attempts.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        always_fails()
    assert len(attempts) == 2


def test_non_retryable_errors_propagate() -> None:
    """Test that other errors are not retried."""
    config = RetryConfig(max_retries=3, initial_delay=0, retryable_errors=(ConnectionError,))
    attempts = []

    @retry_with_backoff(config)
    def broken() -> None:
        attempts.append(1)
        raise KeyError("bug")

    with pytest.raises(KeyError):
        broken()
    assert len(attempts) == 1


def test_create_llm_client_defaults() -> None:
    """Test provider selection and default models."""
    openai_client = create_llm_client("OpenAI", api_key="sk-test")
    anthropic_client = create_llm_client(LLMProvider.ANTHROPIC, api_key="sk-ant-test")

    assert openai_client.provider == LLMProvider.OPENAI
    assert isinstance(openai_client._client, OpenAIClient)
    assert openai_client.model == DEFAULT_MODELS[LLMProvider.OPENAI]
    assert isinstance(anthropic_client._client, AnthropicClient)
    assert anthropic_client.model == DEFAULT_MODELS[LLMProvider.ANTHROPIC]


def test_create_llm_client_model_override() -> None:
    """Test overriding the model."""
    client = create_llm_client("anthropic", api_key="sk-ant-test", model="claude-custom")
    assert client.model == "claude-custom"


def test_create_llm_client_unknown_provider() -> None:
    """Test that unknown providers are rejected."""
    with pytest.raises(ValueError):
        create_llm_client("mistral", api_key="x")


def test_extract_json_uses_completion(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test extract_json parses the provider's completion."""
    client = create_llm_client("openai", api_key="sk-test")
    monkeypatch.setattr(
        client._client,
        "_request",
        lambda prompt, system, max_tokens, temperature: '{"siteCount": 8}',
    )

    assert client.extract_json("prompt", system="system") == {"siteCount": 8}
