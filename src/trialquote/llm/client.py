"""LLM client for protocol extraction - OpenAI and Anthropic with retries."""

import functools
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any

import anthropic
import openai

from trialquote.config import LLMProvider
from trialquote.exceptions import LLMExtractionError

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.ANTHROPIC: "claude-3-5-sonnet-20241022",
}


# =============================================================================
# Retry Logic
# =============================================================================


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        retryable_errors: tuple[type[Exception], ...] | None = None,
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.retryable_errors = retryable_errors or (
            openai.RateLimitError,
            openai.APITimeoutError,
            openai.APIConnectionError,
            anthropic.RateLimitError,
            anthropic.APITimeoutError,
            anthropic.APIConnectionError,
        )

    def get_delay(self, attempt: int) -> float:
        """Exponential backoff delay for a zero-based attempt number."""
        return min(self.initial_delay * (self.exponential_base**attempt), self.max_delay)


def retry_with_backoff(config: RetryConfig):
    """Decorator retrying transient provider errors with exponential backoff."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(config.max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except config.retryable_errors as e:
                    if attempt == config.max_retries:
                        logger.error(f"LLM call failed after {attempt + 1} attempts: {e}")
                        raise
                    delay = config.get_delay(attempt)
                    logger.warning(
                        f"LLM call failed (attempt {attempt + 1}/{config.max_retries + 1}): {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


def parse_json_response(response: str) -> dict[str, Any]:
    """
    Pull a JSON object out of an LLM response.

    Handles fenced code blocks and prose around a bare object.
    """
    fenced = re.search(r"```(?:json)?\s*(.*?)```", response, re.DOTALL)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        braces = re.search(r"\{.*\}", response, re.DOTALL)
        candidate = braces.group(0) if braces else response.strip()

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise LLMExtractionError(f"LLM response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LLMExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    return data


# =============================================================================
# Provider Clients
# =============================================================================


class BaseLLMClient(ABC):
    """Abstract base class for provider clients."""

    provider: LLMProvider

    def __init__(self, api_key: str, model: str, retry_config: RetryConfig | None = None):
        self.api_key = api_key
        self.model = model
        self.retry_config = retry_config or RetryConfig()

    @abstractmethod
    def _request(
        self, prompt: str, system: str | None, max_tokens: int, temperature: float
    ) -> str:
        """Send a single request and return the text content."""

    def complete(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
    ) -> str:
        """Get a completion, retrying transient failures."""

        @retry_with_backoff(self.retry_config)
        def _call() -> str:
            start_time = time.time()
            content = self._request(prompt, system, max_tokens, temperature)
            logger.debug(
                f"{self.provider.value} call completed in {(time.time() - start_time) * 1000:.0f}ms"
            )
            return content

        return _call()


class OpenAIClient(BaseLLMClient):
    """OpenAI chat completions client."""

    provider = LLMProvider.OPENAI

    def __init__(self, api_key: str, model: str, retry_config: RetryConfig | None = None):
        super().__init__(api_key, model, retry_config)
        self._client: openai.OpenAI | None = None

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def _request(
        self, prompt: str, system: str | None, max_tokens: int, temperature: float
    ) -> str:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        if response.choices and response.choices[0].message.content:
            return response.choices[0].message.content
        return ""


class AnthropicClient(BaseLLMClient):
    """Anthropic messages client."""

    provider = LLMProvider.ANTHROPIC

    def __init__(self, api_key: str, model: str, retry_config: RetryConfig | None = None):
        super().__init__(api_key, model, retry_config)
        self._client: anthropic.Anthropic | None = None

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def _request(
        self, prompt: str, system: str | None, max_tokens: int, temperature: float
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        if temperature > 0:
            kwargs["temperature"] = temperature

        response = self.client.messages.create(**kwargs)
        if response.content:
            return response.content[0].text
        return ""


# =============================================================================
# Unified Client
# =============================================================================


class LLMClient:
    """Provider-agnostic client used by the extraction pipeline."""

    def __init__(
        self,
        provider: LLMProvider,
        api_key: str,
        model: str | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self.provider = provider
        client_cls = OpenAIClient if provider == LLMProvider.OPENAI else AnthropicClient
        self._client: BaseLLMClient = client_cls(
            api_key=api_key,
            model=model or DEFAULT_MODELS[provider],
            retry_config=retry_config,
        )

    @property
    def model(self) -> str:
        return self._client.model

    def complete(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
    ) -> str:
        return self._client.complete(
            prompt=prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    def extract_json(
        self, prompt: str, system: str | None = None, max_tokens: int = 2000
    ) -> dict[str, Any]:
        """Get a completion and parse it as a JSON object."""
        return parse_json_response(self.complete(prompt, system, max_tokens=max_tokens))


def create_llm_client(
    provider: LLMProvider | str,
    api_key: str,
    model: str | None = None,
    max_retries: int = 3,
) -> LLMClient:
    """
    Factory function to create an LLM client.

    Args:
        provider: "openai" or "anthropic" (or LLMProvider enum)
        api_key: API key for the provider
        model: Optional model override
        max_retries: Maximum number of retries for transient failures

    Returns:
        Configured LLMClient
    """
    if isinstance(provider, str):
        provider = LLMProvider(provider.lower())

    return LLMClient(
        provider=provider,
        api_key=api_key,
        model=model,
        retry_config=RetryConfig(max_retries=max_retries),
    )
