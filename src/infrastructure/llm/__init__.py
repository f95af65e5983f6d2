"""
LLM Client Infrastructure
==========================

Wrapper for completion providers (OpenAI, Z.AI) providing a clean interface
for single request/response text completion.

This module abstracts the LLM client implementation following the
Dependency Inversion Principle - the application layer depends on
abstractions, not concrete implementations.
"""

import asyncio
import re
import time
from typing import List, Optional
from abc import ABC, abstractmethod

from openai import AsyncOpenAI
from zai import ZaiClient

from src.config import settings, LLMProvider
from src.core import (
    AIErrorType,
    AIException,
    ConfigurationException,
    classify_provider_error,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Following Interface Segregation Principle - only methods
    actually needed by the application are defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> ChatCompletionResult:
        """Generate chat completion."""


def _provider_error(error: Exception, provider: str) -> AIException:
    error_type = classify_provider_error(error)
    return AIException(
        error_type,
        f"{provider} completion failed: {error}",
        original_error=error,
        details={"provider": provider},
    )


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT models.

    Provides async wrapper around OpenAI SDK operations.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=self._api_key)

    async def chat_completion(
        self,
        messages: List[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> ChatCompletionResult:
        """
        Generate chat completion using OpenAI GPT.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model name
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            ChatCompletionResult with generated text

        Raises:
            AIException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise _provider_error(e, "OpenAI") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content
        if content is None:
            raise AIException(AIErrorType.INVALID_RESPONSE, "OpenAI returned an empty completion")

        usage = response.usage
        return ChatCompletionResult(
            content=content,
            model=model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread. Cancelling the
    awaiting task (for example when the generation deadline passes) returns
    control to the caller immediately, but the worker thread keeps running
    until the SDK request itself finishes; its result is then discarded.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)

    async def chat_completion(
        self,
        messages: List[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> ChatCompletionResult:
        start_time = time.perf_counter()

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise _provider_error(e, "Z.AI") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content
        if not content:
            raise AIException(AIErrorType.INVALID_RESPONSE, "Z.AI returned an empty completion")

        # Z.AI doesn't return token usage, so we estimate
        return ChatCompletionResult(
            content=content,
            model=model,
            prompt_tokens=len(str(messages)),
            completion_tokens=len(content),
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for development and testing.

    Returns predictable responses without calling external APIs. When the
    prompt carries knowledge base articles the reply cites the first one.
    """

    _ARTICLE_LINE = re.compile(r"Article ID: ([\w-]+)")

    async def chat_completion(
        self,
        messages: List[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> ChatCompletionResult:
        prompt = str(messages[-1].get("content", "")) if messages else ""
        match = self._ARTICLE_LINE.search(prompt)

        if match:
            content = (
                "Thank you for reaching out, and I appreciate your patience. "
                "Our knowledge base covers this topic in detail "
                f"(Article ID: {match.group(1)}). Please follow the steps described "
                "there and let us know if anything remains unclear."
            )
        else:
            content = (
                "I regret to inform you that I cannot find any specific information "
                "in our knowledge base related to your query. I'm happy to offer "
                "general guidance in the meantime."
            )

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(content.split()),
            latency_ms=0
        )


def build_llm_client(
    provider: Optional[str] = None,
    api_key: Optional[str] = None
) -> ILLMClient:
    """
    Create the configured completion client.

    Args:
        provider: openai, zai or mock (defaults to settings.llm_provider)
        api_key: Explicit API key overriding the configured one

    Raises:
        ConfigurationException: If the provider is unknown or has no API key
    """
    if settings.mock_llm:
        return MockLLMClient()

    provider = (provider or settings.llm_provider).lower()
    if provider == LLMProvider.OPENAI:
        return OpenAILLMClient(api_key)
    if provider == LLMProvider.ZAI:
        return ZAIILLMClient(api_key)
    if provider == LLMProvider.MOCK:
        return MockLLMClient()
    raise ConfigurationException(f"Unknown LLM provider: {provider}")
