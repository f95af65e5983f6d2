"""
Generation External Service Adapters
====================================

Adapter from the application-layer completion interface to the
infrastructure LLM clients.
"""

from typing import Callable, Optional

from src.generation.application import CompletionRequest, ICompletionProvider
from src.generation.domain import render_prompt
from src.infrastructure.llm import ILLMClient, build_llm_client


class CompletionProviderAdapter(ICompletionProvider):
    """
    Implements ICompletionProvider on top of an ILLMClient.

    Renders the plan template with its variables and sends it as a single
    user message. A request carrying its own API key gets a fresh client.
    """

    def __init__(
        self,
        client: Optional[ILLMClient] = None,
        client_factory: Callable[..., ILLMClient] = build_llm_client,
    ):
        self._client = client
        self._client_factory = client_factory

    def _client_for(self, request: CompletionRequest) -> ILLMClient:
        if request.api_key:
            return self._client_factory(api_key=request.api_key)
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    async def complete(self, request: CompletionRequest) -> str:
        client = self._client_for(request)
        messages = [
            {"role": "user", "content": render_prompt(request.template, request.variables)}
        ]
        result = await client.chat_completion(
            messages,
            model=request.model_name,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
        return result.content
