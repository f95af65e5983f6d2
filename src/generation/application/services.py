"""
Generation Application Services
===============================

Orchestrates context gathering, prompt assembly, completion and analysis
into a single draft reply.

Each call is self-contained: nothing is cached or shared between calls,
so concurrent calls need no locking.
"""

import asyncio
from typing import Optional

from src.core import AIErrorType, AIException, classify_provider_error
from src.generation.application.context import ContextGatherer
from src.generation.application.interfaces import (
    CompletionRequest,
    ICompletionProvider,
    IKnowledgeStore,
    ITicketHistory,
)
from src.generation.domain import (
    AssembledPrompt,
    GeneratedMessage,
    GenerationConfig,
    PromptAssembler,
    RequestContext,
    ResponseAnalyzer,
)
from src.shared.infrastructure.logging import TraceLogger, log_latency, resolve_logger


class GenerationInvoker:
    """Sends an assembled prompt to the completion provider."""

    def __init__(self, provider: ICompletionProvider, logger: Optional[TraceLogger] = None):
        self._provider = provider
        self._logger = resolve_logger(logger, __name__)

    async def invoke(self, assembled: AssembledPrompt, config: GenerationConfig) -> str:
        """
        Run one completion.

        Raises:
            AIException: CHAIN_ERROR wrapping any provider failure. No retry
                and no fallback model.
        """
        request = CompletionRequest(
            model_name=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            template=assembled.template,
            variables=dict(assembled.variables),
            api_key=config.api_key,
        )

        try:
            with log_latency(self._logger, "completion", model=config.model_name):
                return await self._provider.complete(request)
        except Exception as e:
            provider_error_type = classify_provider_error(e)
            self._logger.error(
                "Completion provider call failed",
                extra={"error": str(e), "provider_error_type": provider_error_type.value},
            )
            raise AIException(
                AIErrorType.CHAIN_ERROR,
                "Failed to generate response",
                original_error=e,
                details={"provider_error_type": provider_error_type.value},
            ) from e


class MessageGenerationService:
    """
    Public entry point for draft reply generation.

    Coordinates the context gatherer, prompt assembler, generation invoker
    and response analyzer.
    """

    def __init__(
        self,
        knowledge_store: IKnowledgeStore,
        ticket_history: ITicketHistory,
        completion_provider: ICompletionProvider,
        config: Optional[GenerationConfig] = None,
        timeout_seconds: Optional[float] = None,
        logger: Optional[TraceLogger] = None,
    ):
        self._config = config or GenerationConfig()
        self._timeout = timeout_seconds
        self._logger = resolve_logger(logger, __name__)
        self._gatherer = ContextGatherer(knowledge_store, ticket_history, self._logger)
        self._assembler = PromptAssembler()
        self._invoker = GenerationInvoker(completion_provider, self._logger)
        self._analyzer = ResponseAnalyzer()

    @property
    def config(self) -> GenerationConfig:
        return self._config

    async def generate_response(
        self,
        prompt: str,
        context: RequestContext,
        config: Optional[GenerationConfig] = None,
    ) -> GeneratedMessage:
        """
        Generate a draft reply to a customer question.

        Args:
            prompt: The customer's question
            context: Request context; never mutated
            config: Per-call settings, defaults to the service config

        Returns:
            GeneratedMessage with cited article ids and a confidence score

        Raises:
            AIException: CHAIN_ERROR when the provider fails, TIMEOUT when
                the overall deadline passes. Knowledge access failures
                never raise.
        """
        config = config or self._config

        if self._timeout is None:
            return await self._generate(prompt, context, config)

        try:
            return await asyncio.wait_for(
                self._generate(prompt, context, config), self._timeout
            )
        except asyncio.TimeoutError as e:
            self._logger.error(
                "Message generation timed out",
                extra={"timeout_seconds": self._timeout},
            )
            raise AIException(
                AIErrorType.TIMEOUT,
                f"Message generation exceeded {self._timeout}s",
                original_error=e,
            ) from e

    async def _generate(
        self,
        prompt: str,
        context: RequestContext,
        config: GenerationConfig,
    ) -> GeneratedMessage:
        ctx = context.clone()
        self._logger.info(
            "Starting message generation",
            extra={
                "ticket_id": ctx.ticket_id,
                "supplied_articles": len(ctx.relevant_articles),
                "force_empty_results": ctx.force_empty_results,
            },
        )

        if not ctx.relevant_articles and not await self._gatherer.check_access():
            ctx.revoke_db_access()

        if ctx.has_valid_db_access and not ctx.force_empty_results and not ctx.relevant_articles:
            ctx = await self._gatherer.gather(ctx, config, verify_access=False)

        if not ctx.has_valid_db_access:
            ctx.relevant_articles = []

        if ctx.force_empty_results:
            ctx.revoke_db_access()

        assembled = self._assembler.assemble(
            prompt, ctx, config.tone, config.max_context_length
        )
        self._logger.info(
            "Prompt assembled",
            extra={
                "plan": assembled.plan.kind,
                "articles": [a.id for a in ctx.relevant_articles],
                "history_messages": len(ctx.previous_messages),
            },
        )

        response = await self._invoker.invoke(assembled, config)

        used_articles, confidence = self._analyzer.analyze(response, ctx.force_empty_results)
        self._logger.info(
            "Message generated",
            extra={
                "used_articles": sorted(used_articles),
                "confidence": confidence,
                "response_length": len(response),
            },
        )

        return GeneratedMessage(
            content=response,
            used_articles=used_articles,
            confidence=confidence,
            tone=config.tone,
        )
