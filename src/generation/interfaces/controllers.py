"""
Generation Controllers (API Routes)
===================================

FastAPI routes for draft reply generation.

Both endpoints share one contract. The body is parsed by hand so that
malformed input maps onto the fixed error bodies clients expect instead of
FastAPI's default 422 payload.
"""

import json
import time

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.config import settings
from src.generation.application import (
    ErrorResponse,
    GenerateMessageRequest,
    GenerateMessageResponse,
    MessageGenerationService,
)
from src.generation.domain import GenerationConfig
from src.generation.infrastructure import (
    CompletionProviderAdapter,
    SQLAlchemyKnowledgeStore,
    SQLAlchemyTicketHistory,
)
from src.shared.infrastructure.logging import get_context_logger, get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Message Generation"])

INVALID_BODY = "Invalid request body"
PROMPT_REQUIRED = "Prompt is required"
GENERATION_FAILED = "Failed to generate message"


# ========== Example payloads for Swagger ==========

GENERATE_REQUEST_EXAMPLE = {
    "prompt": "How do I reset my password?",
    "context": {
        "ticketId": "TICKET-001",
        "previousMessages": [
            {"role": "customer", "content": "I can't log in to my account"}
        ],
        "relevantArticles": [],
        "hasValidDbAccess": True
    },
    "config": {"tone": "friendly"}
}

GENERATE_RESPONSE_EXAMPLE = {
    "content": "I understand how frustrating this must be. You can reset your password "
               "from the login page (Article ID: kb-password-reset).",
    "usedArticles": ["kb-password-reset"],
    "confidence": 0.9,
    "tone": "friendly"
}


# ========== Dependencies ==========

def get_message_service(request: Request) -> MessageGenerationService:
    """Build the generation service for one request."""
    provider = getattr(request.app.state, "completion_provider", None) or CompletionProviderAdapter()
    correlation_id = getattr(request.state, "correlation_id", None)

    return MessageGenerationService(
        knowledge_store=SQLAlchemyKnowledgeStore(),
        ticket_history=SQLAlchemyTicketHistory(),
        completion_provider=provider,
        config=GenerationConfig.from_settings(settings),
        timeout_seconds=settings.generation_timeout_seconds,
        logger=get_context_logger("src.generation", correlation_id),
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


# ========== Route Handlers ==========

async def generate_message(
    request: Request,
    service: MessageGenerationService = Depends(get_message_service)
):
    start_time = time.perf_counter()
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Unparsable request body", extra={"correlation_id": correlation_id})
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_BODY)

    try:
        payload = GenerateMessageRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(
            "Request body failed validation",
            extra={"correlation_id": correlation_id, "errors": e.error_count()}
        )
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_BODY)

    if not payload.prompt or not payload.prompt.strip():
        return _error(status.HTTP_400_BAD_REQUEST, PROMPT_REQUIRED)

    config = service.config
    if payload.config is not None:
        config = payload.config.apply(config)

    try:
        message = await service.generate_response(
            payload.prompt, payload.context.to_domain(), config
        )
    except Exception as e:
        logger.error(
            "Message generation failed",
            extra={
                "correlation_id": correlation_id,
                "error_type": type(e).__name__,
                "error": str(e)
            }
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERATION_FAILED)

    response = GenerateMessageResponse.from_domain(message)
    logger.info(
        "Message generated",
        extra={
            "correlation_id": correlation_id,
            "used_articles": response.used_articles,
            "confidence": response.confidence,
            "processing_time_ms": int((time.perf_counter() - start_time) * 1000)
        }
    )
    return JSONResponse(content=response.model_dump(by_alias=True))


_route_options = dict(
    response_model=GenerateMessageResponse,
    summary="Generate a draft reply grounded in knowledge base articles",
    description="""
    Generate a draft support reply for the customer's question.

    Relevant knowledge base articles are retrieved unless supplied in
    `context.relevantArticles`. Cited article ids are returned in
    `usedArticles`; `confidence` reflects citation quality.
    """,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"example": GENERATE_REQUEST_EXAMPLE}},
            "required": True
        }
    },
    responses={
        200: {
            "description": "Draft generated",
            "content": {"application/json": {"example": GENERATE_RESPONSE_EXAMPLE}}
        },
        400: {"model": ErrorResponse, "description": "Invalid body or missing prompt"},
        500: {"model": ErrorResponse, "description": "Generation failed"}
    }
)

router.add_api_route("/messages/generate", generate_message, methods=["POST"], **_route_options)
router.add_api_route("/generate-message", generate_message, methods=["POST"], **_route_options)


# Export router for inclusion in main app
generation_router = router
