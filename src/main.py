"""
Response Engine - Main Application
==================================

Contextual response generation for customer support tickets.

Modules:
- Generation: knowledge-grounded draft replies with article citations

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, prompt plans, response analysis
- Infrastructure: Database, LLM clients
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from src.config import settings

# Infrastructure
from src.infrastructure.database import init_database, close_database
from src.infrastructure.llm import build_llm_client

# Generation module
from src.generation.infrastructure import CompletionProviderAdapter, SQLAlchemyKnowledgeStore
from src.generation.interfaces import generation_router

# Shared
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler
)
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database engine
    3. Initialize LLM client and completion provider

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Response Engine", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "llm_provider": "mock" if settings.mock_llm else settings.llm_provider
    })

    logger.info("Initializing database")
    init_database()

    # Requests carrying their own API key still work without a default client
    logger.info("Initializing LLM client")
    try:
        llm_client = build_llm_client()
    except Exception as e:
        logger.warning(f"LLM client initialization failed: {e}")
        llm_client = None

    app.state.llm_client = llm_client
    app.state.completion_provider = CompletionProviderAdapter(llm_client)

    logger.info("Response Engine started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Response Engine")
    await close_database()
    logger.info("Response Engine shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Response Engine API",
    description="""
    ## Contextual Response Generation for Customer Support

    Drafts replies to customer questions grounded in knowledge base articles.

    **Endpoints:**
    - `POST /messages/generate` - Generate a draft reply
    - `POST /generate-message` - Same contract, legacy path

    **Features:**
    - Full-text article retrieval with phrase and title fallbacks
    - Citation rules enforced in the prompt (`(Article ID: <id>)`)
    - Cited article extraction and confidence scoring
    - Distinct replies for knowledge base outages and empty searches
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
# Added last runs first, so the correlation id exists before logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(generation_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service status",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "knowledge_store": "connected",
                        "llm_client": "available"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    The service still answers when the knowledge store is down (replies
    acknowledge the outage), so that case reports "degraded".
    """
    checks = {
        "knowledge_store": "connected",
        "llm_client": "available" if getattr(request.app.state, "llm_client", None) else "not_configured"
    }

    try:
        await SQLAlchemyKnowledgeStore().ping()
    except Exception as e:
        checks["knowledge_store"] = f"error: {e}"

    healthy = checks["knowledge_store"] == "connected" and checks["llm_client"] == "available"

    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Response Engine",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "generation": {
                "endpoints": [
                    "POST /messages/generate - Generate a draft reply",
                    "POST /generate-message - Generate a draft reply (legacy path)"
                ]
            }
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
