"""
Generation Application Layer
============================

Application layer for contextual response generation.

Contains:
- Interfaces: knowledge store, ticket history, completion provider
- Services: context gathering, generation invoker, orchestrator
- DTOs: Data transfer objects for API serialization
"""

from src.generation.application.interfaces import (
    IKnowledgeStore,
    ITicketHistory,
    ICompletionProvider,
    CompletionRequest,
    TicketComment,
)
from src.generation.application.context import (
    ContextGatherer,
    tokenize_search_term,
    build_terms_query,
)
from src.generation.application.services import (
    GenerationInvoker,
    MessageGenerationService,
)
from src.generation.application.dto import (
    GenerateMessageRequest,
    GenerateMessageResponse,
    GenerationConfigOverrides,
    MessageContextPayload,
    ErrorResponse,
)

__all__ = [
    # Interfaces
    "IKnowledgeStore",
    "ITicketHistory",
    "ICompletionProvider",
    "CompletionRequest",
    "TicketComment",
    # Services
    "ContextGatherer",
    "GenerationInvoker",
    "MessageGenerationService",
    "tokenize_search_term",
    "build_terms_query",
    # DTOs
    "GenerateMessageRequest",
    "GenerateMessageResponse",
    "GenerationConfigOverrides",
    "MessageContextPayload",
    "ErrorResponse",
]
