"""Data models package for the jurisdiction RAG system."""

from .document import (
    AgentSession,
    AgentStatus,
    Document,
    DocumentInput,
    DocumentSummary,
    FullDocument,
)
from .conversation import (
    Conversation,
    Message,
    MessageRole,
)
from .response import (
    CLARIFICATION_NEEDED,
    AgentResponse,
    DispatchOutcome,
    MasterResponse,
    RoutingDecision,
    RoutingReply,
    SourceReference,
    SuggestedQuestionsReply,
)
from .query import (
    QueryRequest,
    QueryResponse,
    QueryType,
)

__all__ = [
    # Document models
    "AgentSession",
    "AgentStatus",
    "Document",
    "DocumentInput",
    "DocumentSummary",
    "FullDocument",

    # Conversation models
    "Conversation",
    "Message",
    "MessageRole",

    # Response models
    "CLARIFICATION_NEEDED",
    "AgentResponse",
    "DispatchOutcome",
    "MasterResponse",
    "RoutingDecision",
    "RoutingReply",
    "SourceReference",
    "SuggestedQuestionsReply",

    # Query models
    "QueryRequest",
    "QueryResponse",
    "QueryType",
]
