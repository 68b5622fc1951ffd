"""Request/response models at the query boundary."""

from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from .document import CamelModel
from .response import AgentResponse, RoutingDecision


class QueryType(str, Enum):
    """Kinds of questions the master agent is told about when routing."""
    GENERAL = "general"
    COMPLIANCE = "compliance"
    COMPARISON = "comparison"
    LEGAL = "legal"


class QueryRequest(CamelModel):
    message: str = Field(min_length=1)
    conversation_id: Optional[str] = None
    jurisdictions: Optional[List[str]] = None
    query_type: QueryType = QueryType.GENERAL
    auto_route: Optional[bool] = None

    @field_validator('message')
    @classmethod
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Query message cannot be empty')
        return v.strip()

    @field_validator('jurisdictions')
    @classmethod
    def normalize_jurisdictions(cls, v):
        if v is None:
            return v
        # Ordered and unique
        return list(dict.fromkeys(j.strip().lower() for j in v if j and j.strip()))


class QueryResponse(CamelModel):
    conversation_id: str
    responses: List[AgentResponse]
    master_summary: Optional[str] = None
    routing_info: RoutingDecision
    suggested_questions: Optional[List[str]] = None
