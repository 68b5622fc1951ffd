"""Response models produced by the jurisdiction agents and the master agent."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .document import CamelModel

CLARIFICATION_NEEDED = "CLARIFICATION_NEEDED"


class SourceReference(CamelModel):
    """A grounding document cited by an agent answer."""

    title: str
    relevance: float = Field(ge=0.0, le=1.0)
    tokens: int = Field(ge=0)


class AgentResponse(CamelModel):
    agent_id: str
    agent_name: str
    content: str
    sources: List[SourceReference] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict, exclude=True)


class RoutingDecision(CamelModel):
    selected_jurisdictions: List[str]
    rationale: str
    auto_routed: bool

    @property
    def needs_clarification(self) -> bool:
        return self.selected_jurisdictions == [CLARIFICATION_NEEDED]


class DispatchOutcome(BaseModel):
    """Settled results of one fan-out: successes in request order, failures by jurisdiction."""

    responses: List[AgentResponse] = Field(default_factory=list)
    failures: Dict[str, str] = Field(default_factory=dict)

    @property
    def total_failure(self) -> bool:
        return not self.responses and bool(self.failures)


class MasterResponse(CamelModel):
    responses: List[AgentResponse] = Field(default_factory=list)
    master_summary: Optional[str] = None
    routing_info: RoutingDecision
    suggested_questions: Optional[List[str]] = None
    failed_jurisdictions: List[str] = Field(default_factory=list)


# Shapes expected back from JSON-mode generation calls. Anything that does not
# validate against them is replaced by a fallback by the caller.

class RoutingReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    selected_jurisdictions: List[str] = Field(alias="selectedJurisdictions")
    rationale: Optional[str] = None

    @field_validator('selected_jurisdictions', mode='before')
    @classmethod
    def strip_ids(cls, v):
        if not isinstance(v, list):
            raise ValueError('selectedJurisdictions must be a list')
        return [str(item).strip() for item in v if isinstance(item, str) and item.strip()]


class SuggestedQuestionsReply(BaseModel):
    questions: List[str] = Field(min_length=5, max_length=5)

    @field_validator('questions')
    @classmethod
    def questions_not_blank(cls, v):
        cleaned = [q.strip() for q in v]
        if any(not q for q in cleaned):
            raise ValueError('Suggested questions cannot be blank')
        return cleaned
