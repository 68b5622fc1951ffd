"""Document and agent-session models for the regulation corpus."""

import re
from datetime import datetime, UTC
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_PART_SUFFIX = re.compile(r" \(Part \d+/\d+\)$")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys at the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentInput(CamelModel):
    """Raw document submitted for ingestion."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    jurisdiction: str = Field(min_length=1)
    document_type: str = Field(min_length=1)
    source_url: Optional[str] = None

    @field_validator('jurisdiction')
    @classmethod
    def normalize_jurisdiction(cls, v):
        return v.strip().lower()

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Document content cannot be empty')
        return v.strip()


class Document(CamelModel):
    """Persisted document row; one row per chunk when a document is split."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    content: str
    jurisdiction: str
    document_type: str
    source_url: Optional[str] = None
    embedding: Optional[List[float]] = Field(default=None, exclude=True)

    # Chunk relationship: every chunk points at the id of part 1
    original_document_id: Optional[str] = None
    chunk_index: Optional[int] = None
    is_chunk: bool = False

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def root_id(self) -> str:
        """Id shared by every chunk of the same original document."""
        return self.original_document_id or self.id

    @property
    def base_title(self) -> str:
        """Title without the `(Part i/n)` suffix."""
        if not self.is_chunk:
            return self.title
        return _PART_SUFFIX.sub("", self.title)

    @property
    def approximate_tokens(self) -> int:
        return len(self.content) // 4


class FullDocument(CamelModel):
    """An original document reassembled from its chunks."""

    id: str
    title: str
    jurisdiction: str
    document_type: str
    source_url: Optional[str] = None
    created_at: datetime
    content: str
    chunk_count: int


class DocumentSummary(CamelModel):
    """One entry per original document in listings."""

    id: str
    title: str
    jurisdiction: str
    document_type: str
    source_url: Optional[str] = None
    created_at: datetime
    content: str
    chunk_count: int


class AgentStatus(str, Enum):
    ACTIVE = "active"
    IDLE = "idle"
    UPDATING = "updating"


class AgentSession(CamelModel):
    """Per-jurisdiction observability counters, overwritten on every upsert."""

    agent_id: str
    status: AgentStatus = AgentStatus.IDLE
    documents_count: int = Field(0, ge=0)
    embeddings_count: int = Field(0, ge=0)
    last_active: datetime = Field(default_factory=lambda: datetime.now(UTC))
