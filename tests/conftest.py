import hashlib
import json
from typing import Any, Dict, List, Optional

import pytest

from jurisrag.agents import DocumentIngestionPipeline, build_master_agent
from jurisrag.agents.coordinator import (
    CLARIFICATION_SYSTEM_PROMPT, ROUTING_SYSTEM_PROMPT, SUGGESTION_SYSTEM_PROMPT
)
from jurisrag.config import JURISDICTION_CATALOG, MASTER_AGENT_CONFIG, Settings
from jurisrag.database import InMemoryStorage
from jurisrag.models import Document
from jurisrag.services.providers import (
    ChatMessage, EmbeddingError, EmbeddingProvider, GenerationError,
    GenerationOptions, GenerationProvider
)
from jurisrag.vector_store import VectorIndex

EMBEDDING_DIM = 16

DEFAULT_SUGGESTIONS = [
    "What documentation does the EU AI Act require?",
    "How does NIST AI RMF define risk tiers?",
    "What are the penalties under the AI Act?",
    "How do US and EU timelines compare?",
    "Which systems count as high-risk?",
]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words hashed into a small vector; identical text gives identical vectors."""

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError("embedding service unavailable")

        vector = [0.0] * EMBEDDING_DIM
        for word in text.lower().split():
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % EMBEDDING_DIM
            vector[bucket] += 1.0
        return vector


class ScriptedGenerationProvider(GenerationProvider):
    """Answers by call kind and records every call.

    `replies` overrides the reply text per kind and `failures` makes a kind
    raise GenerationError. Agent answers can be failed per jurisdiction.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.replies: Dict[str, str] = {
            "routing": json.dumps({
                "selectedJurisdictions": ["us-federal", "eu"],
                "rationale": "Comparative question about the US and the EU"
            }),
            "clarification": "Which jurisdiction are you interested in? Options include the EU and the US.",
            "suggestions": json.dumps(DEFAULT_SUGGESTIONS),
            "summary": "Both jurisdictions take a risk-based approach, with different enforcement.",
        }
        self.failures: Dict[str, Exception] = {}
        self.failing_jurisdictions: Dict[str, Exception] = {}

    @staticmethod
    def kind_of(system_prompt: str) -> str:
        if system_prompt == ROUTING_SYSTEM_PROMPT:
            return "routing"
        if system_prompt == CLARIFICATION_SYSTEM_PROMPT:
            return "clarification"
        if system_prompt == SUGGESTION_SYSTEM_PROMPT:
            return "suggestions"
        if system_prompt == MASTER_AGENT_CONFIG.system_prompt:
            return "summary"
        return "agent"

    def calls_of(self, kind: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["kind"] == kind]

    async def complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        options: GenerationOptions
    ) -> str:
        kind = self.kind_of(system_prompt)
        prompt = messages[-1].content
        self.calls.append({
            "kind": kind,
            "system_prompt": system_prompt,
            "prompt": prompt,
            "options": options
        })

        if kind in self.failures:
            raise self.failures[kind]

        if kind == "agent":
            for jurisdiction, error in self.failing_jurisdictions.items():
                if f"documents from {jurisdiction}," in prompt:
                    raise error
            jurisdiction = prompt.split("documents from ", 1)[1].split(",", 1)[0]
            return f"Answer for {jurisdiction}"

        return self.replies[kind]


def make_document(
    title: str,
    content: str,
    jurisdiction: str = "eu",
    embedding: Optional[List[float]] = None,
    **kwargs
) -> Document:
    return Document(
        title=title,
        content=content,
        jurisdiction=jurisdiction,
        document_type="regulation",
        embedding=embedding,
        **kwargs
    )


def long_text(min_chars: int) -> str:
    sentences = []
    length = 0
    while length < min_chars:
        sentence = f"Article {len(sentences)} sets out obligations for providers of high-risk AI systems in the Union."
        sentences.append(sentence)
        length += len(sentence) + 1
    return " ".join(sentences)


@pytest.fixture
def settings():
    return Settings(
        google_gemini_api_key=None,
        default_jurisdictions=["us-federal", "eu"],
        auto_route_default=True,
        agent_timeout_seconds=None,
        retrieval_strategy="lexical",
        retrieval_limit=5,
        ingest_concurrency=4,
        warm_batch_size=2,
        warm_batch_delay_seconds=0.0
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def vector_index():
    return VectorIndex()


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def generation_provider():
    return ScriptedGenerationProvider()


@pytest.fixture
def pipeline(storage, vector_index, embedding_provider, settings):
    return DocumentIngestionPipeline(
        storage,
        vector_index,
        embedding_provider,
        settings=settings,
        jurisdictions=list(JURISDICTION_CATALOG)
    )


@pytest.fixture
def master_agent(generation_provider, storage, vector_index, embedding_provider, settings):
    return build_master_agent(
        generation_provider,
        storage,
        vector_index=vector_index,
        embedding_provider=embedding_provider,
        settings=settings
    )
