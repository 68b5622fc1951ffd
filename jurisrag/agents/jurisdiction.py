"""Generic jurisdiction agent: retrieve grounding documents, then answer from them."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import RetrievalMode
from ..config.jurisdictions import JurisdictionAgentConfig
from ..database.base import BaseStorage
from ..models import AgentResponse, Document, SourceReference
from ..services.providers import EmbeddingProvider, GenerationProvider
from ..vector_store.memory_index import VectorIndex
from .base_agent import BaseAgent

ANSWER_TEMPLATE = """Based on the following documents from {jurisdiction}, please answer the question: {query}

Context Documents:
{context}

Please provide a comprehensive answer based only on the provided documents. If the documents don't contain sufficient information to answer the question, please state this clearly."""


@dataclass
class ScoredDocument:
    document: Document
    score: float


class JurisdictionAgent(BaseAgent):
    """One agent per jurisdiction, driven entirely by its configuration record.

    Retrieval and generation errors propagate unchanged; isolating a failing
    agent is the master agent's job.
    """

    def __init__(
        self,
        config: JurisdictionAgentConfig,
        generation_provider: GenerationProvider,
        storage: BaseStorage,
        vector_index: Optional[VectorIndex] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        retrieval_mode: RetrievalMode = RetrievalMode.LEXICAL,
        retrieval_limit: int = 5
    ):
        super().__init__(config, generation_provider)
        self.config: JurisdictionAgentConfig = config
        self.storage = storage
        self.vector_index = vector_index
        self.embedding_provider = embedding_provider
        self.retrieval_mode = RetrievalMode(retrieval_mode)
        self.retrieval_limit = retrieval_limit

        if self.retrieval_mode != RetrievalMode.LEXICAL and (
            vector_index is None or embedding_provider is None
        ):
            raise ValueError(
                f"{self.retrieval_mode.value} retrieval needs a vector index and an embedding provider"
            )

    @property
    def jurisdiction(self) -> str:
        return self.config.jurisdiction

    @property
    def specialization(self) -> List[str]:
        return list(self.config.specialization)

    async def process_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> AgentResponse:
        return await self.answer(query, context)

    async def answer(self, query: str, context: Optional[Dict[str, Any]] = None) -> AgentResponse:
        context = context or {}
        self.metrics["requests"] += 1
        self.logger.info(f"[{self.config.id}] Processing query: {query[:100]}")

        try:
            scored = await self.retrieve(query)
            content = await self.generate(query, [s.document for s in scored])
        except Exception as e:
            self.metrics["failed_requests"] += 1
            self.logger.error(f"[{self.config.id}] Error processing query: {e}")
            raise

        return AgentResponse(
            agent_id=self.config.id,
            agent_name=self.config.name,
            content=content,
            sources=[
                SourceReference(
                    title=s.document.title,
                    relevance=s.score,
                    tokens=s.document.approximate_tokens
                )
                for s in scored
            ],
            metadata={
                "jurisdiction": self.jurisdiction,
                "documents_used": len(scored),
                "query_type": context.get("query_type", "general"),
                "retrieval_mode": self.retrieval_mode.value
            }
        )

    async def retrieve(self, query: str, limit: Optional[int] = None) -> List[ScoredDocument]:
        """Top documents for this jurisdiction, best first."""
        limit = self.retrieval_limit if limit is None else limit
        if limit <= 0:
            return []

        if self.retrieval_mode == RetrievalMode.SEMANTIC:
            return await self._semantic_retrieve(query, limit)

        documents = await self.storage.get_documents_by_jurisdiction(self.jurisdiction)

        if self.retrieval_mode == RetrievalMode.HYBRID:
            scored = await self._hybrid_scores(query, documents)
        else:
            scored = [ScoredDocument(doc, self.calculate_relevance(doc, query)) for doc in documents]

        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:limit]

    def calculate_relevance(self, document: Document, query: str) -> float:
        """Deterministic lexical score in [0, 1]."""
        query_lower = query.lower()
        title_lower = document.title.lower()
        content_lower = document.content.lower()

        score = 0.0

        if query_lower in title_lower:
            score += 0.3

        # Repeated words count again
        for word in query_lower.split(" "):
            if len(word) > 3:
                if word in title_lower:
                    score += 0.2
                if word in content_lower:
                    score += 0.1

        for keyword in self.config.specialization:
            if keyword.lower() in content_lower:
                score += 0.15

        return max(0.0, min(score, 1.0))

    async def _semantic_retrieve(self, query: str, limit: int) -> List[ScoredDocument]:
        query_embedding = await self.embedding_provider.embed(query)
        results = self.vector_index.search_similar(
            query_embedding, k=limit, jurisdictions=[self.jurisdiction]
        )
        return [ScoredDocument(r.document, max(0.0, r.similarity)) for r in results]

    async def _hybrid_scores(self, query: str, documents: List[Document]) -> List[ScoredDocument]:
        if not documents:
            return []

        query_embedding = await self.embedding_provider.embed(query)
        scored = []
        for doc in documents:
            lexical = self.calculate_relevance(doc, query)
            similarity = self.vector_index.similarity(doc.id, query_embedding) or 0.0
            score = (lexical + max(0.0, similarity)) / 2
            scored.append(ScoredDocument(doc, max(0.0, min(score, 1.0))))
        return scored

    async def generate(self, query: str, documents: List[Document]) -> str:
        context = "\n".join(
            f"Document: {doc.title}\nContent: {doc.content}\n---" for doc in documents
        )
        prompt = ANSWER_TEMPLATE.format(
            jurisdiction=self.jurisdiction,
            query=query,
            context=context or "(no documents available)"
        )
        return await self.generate_response(prompt)

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.config.id,
            "name": self.config.name,
            "jurisdiction": self.jurisdiction,
            "specialization": self.specialization,
            "description": self.config.description,
            "retrieval_mode": self.retrieval_mode.value
        }
