"""In-memory vector index with cosine similarity search."""

import json
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from ..config.logging import LoggerMixin
from ..models.document import Document


class VectorStoreError(Exception):
    pass


@dataclass
class VectorSearchResult:
    document: Document
    similarity: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector has zero norm."""
    a_arr = np.asarray(a, dtype=float)
    b_arr = np.asarray(b, dtype=float)
    if a_arr.shape != b_arr.shape:
        raise VectorStoreError(
            f"Vectors must have the same length ({a_arr.size} != {b_arr.size})"
        )

    norm_a = np.linalg.norm(a_arr)
    norm_b = np.linalg.norm(b_arr)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a_arr, b_arr) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


class VectorIndex(LoggerMixin):
    """Maps document id -> embedding for every indexed document.

    Documents without a parseable embedding are still counted but never
    returned by searches. The counters are unsynchronised and only meant for
    observability.
    """

    def __init__(self):
        self.documents: Dict[str, Document] = {}
        self.embeddings: Dict[str, np.ndarray] = {}

    def add(self, document: Document) -> bool:
        """Register a document; returns whether its embedding was indexed."""
        self.documents[document.id] = document

        if document.embedding is None:
            self.logger.debug(f"Document {document.id} has no embedding, not indexed")
            return False

        vector = self._parse_embedding(document.embedding)
        if vector is None:
            self.logger.error(f"Failed to parse embedding for document {document.id}")
            return False

        self.embeddings[document.id] = vector
        return True

    def add_many(self, documents: Iterable[Document]) -> int:
        return sum(1 for document in documents if self.add(document))

    def remove(self, document_id: str) -> bool:
        self.embeddings.pop(document_id, None)
        return self.documents.pop(document_id, None) is not None

    def remove_jurisdiction(self, jurisdiction: str) -> int:
        jurisdiction = jurisdiction.lower()
        doomed = [
            doc_id for doc_id, doc in self.documents.items()
            if doc.jurisdiction.lower() == jurisdiction
        ]
        for doc_id in doomed:
            self.remove(doc_id)
        return len(doomed)

    def clear(self) -> None:
        self.documents.clear()
        self.embeddings.clear()

    def search_similar(
        self,
        query_embedding: Sequence[float],
        k: int = 10,
        jurisdictions: Optional[List[str]] = None
    ) -> List[VectorSearchResult]:
        """Top-k documents by cosine similarity, optionally restricted to jurisdictions."""
        if k <= 0:
            return []

        allowed = {j.lower() for j in jurisdictions} if jurisdictions else None
        query = np.asarray(query_embedding, dtype=float)
        results: List[VectorSearchResult] = []

        for doc_id, doc_embedding in self.embeddings.items():
            document = self.documents.get(doc_id)
            if document is None:
                continue

            if allowed is not None and document.jurisdiction.lower() not in allowed:
                continue

            if doc_embedding.shape != query.shape:
                self.logger.warning(
                    f"Skipping document {doc_id}: embedding dimension "
                    f"{doc_embedding.size} != query dimension {query.size}"
                )
                continue

            results.append(VectorSearchResult(document, cosine_similarity(query, doc_embedding)))

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:k]

    def similarity(self, document_id: str, query_embedding: Sequence[float]) -> Optional[float]:
        """Similarity of one indexed document to the query, None if it cannot be scored."""
        doc_embedding = self.embeddings.get(document_id)
        if doc_embedding is None:
            return None

        query = np.asarray(query_embedding, dtype=float)
        if doc_embedding.shape != query.shape:
            return None
        return cosine_similarity(query, doc_embedding)

    def count(self, jurisdiction: Optional[str] = None) -> int:
        if not jurisdiction:
            return len(self.documents)
        jurisdiction = jurisdiction.lower()
        return sum(1 for doc in self.documents.values() if doc.jurisdiction.lower() == jurisdiction)

    def embedding_count(self, jurisdiction: Optional[str] = None) -> int:
        if not jurisdiction:
            return len(self.embeddings)
        jurisdiction = jurisdiction.lower()
        return sum(
            1 for doc_id in self.embeddings
            if doc_id in self.documents and self.documents[doc_id].jurisdiction.lower() == jurisdiction
        )

    @staticmethod
    def _parse_embedding(raw: Union[str, Sequence[float]]) -> Optional[np.ndarray]:
        try:
            values = json.loads(raw) if isinstance(raw, str) else raw
            vector = np.asarray(values, dtype=float)
        except (TypeError, ValueError):
            return None

        if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
            return None
        return vector
