from .memory_index import VectorIndex, VectorSearchResult, VectorStoreError, cosine_similarity
from .embeddings import GeminiEmbeddingProvider

__all__ = [
    "VectorIndex",
    "VectorSearchResult",
    "VectorStoreError",
    "cosine_similarity",
    "GeminiEmbeddingProvider",
]
