"""Embedding provider using the Google Gemini API."""

import asyncio
import hashlib
import time
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from ..config import get_settings, LoggerMixin, Settings
from ..services.providers import EmbeddingError, EmbeddingProvider


class GeminiEmbeddingProvider(EmbeddingProvider, LoggerMixin):
    """Gemini embeddings with an in-process cache. Failures are not retried."""

    def __init__(self, settings: Optional[Settings] = None, task_type: str = "RETRIEVAL_DOCUMENT"):
        self.settings = settings or get_settings()
        self.model_name = self.settings.gemini_embedding_model
        self.api_key = self.settings.google_gemini_api_key
        self.task_type = task_type

        self.embedding_cache: Dict[str, List[float]] = {}
        self.cache_max_size = 10000

        self.stats = {
            'embeddings_generated': 0,
            'cache_hits': 0,
            'average_embedding_time': 0.0,
            'errors': 0
        }

        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            raise EmbeddingError("GOOGLE_GEMINI_API_KEY not configured")

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Text cannot be empty")

        cache_key = self._get_cache_key(text)
        if cache_key in self.embedding_cache:
            self.stats['cache_hits'] += 1
            return self.embedding_cache[cache_key]

        try:
            start_time = time.time()

            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, self._embed_sync, text)
            embedding = list(result['embedding'])

            self.stats['embeddings_generated'] += 1
            self._update_average_time(time.time() - start_time)
            self._cache_embedding(cache_key, embedding)

            self.logger.debug(f"Generated embedding for text ({len(text)} chars)")
            return embedding

        except Exception as e:
            self.stats['errors'] += 1
            error_msg = f"Failed to generate embedding: {e}"
            self.logger.error(error_msg)
            raise EmbeddingError(error_msg) from e

    def _embed_sync(self, text: str) -> Dict[str, Any]:
        return genai.embed_content(
            model=self.model_name,
            content=text,
            task_type=self.task_type
        )

    def _get_cache_key(self, text: str) -> str:
        return hashlib.sha256(f"{self.task_type}:{text}".encode()).hexdigest()

    def _cache_embedding(self, cache_key: str, embedding: List[float]) -> None:
        if len(self.embedding_cache) >= self.cache_max_size:
            # Drop the oldest entry
            self.embedding_cache.pop(next(iter(self.embedding_cache)))
        self.embedding_cache[cache_key] = embedding

    def _update_average_time(self, embedding_time: float) -> None:
        count = self.stats['embeddings_generated']
        if count == 1:
            self.stats['average_embedding_time'] = embedding_time
        else:
            alpha = 0.1
            self.stats['average_embedding_time'] = (
                alpha * embedding_time + (1 - alpha) * self.stats['average_embedding_time']
            )
