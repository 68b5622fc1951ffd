import asyncio
import re
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..config.logging import LoggerMixin
from ..config.settings import get_settings, Settings
from ..database.base import BaseStorage
from ..models import Document, DocumentInput
from ..services.providers import EmbeddingProvider, ProviderError
from ..vector_store.memory_index import VectorIndex

# A sentence keeps its terminators and the whitespace after them; trailing
# text without a terminator is a final sentence. Matches tile the whole text.
SENTENCE_PATTERN = re.compile(r"[^.!?]*[.!?]+\s*|[^.!?]+$")
SENTENCE_BOUNDARY = re.compile(r"[.!?]")


class IngestionError(Exception):
    """Custom exception for ingestion process errors."""
    pass


def slice_text(text: str, max_chars: int) -> List[str]:
    return [text[i:i + max_chars] for i in range(0, len(text), max_chars)]


def chunk_text(text: str, max_chars: int) -> List[str]:
    """Split text into chunks of at most `max_chars` at sentence boundaries.

    Chunks are contiguous spans of `text`, so `"".join(chunks) == text`.
    Sentences are accumulated greedily. A sentence longer than the budget is
    sliced on its own. Text with no sentence terminator at all is sliced into
    fixed-size pieces.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    if not SENTENCE_BOUNDARY.search(text):
        return slice_text(text, max_chars)

    chunks: List[str] = []
    current = ""

    for sentence in SENTENCE_PATTERN.findall(text):
        if len(sentence) > max_chars:
            if current:
                chunks.append(current)
            pieces = slice_text(sentence, max_chars)
            chunks.extend(pieces[:-1])
            current = pieces[-1]
            continue

        if len(current) + len(sentence) > max_chars:
            chunks.append(current)
            current = sentence
        else:
            current += sentence

    if current:
        chunks.append(current)

    return chunks


class DocumentIngestionPipeline(LoggerMixin):
    """Chunk, embed, persist and index regulation documents."""

    def __init__(
        self,
        storage: BaseStorage,
        vector_index: VectorIndex,
        embedding_provider: EmbeddingProvider,
        settings: Optional[Settings] = None,
        jurisdictions: Optional[List[str]] = None
    ):
        self.settings = settings or get_settings()
        self.storage = storage
        self.vector_index = vector_index
        self.embedding_provider = embedding_provider
        self.jurisdictions = list(jurisdictions or [])

        self.chars_per_token = self.settings.chars_per_token
        self.threshold_tokens = self.settings.chunk_threshold_tokens
        self.max_chunk_chars = self.settings.chunk_max_tokens * self.chars_per_token
        self.concurrency = self.settings.ingest_concurrency
        self.warm_batch_size = self.settings.warm_batch_size
        self.warm_batch_delay = self.settings.warm_batch_delay_seconds

        self._warm_task: Optional[asyncio.Task] = None

        self.stats: Dict[str, Any] = {
            "documents_ingested": 0,
            "chunks_created": 0,
            "failures": 0,
            "documents_warmed": 0,
            "average_ingest_time": 0.0,
        }

    def approximate_tokens(self, text: str) -> float:
        return len(text) / self.chars_per_token

    def split(self, content: str) -> List[str]:
        if self.approximate_tokens(content) <= self.threshold_tokens:
            return [content]
        return chunk_text(content, self.max_chunk_chars)

    async def ingest(self, doc: DocumentInput) -> Document:
        """Ingest one document; returns the stored row, or its first chunk when split."""
        start = time.time()
        chunks = self.split(doc.content)
        total = len(chunks)

        if total > 1:
            self.logger.info(
                f"Document '{doc.title}' (~{int(self.approximate_tokens(doc.content))} tokens) "
                f"split into {total} chunks"
            )

        # Embed everything first so an embedding failure leaves no rows behind
        embeddings: List[List[float]] = []
        for index, chunk in enumerate(chunks):
            embeddings.append(await self._embed(chunk, doc.title, index, total))

        rows = self._build_rows(doc, chunks, embeddings)

        created: List[Document] = []
        try:
            for row in rows:
                created.append(await self.storage.create_document(row))
        except Exception as e:
            self.stats["failures"] += 1
            if created:
                removed = await self.storage.delete_documents([row.id for row in created])
                self.logger.warning(f"Rolled back {removed} stored chunks of '{doc.title}'")
            raise IngestionError(f"Failed to store document '{doc.title}': {e}") from e

        indexed = self.vector_index.add_many(created)
        if indexed != len(created):
            self.logger.warning(
                f"Only {indexed}/{len(created)} rows of '{doc.title}' were indexed"
            )

        self.stats["documents_ingested"] += 1
        self.stats["chunks_created"] += len(created)
        self._update_average_time(time.time() - start)

        self.logger.info(
            f"Ingested '{doc.title}' for {doc.jurisdiction} as {len(created)} row(s)"
        )
        return created[0]

    async def _embed(self, text: str, title: str, index: int, total: int) -> List[float]:
        try:
            embedding = await self.embedding_provider.embed(text)
        except ProviderError as e:
            self.stats["failures"] += 1
            raise IngestionError(
                f"Embedding failed for '{title}' chunk {index + 1}/{total}: {e}"
            ) from e

        if not embedding:
            self.stats["failures"] += 1
            raise IngestionError(f"Empty embedding for '{title}' chunk {index + 1}/{total}")

        return list(embedding)

    @staticmethod
    def _build_rows(doc: DocumentInput, chunks: List[str], embeddings: List[List[float]]) -> List[Document]:
        if len(chunks) == 1:
            return [Document(
                title=doc.title,
                content=chunks[0],
                jurisdiction=doc.jurisdiction,
                document_type=doc.document_type,
                source_url=doc.source_url,
                embedding=embeddings[0]
            )]

        root_id = str(uuid4())
        total = len(chunks)
        return [
            Document(
                id=root_id if index == 0 else str(uuid4()),
                title=f"{doc.title} (Part {index + 1}/{total})",
                content=chunk,
                jurisdiction=doc.jurisdiction,
                document_type=doc.document_type,
                source_url=doc.source_url,
                embedding=embedding,
                original_document_id=root_id,
                chunk_index=index,
                is_chunk=True
            )
            for index, (chunk, embedding) in enumerate(zip(chunks, embeddings))
        ]

    async def ingest_batch(self, docs: List[DocumentInput]) -> List[Document]:
        """Ingest concurrently; failures are logged and left out of the result."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(doc: DocumentInput) -> Document:
            async with semaphore:
                return await self.ingest(doc)

        results = await asyncio.gather(*(_bounded(doc) for doc in docs), return_exceptions=True)

        successes: List[Document] = []
        for doc, result in zip(docs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self.logger.error(f"Failed to ingest '{doc.title}' ({doc.jurisdiction}): {result}")
            else:
                successes.append(result)

        self.logger.info(f"Batch ingestion finished: {len(successes)}/{len(docs)} succeeded")
        return successes

    def start_warm_index(self) -> asyncio.Task:
        """Schedule warm_index in the background and return its task."""
        if self._warm_task is None or self._warm_task.done():
            self._warm_task = asyncio.create_task(self.warm_index())
        return self._warm_task

    async def warm_index(self, jurisdictions: Optional[List[str]] = None) -> int:
        """Load stored documents into the vector index in small batches."""
        jurisdictions = jurisdictions or self.jurisdictions
        loaded = 0

        for jurisdiction in jurisdictions:
            try:
                documents = await self.storage.get_documents_by_jurisdiction(jurisdiction)
            except Exception as e:
                self.logger.error(f"Failed to load documents for {jurisdiction} during warm-up: {e}")
                continue

            for start in range(0, len(documents), self.warm_batch_size):
                batch = documents[start:start + self.warm_batch_size]
                loaded += self.vector_index.add_many(batch)

                if start + self.warm_batch_size < len(documents):
                    await asyncio.sleep(self.warm_batch_delay)

            self.logger.debug(f"Warmed {jurisdiction}: {len(documents)} documents")

        self.stats["documents_warmed"] += loaded
        self.logger.info(f"Vector index warm-up complete: {loaded} embeddings loaded")
        return loaded

    def _update_average_time(self, elapsed: float) -> None:
        n = self.stats["documents_ingested"]
        prev = self.stats["average_ingest_time"]
        self.stats["average_ingest_time"] = ((prev * (n - 1)) + elapsed) / max(n, 1)

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            "indexed_documents": self.vector_index.count(),
            "indexed_embeddings": self.vector_index.embedding_count(),
        }
