"""Document management on top of the ingestion pipeline and storage."""

from typing import Any, Dict, List, Optional

from ..agents.ingestion import DocumentIngestionPipeline
from ..config.logging import LoggerMixin
from ..database.base import BaseStorage
from ..models import (
    AgentSession, AgentStatus, Document, DocumentInput, DocumentSummary, FullDocument
)
from ..vector_store.memory_index import VectorIndex

PREVIEW_CHARS = 500


class DocumentNotFoundError(Exception):
    pass


class DocumentService(LoggerMixin):
    """Adds, removes and reassembles documents and keeps agent-session counters current.

    Session counters are observability data only and are updated with a plain
    read-modify-write.
    """

    def __init__(
        self,
        storage: BaseStorage,
        pipeline: DocumentIngestionPipeline,
        vector_index: VectorIndex
    ):
        self.storage = storage
        self.pipeline = pipeline
        self.vector_index = vector_index

    async def add_document(self, doc: DocumentInput) -> Document:
        document = await self.pipeline.ingest(doc)
        rows = await self._row_count(document)
        await self._adjust_session(document.jurisdiction, documents=1, embeddings=rows)
        return document

    async def add_documents(self, docs: List[DocumentInput]) -> List[Document]:
        documents = await self.pipeline.ingest_batch(docs)

        per_jurisdiction: Dict[str, List[int]] = {}
        for document in documents:
            counts = per_jurisdiction.setdefault(document.jurisdiction, [0, 0])
            counts[0] += 1
            counts[1] += await self._row_count(document)

        for jurisdiction, (doc_count, row_count) in per_jurisdiction.items():
            await self._adjust_session(jurisdiction, documents=doc_count, embeddings=row_count)

        if len(documents) < len(docs):
            self.logger.warning(f"{len(docs) - len(documents)} of {len(docs)} documents failed to ingest")
        return documents

    async def delete_document(self, document_id: str) -> Document:
        document = await self.storage.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        await self.storage.delete_document(document_id)
        self.vector_index.remove(document_id)

        # An original document stops counting only with its last row
        remaining = await self.storage.get_document_chunks(document.root_id)
        await self._adjust_session(
            document.jurisdiction,
            documents=0 if remaining else -1,
            embeddings=-1
        )

        self.logger.info(f"Deleted document {document_id} ({document.jurisdiction})")
        return document

    async def delete_jurisdiction(self, jurisdiction: str) -> int:
        jurisdiction = jurisdiction.strip().lower()
        deleted = await self.storage.delete_documents_by_jurisdiction(jurisdiction)
        if deleted == 0:
            self.logger.info(f"No documents found for {jurisdiction}")
            return 0

        self.vector_index.remove_jurisdiction(jurisdiction)
        await self.storage.upsert_agent_session(AgentSession(
            agent_id=jurisdiction,
            status=AgentStatus.IDLE,
            documents_count=0,
            embeddings_count=0
        ))

        self.logger.info(f"Deleted {deleted} documents for {jurisdiction}")
        return deleted

    async def get_full_document(self, document_id: str) -> FullDocument:
        """Reassemble an original document from any of its rows."""
        document = await self.storage.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        chunks = await self.storage.get_document_chunks(document.root_id)
        if not chunks:
            chunks = [document]
        chunks.sort(key=lambda d: d.chunk_index or 0)

        first = chunks[0]
        return FullDocument(
            id=document.root_id,
            title=first.base_title,
            jurisdiction=first.jurisdiction,
            document_type=first.document_type,
            source_url=first.source_url,
            created_at=first.created_at,
            content="".join(chunk.content for chunk in chunks),
            chunk_count=len(chunks)
        )

    async def list_documents(self, jurisdiction: Optional[str] = None) -> List[DocumentSummary]:
        """One entry per original document, chunks folded together."""
        if jurisdiction:
            documents = await self.storage.get_documents_by_jurisdiction(jurisdiction)
        else:
            documents = await self.storage.get_all_documents()

        groups: Dict[str, List[Document]] = {}
        for document in documents:
            groups.setdefault(document.root_id, []).append(document)

        summaries = []
        for root_id, rows in groups.items():
            rows.sort(key=lambda d: d.chunk_index or 0)
            first = rows[0]
            summaries.append(DocumentSummary(
                id=root_id,
                title=first.base_title,
                jurisdiction=first.jurisdiction,
                document_type=first.document_type,
                source_url=first.source_url,
                created_at=first.created_at,
                content=first.content[:PREVIEW_CHARS],
                chunk_count=len(rows)
            ))
        return summaries

    async def list_jurisdictions(self) -> List[Dict[str, Any]]:
        summaries = await self.list_documents()

        counts: Dict[str, int] = {}
        for summary in summaries:
            counts[summary.jurisdiction] = counts.get(summary.jurisdiction, 0) + 1

        return [
            {"id": jurisdiction, "name": jurisdiction, "documentCount": count}
            for jurisdiction, count in sorted(counts.items())
        ]

    async def _row_count(self, document: Document) -> int:
        if not document.is_chunk:
            return 1
        return len(await self.storage.get_document_chunks(document.root_id))

    async def _adjust_session(self, jurisdiction: str, documents: int, embeddings: int) -> AgentSession:
        session = await self.storage.get_agent_session(jurisdiction)
        current_docs = session.documents_count if session else 0
        current_embeddings = session.embeddings_count if session else 0

        if documents > 0:
            status = AgentStatus.ACTIVE
        else:
            status = session.status if session else AgentStatus.IDLE

        return await self.storage.upsert_agent_session(AgentSession(
            agent_id=jurisdiction,
            status=status,
            documents_count=max(0, current_docs + documents),
            embeddings_count=max(0, current_embeddings + embeddings)
        ))
