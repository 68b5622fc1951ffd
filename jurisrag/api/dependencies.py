"""Application wiring: one container of collaborators per app instance."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..agents import DocumentIngestionPipeline, MasterAgent, build_master_agent
from ..config import get_settings, Settings
from ..database import BaseStorage, InMemoryStorage
from ..services.chat_service import ChatService
from ..services.document_service import DocumentService
from ..services.providers import EmbeddingProvider, GenerationProvider
from ..vector_store import VectorIndex


@dataclass
class AppContainer:
    settings: Settings
    storage: BaseStorage
    vector_index: VectorIndex
    generation_provider: GenerationProvider
    embedding_provider: EmbeddingProvider
    query_embedding_provider: EmbeddingProvider
    master_agent: MasterAgent
    pipeline: DocumentIngestionPipeline
    chat_service: ChatService
    document_service: DocumentService


def build_container(
    settings: Optional[Settings] = None,
    storage: Optional[BaseStorage] = None,
    generation_provider: Optional[GenerationProvider] = None,
    embedding_provider: Optional[EmbeddingProvider] = None,
    query_embedding_provider: Optional[EmbeddingProvider] = None
) -> AppContainer:
    """Build every collaborator; Gemini providers are used unless others are given.

    Documents are embedded with `embedding_provider`; agents embed queries with
    `query_embedding_provider`, which defaults to the document-side provider.
    """
    settings = settings or get_settings()
    storage = storage or InMemoryStorage()

    if generation_provider is None:
        from ..services.llm_service import GeminiGenerationProvider
        generation_provider = GeminiGenerationProvider(settings)

    if embedding_provider is None:
        from ..vector_store.embeddings import GeminiEmbeddingProvider
        embedding_provider = GeminiEmbeddingProvider(settings)
        if query_embedding_provider is None:
            query_embedding_provider = GeminiEmbeddingProvider(settings, task_type="RETRIEVAL_QUERY")

    query_embedding_provider = query_embedding_provider or embedding_provider

    vector_index = VectorIndex()

    master_agent = build_master_agent(
        generation_provider,
        storage,
        vector_index=vector_index,
        embedding_provider=query_embedding_provider,
        settings=settings
    )

    pipeline = DocumentIngestionPipeline(
        storage,
        vector_index,
        embedding_provider,
        settings=settings,
        jurisdictions=master_agent.catalog
    )

    return AppContainer(
        settings=settings,
        storage=storage,
        vector_index=vector_index,
        generation_provider=generation_provider,
        embedding_provider=embedding_provider,
        query_embedding_provider=query_embedding_provider,
        master_agent=master_agent,
        pipeline=pipeline,
        chat_service=ChatService(master_agent, storage),
        document_service=DocumentService(storage, pipeline, vector_index)
    )


def get_container(request: Request) -> AppContainer:
    return request.app.state.container
