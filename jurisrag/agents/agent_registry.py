"""Builds the jurisdiction agents and the master agent from the catalog."""

from typing import Dict, Optional

from ..config import get_settings, Settings
from ..config.jurisdictions import JURISDICTION_CATALOG, JurisdictionAgentConfig
from ..database.base import BaseStorage
from ..services.providers import EmbeddingProvider, GenerationProvider
from ..vector_store.memory_index import VectorIndex
from .coordinator import MasterAgent
from .jurisdiction import JurisdictionAgent


def build_jurisdiction_agents(
    generation_provider: GenerationProvider,
    storage: BaseStorage,
    vector_index: Optional[VectorIndex] = None,
    embedding_provider: Optional[EmbeddingProvider] = None,
    settings: Optional[Settings] = None,
    catalog: Optional[Dict[str, JurisdictionAgentConfig]] = None
) -> Dict[str, JurisdictionAgent]:
    settings = settings or get_settings()
    catalog = catalog if catalog is not None else JURISDICTION_CATALOG

    return {
        agent_id: JurisdictionAgent(
            config,
            generation_provider,
            storage,
            vector_index=vector_index,
            embedding_provider=embedding_provider,
            retrieval_mode=settings.retrieval_strategy,
            retrieval_limit=settings.retrieval_limit
        )
        for agent_id, config in catalog.items()
    }


def build_master_agent(
    generation_provider: GenerationProvider,
    storage: BaseStorage,
    vector_index: Optional[VectorIndex] = None,
    embedding_provider: Optional[EmbeddingProvider] = None,
    settings: Optional[Settings] = None,
    catalog: Optional[Dict[str, JurisdictionAgentConfig]] = None
) -> MasterAgent:
    settings = settings or get_settings()
    agents = build_jurisdiction_agents(
        generation_provider,
        storage,
        vector_index=vector_index,
        embedding_provider=embedding_provider,
        settings=settings,
        catalog=catalog
    )
    return MasterAgent(agents, generation_provider, settings=settings)
