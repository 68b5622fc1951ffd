from .base_agent import BaseAgent
from .jurisdiction import JurisdictionAgent, ScoredDocument
from .coordinator import MasterAgent, OrchestrationError
from .ingestion import DocumentIngestionPipeline, IngestionError, chunk_text
from .agent_registry import build_jurisdiction_agents, build_master_agent

__all__ = [
    "BaseAgent",
    "JurisdictionAgent",
    "ScoredDocument",
    "MasterAgent",
    "OrchestrationError",
    "DocumentIngestionPipeline",
    "IngestionError",
    "chunk_text",
    "build_jurisdiction_agents",
    "build_master_agent"
]
