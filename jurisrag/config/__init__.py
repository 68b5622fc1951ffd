from .logging import get_logger, setup_logging, LoggerMixin
from .settings import get_settings, ensure_directories, Settings, RetrievalMode
from .jurisdictions import (
    AgentConfig, JurisdictionAgentConfig, JURISDICTION_CATALOG, MASTER_AGENT_CONFIG
)

__all__ = [
    "get_settings",
    "ensure_directories",
    "Settings",
    "RetrievalMode",
    "AgentConfig",
    "JurisdictionAgentConfig",
    "JURISDICTION_CATALOG",
    "MASTER_AGENT_CONFIG",
    "setup_logging",
    "get_logger",
    "LoggerMixin"
]
