import os
from enum import Enum
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class RetrievalMode(str, Enum):
    """How jurisdiction agents pick grounding documents."""
    LEXICAL = "lexical"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra = "ignore")

    app_name: str = "Jurisdiction RAG"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    logs_directory: str = "./logs"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Google Gemini Configuration
    google_gemini_api_key: Optional[str] = None
    google_gemini_model: str = "gemini-2.5-pro"
    gemini_embedding_model: str = "models/text-embedding-004"
    google_gemini_max_tokens: int = 4096
    google_gemini_temperature: float = Field(0.7, ge = 0.0, le = 2.0)
    google_gemini_max_retries: int = Field(3, ge = 1)

    # Routing
    auto_route_default: bool = True
    default_jurisdictions: List[str] = Field(default_factory = lambda: ["us-federal", "eu"])
    agent_timeout_seconds: Optional[float] = None

    # Retrieval
    retrieval_limit: int = Field(5, ge = 1, le = 50)
    retrieval_strategy: RetrievalMode = RetrievalMode.LEXICAL

    # Ingestion
    chars_per_token: int = 4
    chunk_threshold_tokens: int = 7000
    chunk_max_tokens: int = 6000
    ingest_concurrency: int = Field(8, ge = 1)
    warm_batch_size: int = Field(50, ge = 1)
    warm_batch_delay_seconds: float = 0.1


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

def ensure_directories():
    """Ensure necessary directories exist."""
    settings = get_settings()
    os.makedirs(settings.logs_directory, exist_ok=True)
