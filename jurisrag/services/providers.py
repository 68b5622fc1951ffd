"""Capability interfaces for the language and embedding models."""

from abc import ABC, abstractmethod
from typing import List, Literal

from pydantic import BaseModel, Field


class ProviderError(Exception):
    """A model provider call failed."""
    pass


class GenerationError(ProviderError):
    pass


class EmbeddingError(ProviderError):
    pass


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: str


class GenerationOptions(BaseModel):
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, ge=1)
    json_mode: bool = False


class GenerationProvider(ABC):
    """Text generation capability used by every agent."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        options: GenerationOptions
    ) -> str:
        """Return the model's reply text. Raises GenerationError on failure.

        With `options.json_mode` the model is asked for structured output, but
        callers must still validate whatever comes back.
        """
        pass


class EmbeddingProvider(ABC):
    """Embedding capability with a deployment-fixed dimensionality."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Return the embedding of `text`. Raises EmbeddingError on failure."""
        pass
