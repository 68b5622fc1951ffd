from .providers import (
    ChatMessage,
    EmbeddingError,
    EmbeddingProvider,
    GenerationError,
    GenerationOptions,
    GenerationProvider,
    ProviderError,
)

__all__ = [
    "ChatMessage",
    "EmbeddingError",
    "EmbeddingProvider",
    "GenerationError",
    "GenerationOptions",
    "GenerationProvider",
    "ProviderError",
]
