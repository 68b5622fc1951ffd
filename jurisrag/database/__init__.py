from .base import BaseStorage, StorageError
from .memory import InMemoryStorage

__all__ = [
    "BaseStorage",
    "StorageError",
    "InMemoryStorage",
]
