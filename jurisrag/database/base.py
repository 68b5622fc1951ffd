from abc import ABC, abstractmethod
from typing import List, Optional

from ..config.logging import LoggerMixin
from ..models import AgentSession, Conversation, Document, Message


class StorageError(Exception):
    pass


class BaseStorage(LoggerMixin, ABC):
    """Persistence collaborator. Every call returns fully materialised results."""

    # Conversations
    @abstractmethod
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        pass

    @abstractmethod
    async def get_conversations_by_user(self, user_id: Optional[str]) -> List[Conversation]:
        pass

    # Messages
    @abstractmethod
    async def create_message(self, message: Message) -> Message:
        pass

    @abstractmethod
    async def get_messages_by_conversation(self, conversation_id: str) -> List[Message]:
        """Messages in insertion order."""
        pass

    # Documents
    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        pass

    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def get_all_documents(self) -> List[Document]:
        pass

    @abstractmethod
    async def get_documents_by_jurisdiction(self, jurisdiction: str) -> List[Document]:
        """Case-insensitive match on jurisdiction."""
        pass

    @abstractmethod
    async def get_document_chunks(self, original_document_id: str) -> List[Document]:
        """Every row whose `original_document_id` (or own id) equals the given id."""
        pass

    @abstractmethod
    async def search_documents(self, query: str, jurisdictions: List[str], limit: int = 10) -> List[Document]:
        pass

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_documents(self, document_ids: List[str]) -> int:
        pass

    @abstractmethod
    async def delete_documents_by_jurisdiction(self, jurisdiction: str) -> int:
        pass

    # Agent sessions
    @abstractmethod
    async def get_agent_session(self, agent_id: str) -> Optional[AgentSession]:
        pass

    @abstractmethod
    async def get_all_agent_sessions(self) -> List[AgentSession]:
        pass

    @abstractmethod
    async def upsert_agent_session(self, session: AgentSession) -> AgentSession:
        """Overwrite the whole record for `session.agent_id`."""
        pass
