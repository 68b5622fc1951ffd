"""Dictionary-backed storage for tests and single-process deployments."""

from datetime import datetime, UTC
from typing import Dict, List, Optional

from ..models import AgentSession, Conversation, Document, Message
from .base import BaseStorage, StorageError


class InMemoryStorage(BaseStorage):

    def __init__(self):
        self.conversations: Dict[str, Conversation] = {}
        self.messages: Dict[str, List[Message]] = {}
        self.documents: Dict[str, Document] = {}
        self.agent_sessions: Dict[str, AgentSession] = {}

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations[conversation.id] = conversation
        self.messages.setdefault(conversation.id, [])
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self.conversations.get(conversation_id)

    async def get_conversations_by_user(self, user_id: Optional[str]) -> List[Conversation]:
        conversations = [c for c in self.conversations.values() if c.user_id == user_id]
        return sorted(conversations, key=lambda c: c.created_at, reverse=True)

    async def create_message(self, message: Message) -> Message:
        if message.conversation_id not in self.conversations:
            raise StorageError(f"Conversation {message.conversation_id} does not exist")
        self.messages[message.conversation_id].append(message)
        return message

    async def get_messages_by_conversation(self, conversation_id: str) -> List[Message]:
        return list(self.messages.get(conversation_id, []))

    async def create_document(self, document: Document) -> Document:
        if document.id in self.documents:
            raise StorageError(f"Document {document.id} already exists")
        self.documents[document.id] = document
        return document

    async def get_document(self, document_id: str) -> Optional[Document]:
        return self.documents.get(document_id)

    async def get_all_documents(self) -> List[Document]:
        return list(self.documents.values())

    async def get_documents_by_jurisdiction(self, jurisdiction: str) -> List[Document]:
        jurisdiction = jurisdiction.lower()
        return [d for d in self.documents.values() if d.jurisdiction.lower() == jurisdiction]

    async def get_document_chunks(self, original_document_id: str) -> List[Document]:
        return [
            d for d in self.documents.values()
            if d.id == original_document_id or d.original_document_id == original_document_id
        ]

    async def search_documents(self, query: str, jurisdictions: List[str], limit: int = 10) -> List[Document]:
        query_lower = query.lower()
        allowed = {j.lower() for j in jurisdictions}

        candidates = [
            d for d in self.documents.values()
            if not allowed or d.jurisdiction.lower() in allowed
        ]

        def score(doc: Document) -> int:
            title_score = 2 if query_lower in doc.title.lower() else 0
            content_score = 1 if query_lower in doc.content.lower() else 0
            return title_score + content_score

        return sorted(candidates, key=score, reverse=True)[:limit]

    async def delete_document(self, document_id: str) -> bool:
        return self.documents.pop(document_id, None) is not None

    async def delete_documents(self, document_ids: List[str]) -> int:
        return sum(1 for doc_id in document_ids if self.documents.pop(doc_id, None) is not None)

    async def delete_documents_by_jurisdiction(self, jurisdiction: str) -> int:
        doomed = [d.id for d in await self.get_documents_by_jurisdiction(jurisdiction)]
        return await self.delete_documents(doomed)

    async def get_agent_session(self, agent_id: str) -> Optional[AgentSession]:
        return self.agent_sessions.get(agent_id)

    async def get_all_agent_sessions(self) -> List[AgentSession]:
        return list(self.agent_sessions.values())

    async def upsert_agent_session(self, session: AgentSession) -> AgentSession:
        stored = session.model_copy(update={"last_active": datetime.now(UTC)})
        self.agent_sessions[session.agent_id] = stored
        return stored
