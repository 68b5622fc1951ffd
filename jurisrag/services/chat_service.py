"""Conversation handling around the master agent."""

from typing import List, Optional

from ..agents.coordinator import MasterAgent, OrchestrationError
from ..config.logging import LoggerMixin
from ..database.base import BaseStorage
from ..models import (
    Conversation, MasterResponse, Message, MessageRole, QueryRequest, QueryResponse
)
from .providers import ProviderError

TITLE_CHARS = 50


class ChatServiceError(Exception):
    pass


class ConversationNotFoundError(ChatServiceError):
    pass


class ChatService(LoggerMixin):
    """Persists each exchange as messages: the user query, every agent answer and the summary."""

    def __init__(self, master_agent: MasterAgent, storage: BaseStorage):
        self.master_agent = master_agent
        self.storage = storage

    async def handle_query(self, request: QueryRequest, user_id: Optional[str] = None) -> QueryResponse:
        conversation = await self._get_or_create_conversation(request, user_id)

        await self.storage.create_message(Message(
            conversation_id=conversation.id,
            role=MessageRole.USER,
            content=request.message
        ))

        try:
            result = await self.master_agent.process_request(request)
        except (OrchestrationError, ProviderError) as e:
            self.logger.error(f"Query failed for conversation {conversation.id}: {e}")
            raise ChatServiceError(str(e)) from e

        await self._store_result(conversation.id, result)

        return QueryResponse(
            conversation_id=conversation.id,
            responses=result.responses,
            master_summary=result.master_summary,
            routing_info=result.routing_info,
            suggested_questions=result.suggested_questions
        )

    async def get_messages(self, conversation_id: str) -> List[Message]:
        conversation = await self.storage.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
        return await self.storage.get_messages_by_conversation(conversation_id)

    async def list_conversations(self, user_id: Optional[str] = None) -> List[Conversation]:
        return await self.storage.get_conversations_by_user(user_id)

    async def _get_or_create_conversation(
        self, request: QueryRequest, user_id: Optional[str]
    ) -> Conversation:
        if request.conversation_id:
            conversation = await self.storage.get_conversation(request.conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(f"Conversation {request.conversation_id} not found")
            return conversation

        conversation = await self.storage.create_conversation(Conversation(
            user_id=user_id,
            title=request.message[:TITLE_CHARS] + "..."
        ))
        self.logger.info(f"Created conversation {conversation.id}")
        return conversation

    async def _store_result(self, conversation_id: str, result: MasterResponse) -> None:
        for response in result.responses:
            await self.storage.create_message(Message(
                conversation_id=conversation_id,
                role=MessageRole.ASSISTANT,
                content=response.content,
                agent_id=response.agent_id,
                metadata={
                    "sources": [s.model_dump(by_alias=True) for s in response.sources],
                    "agentName": response.agent_name
                }
            ))

        if result.master_summary:
            await self.storage.create_message(Message(
                conversation_id=conversation_id,
                role=MessageRole.ASSISTANT,
                content=result.master_summary,
                agent_id=self.master_agent.get_id(),
                metadata={
                    "type": "summary",
                    "routingInfo": result.routing_info.model_dump(by_alias=True)
                }
            ))
