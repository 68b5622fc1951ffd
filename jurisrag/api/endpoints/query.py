from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...config.logging import LoggerMixin
from ...models import QueryRequest
from ...services.chat_service import ChatServiceError, ConversationNotFoundError
from ..dependencies import AppContainer, get_container
from ..schemas import error_detail

query_router = APIRouter()


class QueryHandler(LoggerMixin):
    async def query(self, request: QueryRequest, container: AppContainer):
        self.logger.info(f"Query received: {request.message[:100]}")
        try:
            response = await container.chat_service.handle_query(request)
            return response.model_dump(by_alias=True, mode="json")
        except ConversationNotFoundError as e:
            return JSONResponse(error_detail("Conversation not found", e), status_code=404)
        except ChatServiceError as e:
            self.logger.exception("Query processing failed")
            return JSONResponse(error_detail("Failed to process query", e), status_code=500)

    async def agents(self, container: AppContainer):
        sessions = {
            session.agent_id: session
            for session in await container.storage.get_all_agent_sessions()
        }

        agents = []
        for agent_id, agent in container.master_agent.agents.items():
            session = sessions.get(agent_id)
            agents.append({
                **agent.describe(),
                "status": session.status.value if session else "idle",
                "documentsCount": session.documents_count if session else 0,
                "embeddingsCount": session.embeddings_count if session else 0,
                "indexedEmbeddings": container.vector_index.embedding_count(agent.jurisdiction),
            })
        return agents

    async def conversations(self, user_id: Optional[str], container: AppContainer):
        conversations = await container.chat_service.list_conversations(user_id)
        return [c.model_dump(by_alias=True, mode="json") for c in conversations]

    async def messages(self, conversation_id: str, container: AppContainer):
        try:
            messages = await container.chat_service.get_messages(conversation_id)
        except ConversationNotFoundError as e:
            return JSONResponse(error_detail("Conversation not found", e), status_code=404)
        return [m.model_dump(by_alias=True, mode="json") for m in messages]


query_handler = QueryHandler()


@query_router.post("/query")
async def query(request: QueryRequest, container: AppContainer = Depends(get_container)):
    return await query_handler.query(request, container)


@query_router.get("/agents")
async def list_agents(container: AppContainer = Depends(get_container)):
    return await query_handler.agents(container)


@query_router.get("/conversations")
async def list_conversations(user_id: Optional[str] = None, container: AppContainer = Depends(get_container)):
    return await query_handler.conversations(user_id, container)


@query_router.get("/conversations/{conversation_id}/messages")
async def get_messages(conversation_id: str, container: AppContainer = Depends(get_container)):
    return await query_handler.messages(conversation_id, container)
