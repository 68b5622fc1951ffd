from datetime import datetime, UTC

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...config.logging import LoggerMixin
from ..dependencies import AppContainer, get_container

health_router = APIRouter()


class HealthHandler(LoggerMixin):
    async def check(self, container: AppContainer):
        try:
            self.logger.debug("Health check endpoint called.")
            sessions = await container.storage.get_all_agent_sessions()
            return JSONResponse(
                {
                    "status": "healthy",
                    "timestamp": datetime.now(UTC).isoformat(),
                    "database": "connected",
                    "agents": len(sessions),
                    "indexedDocuments": container.vector_index.count(),
                    "indexedEmbeddings": container.vector_index.embedding_count(),
                    "version": container.settings.app_version
                }, status_code = 200
            )
        except Exception as e:
            self.logger.exception("Health check failed due to an error.")
            return JSONResponse(
                {
                    "status": "unhealthy",
                    "error": "Database connection failed",
                    "details": str(e)
                }, status_code = 500
            )


health_handler = HealthHandler()


@health_router.get("/health")
async def health(container: AppContainer = Depends(get_container)):
    return await health_handler.check(container)
