from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from ..config import ensure_directories, get_settings
from ..config.logging import get_logger, setup_logging
from .dependencies import AppContainer, build_container
from .endpoints.documents import document_router
from .endpoints.health import health_router
from .endpoints.query import query_router

logger = get_logger(__name__)


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """Build the API; a container is created at startup unless one is given."""
    settings = container.settings if container else get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            app.state.container = build_container(settings)

        # Warm-up runs in the background; requests are served meanwhile
        warm_task = app.state.container.pipeline.start_warm_index()
        logger.info(f"{settings.app_name} started")
        yield
        if not warm_task.done():
            warm_task.cancel()

    app = FastAPI(
        title = settings.app_name,
        version = settings.app_version,
        lifespan = lifespan
    )
    if container is not None:
        app.state.container = container

    app.include_router(query_router, prefix="/api", tags=["Query"])
    app.include_router(document_router, prefix="/api", tags=["Documents"])
    app.include_router(health_router, prefix="/api", tags=["Health"])
    return app


def run() -> None:
    settings = get_settings()
    ensure_directories()
    setup_logging(settings.log_level, log_file=f"{settings.logs_directory}/jurisrag.log")
    uvicorn.run(create_app(), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
