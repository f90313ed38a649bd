# =============================================================================
# Application Factory — FastAPI App, Lifespan, Server Entry Point
# =============================================================================
#
# create_app() wires the routers and a lifespan that owns the shared state:
#   app.state.settings     — Settings
#   app.state.index_store  — IndexStore (starts unloaded)
#   app.state.embedder     — OllamaEmbedder
#   app.state.llm          — OpenAICompatibleProvider
#
# Backends passed to create_app() are used as-is (tests inject fakes);
# otherwise they are built from settings at startup and closed at shutdown.
#
# Run with:
#   docqa                       (console script)
#   uvicorn docqa.main:app --port 3000
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI

from docqa.api import ask, embeddings
from docqa.api.deps import get_app_settings, get_index_store
from docqa.config import Settings, get_settings
from docqa.logging_config import setup_logging
from docqa.models.responses import HealthResponse
from docqa.services.embedder import OllamaEmbedder
from docqa.services.ingest import Embedder
from docqa.services.llm import LLMProvider, create_llm_provider
from docqa.services.vectorstore import IndexStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    embedder: Embedder | None = None,
    llm: LLMProvider | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Configured here too so `uvicorn docqa.main:app` gets service logs
        setup_logging(settings.log_level.upper())
        app.state.settings = settings
        app.state.index_store = IndexStore()
        app.state.embedder = embedder or OllamaEmbedder(settings)
        app.state.llm = llm or create_llm_provider(settings)
        logger.info(
            "%s v%s started (ollama=%s, embedding_model=%s, llm_model=%s)",
            settings.app_name,
            settings.app_version,
            settings.ollama_base_url,
            settings.embedding_model,
            settings.llm_model,
        )
        try:
            yield
        finally:
            # Only close what this lifespan created
            if embedder is None:
                await app.state.embedder.aclose()
            if llm is None:
                await app.state.llm.aclose()
            logger.info("Backend clients closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.include_router(embeddings.router)
    app.include_router(ask.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(
        app_settings: Settings = Depends(get_app_settings),
        store: IndexStore = Depends(get_index_store),
    ) -> HealthResponse:
        return HealthResponse(
            version=app_settings.app_version,
            service=app_settings.app_name,
            index_loaded=store.is_loaded,
        )

    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level.upper())
    logger.info("Server is running on port %d", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


app = create_app()


if __name__ == "__main__":
    run()
