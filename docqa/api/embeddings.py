# =============================================================================
# Embeddings API — Load a Document into the Vector Index
# =============================================================================
#
# ENDPOINTS:
#   GET /loadTextEmbeddings — read → chunk → embed → index the text file
#   GET /loadPdfEmbeddings  — read pages → embed → index the PDF
#
# Each call rebuilds the index from scratch and replaces the current one
# once the build has succeeded. A failed load keeps the previous index.
#
# Error mapping:
#   DocumentLoadError       → 500
#   BackendUnavailableError → 502
#   BackendTimeoutError / request deadline → 504
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, Request

from docqa.api.deps import get_app_settings, get_embedder, get_index_store, run_request
from docqa.config import Settings
from docqa.models.responses import MessageResponse
from docqa.services.errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    DocumentLoadError,
)
from docqa.services.ingest import Embedder, build_pdf_index, build_text_index
from docqa.services.vectorstore import IndexStore, VectorIndex

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Embeddings"])

LOADED_MESSAGE = "Text embeddings loaded successfully."


# ---------------------------------------------------------------------------
# GET /loadTextEmbeddings
# ---------------------------------------------------------------------------


@router.get(
    "/loadTextEmbeddings",
    response_model=MessageResponse,
    summary="Load the text document into the vector index",
)
async def load_text_embeddings(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: IndexStore = Depends(get_index_store),
    embedder: Embedder = Depends(get_embedder),
) -> MessageResponse:
    logger.info("Loading text embeddings from %s", settings.text_file_path)
    return await _load(
        request,
        settings,
        store,
        lambda: build_text_index(settings, embedder),
    )


# ---------------------------------------------------------------------------
# GET /loadPdfEmbeddings
# ---------------------------------------------------------------------------


@router.get(
    "/loadPdfEmbeddings",
    response_model=MessageResponse,
    summary="Load the PDF document into the vector index",
    description="Each PDF page is embedded as one chunk; pages are not split.",
)
async def load_pdf_embeddings(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: IndexStore = Depends(get_index_store),
    embedder: Embedder = Depends(get_embedder),
) -> MessageResponse:
    logger.info("Loading PDF embeddings from %s", settings.pdf_file_path)
    return await _load(
        request,
        settings,
        store,
        lambda: build_pdf_index(settings, embedder),
    )


# ---------------------------------------------------------------------------
# Shared load flow
# ---------------------------------------------------------------------------


async def _load(
    request: Request,
    settings: Settings,
    store: IndexStore,
    build: Callable[[], Awaitable[VectorIndex]],
) -> MessageResponse:
    try:
        index = await run_request(
            request, store.replace(build), settings.load_timeout_seconds,
        )
    except DocumentLoadError as e:
        logger.error("Document load failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to load document: {e}") from e
    except BackendTimeoutError as e:
        logger.error("Embedding backend timed out: %s", e)
        raise HTTPException(status_code=504, detail=str(e)) from e
    except BackendUnavailableError as e:
        logger.error("Embedding backend unavailable: %s", e)
        raise HTTPException(status_code=502, detail=f"Embedding service error: {e}") from e
    except asyncio.TimeoutError as e:
        logger.error("Load request timed out: %s", e)
        raise HTTPException(status_code=504, detail=str(e)) from e

    logger.info("Index loaded: %d chunks", len(index))
    return MessageResponse(message=LOADED_MESSAGE)
