# =============================================================================
# Ask API — Retrieval-Augmented Question Answering
# =============================================================================
#
# POST /ask {"question": "..."}
#
# FLOW:
#   1. Take a snapshot of the current index
#      - none loaded → {"message": "Text embeddings not loaded yet."}
#        (a normal 200 response, no backend is called)
#   2. Embed the question
#   3. Retrieve the top-k (3) most similar chunks
#   4. Fill the prompt template and ask the LLM
#   5. Return {"answer": "..."}
#
# The snapshot pins the index for the whole request, so a reload running
# at the same time cannot pull it away mid-query.
# =============================================================================

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from docqa.api.deps import (
    get_app_settings,
    get_embedder,
    get_index_store,
    get_llm,
    run_request,
)
from docqa.config import Settings
from docqa.models.requests import AskRequest
from docqa.models.responses import AskResponse, MessageResponse
from docqa.services.answerer import answer_question
from docqa.services.errors import BackendTimeoutError, BackendUnavailableError
from docqa.services.ingest import Embedder
from docqa.services.llm import LLMProvider
from docqa.services.vectorstore import IndexStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Question Answering"])

NOT_LOADED_MESSAGE = "Text embeddings not loaded yet."


@router.post(
    "/ask",
    response_model=AskResponse | MessageResponse,
    summary="Ask a question about the loaded document",
)
async def ask_endpoint(
    http_request: Request,
    request: AskRequest,
    settings: Settings = Depends(get_app_settings),
    store: IndexStore = Depends(get_index_store),
    embedder: Embedder = Depends(get_embedder),
    llm: LLMProvider = Depends(get_llm),
) -> AskResponse | MessageResponse:
    """
    Answer a question from the currently loaded document.

    Error handling:
    - Nothing loaded → 200 with a "not loaded yet" message
    - Backend unreachable → 502 Bad Gateway
    - Backend or request deadline exceeded → 504 Gateway Timeout
    """
    async with store.snapshot() as index:
        if index is None:
            logger.info("Ask before any document was loaded")
            return MessageResponse(message=NOT_LOADED_MESSAGE)

        logger.info("Ask request: question='%s'", request.question[:80])

        async def _answer() -> str:
            query_embedding = await embedder.embed_query(request.question)
            chunks = await index.search(query_embedding, top_k=settings.retrieval_top_k)
            logger.info(
                "Retrieved %d chunks (scores=%s)",
                len(chunks), [c.similarity_score for c in chunks],
            )
            result = await answer_question(request.question, chunks, llm)
            return result.answer

        try:
            answer = await run_request(
                http_request, _answer(), settings.ask_timeout_seconds,
            )
        except BackendTimeoutError as e:
            logger.error("Backend timed out: %s", e)
            raise HTTPException(status_code=504, detail=str(e)) from e
        except BackendUnavailableError as e:
            logger.error("Backend unavailable: %s", e)
            raise HTTPException(status_code=502, detail=f"LLM service error: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error("Ask request timed out: %s", e)
            raise HTTPException(status_code=504, detail=str(e)) from e

    return AskResponse(answer=answer)
