# =============================================================================
# API Dependencies — Application State & Request Lifecycle
# =============================================================================
#
# The lifespan in docqa/main.py puts the shared objects on app.state:
#   settings, index_store, embedder, llm
# The dependencies below hand them to route handlers via Depends(), so a
# test can build an app with its own settings and fake backends.
#
# run_request() runs a handler's work with an overall deadline and cancels
# it when the client goes away.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import HTTPException, Request

from docqa.config import Settings
from docqa.services.ingest import Embedder
from docqa.services.llm import LLMProvider
from docqa.services.vectorstore import IndexStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How often an in-flight request checks whether its client is still there
_DISCONNECT_POLL_SECONDS = 0.5


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_index_store(request: Request) -> IndexStore:
    return request.app.state.index_store


def get_embedder(request: Request) -> Embedder:
    return request.app.state.embedder


def get_llm(request: Request) -> LLMProvider:
    return request.app.state.llm


async def run_request(request: Request, work: Awaitable[T], timeout: float) -> T:
    """
    Await `work` for at most `timeout` seconds.

    The work is cancelled if the deadline passes or the client disconnects.
    Exceptions raised by the work propagate unchanged.

    Raises:
        asyncio.TimeoutError: The deadline passed.
        HTTPException 499: The client closed the connection.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    task = asyncio.ensure_future(work)

    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise asyncio.TimeoutError(
                    f"Request did not complete within {timeout:g}s"
                )

            done, _ = await asyncio.wait(
                {task}, timeout=min(_DISCONNECT_POLL_SECONDS, remaining),
            )
            if done:
                return task.result()

            if await request.is_disconnected():
                logger.warning(
                    "Client disconnected, cancelling %s %s",
                    request.method, request.url.path,
                )
                raise HTTPException(status_code=499, detail="Client closed request")
    finally:
        if not task.done():
            task.cancel()
