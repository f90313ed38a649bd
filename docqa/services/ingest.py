# =============================================================================
# Ingestion Pipeline — Document → Vector Index
# =============================================================================
#
# TEXT PIPELINE (build_text_index):
#   1. Read the text file
#   2. Chunk it (recursive character splitter, 1000 / 50)
#   3. Embed every chunk
#   4. Build a new VectorIndex
#
# PDF PIPELINE (build_pdf_index):
#   1. Extract page texts with docling
#   2. One chunk per page — pages are NOT re-chunked
#   3. Embed every page
#   4. Build a new VectorIndex
#
# Both return the new index without installing it; the caller hands the
# build to IndexStore.replace(), which swaps it in only on success.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from docqa.config import Settings
from docqa.logging_config import log_latency
from docqa.services.chunker import ChunkResult, chunk_text, pages_to_chunks
from docqa.services.loader import load_pdf_pages, read_text_document
from docqa.services.vectorstore import VectorIndex

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """The embedding calls the pipelines and the ask endpoint rely on."""

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...

    async def embed_query(self, text: str) -> list[float]: ...

    async def aclose(self) -> None: ...


@log_latency("ingest.build_text_index")
async def build_text_index(settings: Settings, embedder: Embedder) -> VectorIndex:
    """Load, chunk and embed the configured text document."""
    path = settings.text_file_path
    text = await read_text_document(path)

    chunks = chunk_text(
        text,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        source=path.name,
    )
    return await _embed_and_index(chunks, embedder)


@log_latency("ingest.build_pdf_index")
async def build_pdf_index(settings: Settings, embedder: Embedder) -> VectorIndex:
    """Load and embed the configured PDF document, one chunk per page."""
    path = settings.pdf_file_path
    pages = await load_pdf_pages(
        path,
        ocr=settings.pdf_ocr_enabled,
        table_structure=settings.pdf_table_structure,
    )

    chunks = pages_to_chunks(pages, source=path.name)
    return await _embed_and_index(chunks, embedder)


async def _embed_and_index(
    chunks: Sequence[ChunkResult],
    embedder: Embedder,
) -> VectorIndex:
    embeddings = await embedder.embed_batch([c.content for c in chunks])
    return await VectorIndex.build(chunks, embeddings)
