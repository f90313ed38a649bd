# =============================================================================
# Text Chunker — Recursive Character Splitting
# =============================================================================
#
# Splits a loaded document into overlapping chunks ready for embedding.
#
# Text documents go through langchain's RecursiveCharacterTextSplitter:
#   - chunk_size characters max (1000 by default), chunk_overlap shared with
#     the previous chunk (50 by default)
#   - split priority: paragraph break > line break > space > any character
#   - only a single unsplittable token can exceed chunk_size
#   - deterministic for the same text and configuration
#
# PDF documents are NOT re-chunked: each page becomes exactly one chunk,
# whatever its length (see pages_to_chunks()).
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from langchain_text_splitters import RecursiveCharacterTextSplitter

from docqa.services.loader import PageSegment

logger = logging.getLogger(__name__)

SEPARATORS = ["\n\n", "\n", " ", ""]


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ChunkResult:
    """
    A single chunk ready for embedding and storage.

    start_index is the character offset of the chunk in the source text
    (text documents only). page_number is set for PDF pages only.
    """

    content: str
    chunk_index: int  # 0-indexed position within the document
    start_index: int | None = None
    page_number: int | None = None
    metadata: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def chunk_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 50,
    source: str = "",
) -> list[ChunkResult]:
    """
    Split raw document text into overlapping chunks.

    Args:
        text: The full document text.
        chunk_size: Maximum characters per chunk.
        chunk_overlap: Characters shared between consecutive chunks.
        source: Document name recorded in each chunk's metadata.

    Returns:
        List of ChunkResult in document order. Empty for blank text.

    Raises:
        ValueError: If chunk_overlap is not smaller than chunk_size.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than "
            f"chunk_size ({chunk_size})"
        )

    splitter = RecursiveCharacterTextSplitter(
        separators=SEPARATORS,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        add_start_index=True,
    )
    documents = splitter.create_documents([text])

    chunks = [
        ChunkResult(
            content=doc.page_content,
            chunk_index=i,
            start_index=doc.metadata.get("start_index"),
            metadata={"source": source},
        )
        for i, doc in enumerate(documents)
    ]

    logger.info(
        "Chunked '%s': %d characters into %d chunks (chunk_size=%d, overlap=%d)",
        source, len(text), len(chunks), chunk_size, chunk_overlap,
    )
    return chunks


def pages_to_chunks(
    pages: Sequence[PageSegment],
    source: str = "",
) -> list[ChunkResult]:
    """Turn PDF pages into chunks one-to-one, without splitting them."""
    chunks = [
        ChunkResult(
            content=page.text,
            chunk_index=i,
            page_number=page.page_number,
            metadata={"source": source},
        )
        for i, page in enumerate(pages)
    ]

    longest = max((len(c.content) for c in chunks), default=0)
    logger.info(
        "Using %d PDF pages of '%s' as chunks (longest=%d characters)",
        len(chunks), source, longest,
    )
    return chunks
