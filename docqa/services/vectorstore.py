# =============================================================================
# Vector Index — In-Process ChromaDB + Swappable Index Holder
# =============================================================================
#
# Two pieces:
#
#   VectorIndex — one immutable snapshot of a loaded document. Backed by a
#                 uniquely named ChromaDB collection (cosine space) that is
#                 filled once in build() and never modified afterwards.
#
#   IndexStore  — the application-scoped holder of the *current* index.
#                 Lives on app.state and is injected into the handlers.
#
# REPLACEMENT:
#   replace() builds the new index completely, then swaps the reference in
#   one assignment. A request that took a snapshot() before the swap keeps
#   the old index until it is done; the old collection is dropped when its
#   last reader releases it. Readers never see a half-built index, and a
#   failed build leaves the current index untouched.
#
# All reader bookkeeping happens on the event loop thread; only the chroma
# calls themselves run in worker threads (asyncio.to_thread).
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import chromadb
from chromadb.config import Settings as ChromaSettings

from docqa.services.chunker import ChunkResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class VectorSearchResult:
    """A single chunk returned by similarity search."""

    chunk_id: str
    content: str
    page_number: int | None
    similarity_score: float  # cosine similarity, higher = more relevant
    metadata: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Chroma Client — Lazy Singleton
# ---------------------------------------------------------------------------

_client: chromadb.ClientAPI | None = None


def _get_client() -> chromadb.ClientAPI:
    """Lazily create the in-process (ephemeral) ChromaDB client."""
    global _client
    if _client is None:
        _client = chromadb.EphemeralClient(
            settings=ChromaSettings(anonymized_telemetry=False),
        )
    return _client


# ---------------------------------------------------------------------------
# VectorIndex
# ---------------------------------------------------------------------------


class VectorIndex:
    """
    An immutable set of embedded chunks supporting top-k similarity search.

    Create with VectorIndex.build(); do not instantiate directly.
    """

    def __init__(self, collection: chromadb.Collection | None, size: int) -> None:
        self._collection = collection
        self._size = size
        self._readers = 0
        self._retired = False

    def __len__(self) -> int:
        return self._size

    @property
    def name(self) -> str | None:
        return self._collection.name if self._collection is not None else None

    @property
    def dropped(self) -> bool:
        return self._retired and self._collection is None

    @classmethod
    async def build(
        cls,
        chunks: Sequence[ChunkResult],
        embeddings: Sequence[Sequence[float]],
    ) -> VectorIndex:
        """
        Build a new index from chunks and their embeddings (same order).

        Raises:
            ValueError: If the number of chunks and embeddings differ.
        """
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"Got {len(chunks)} chunks but {len(embeddings)} embeddings"
            )

        if not chunks:
            logger.warning("Building an empty vector index")
            return cls(collection=None, size=0)

        # The worker thread cannot be interrupted. If this build is cancelled,
        # wait for the thread and drop whatever collection it produced.
        creation = asyncio.ensure_future(
            asyncio.to_thread(_create_collection, chunks, embeddings)
        )
        try:
            collection = await asyncio.shield(creation)
        except asyncio.CancelledError:
            await asyncio.wait({creation})
            if not creation.cancelled() and creation.exception() is None:
                orphan = creation.result().name
                await asyncio.to_thread(_get_client().delete_collection, orphan)
                logger.info("Dropped vector index '%s' of a cancelled build", orphan)
            raise

        logger.info(
            "Built vector index '%s' with %d chunks", collection.name, len(chunks),
        )
        return cls(collection=collection, size=len(chunks))

    async def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 3,
    ) -> list[VectorSearchResult]:
        """
        Return the top_k chunks most similar to the query, highest first.

        If top_k exceeds the number of chunks, all chunks are returned.
        """
        if self._collection is None or self._size == 0 or top_k <= 0:
            return []

        collection = self._collection
        n_results = min(top_k, self._size)

        def _sync_search() -> list[VectorSearchResult]:
            results = collection.query(
                query_embeddings=[list(query_embedding)],
                n_results=n_results,
                include=["documents", "metadatas", "distances"],
            )

            search_results: list[VectorSearchResult] = []
            if results and results["ids"] and results["ids"][0]:
                for i, chroma_id in enumerate(results["ids"][0]):
                    distance = (
                        results["distances"][0][i] if results["distances"] else 0.0
                    )
                    metadata = (
                        dict(results["metadatas"][0][i] or {})
                        if results["metadatas"]
                        else {}
                    )
                    content = (
                        results["documents"][0][i] if results["documents"] else ""
                    )
                    page_number = metadata.get("page_number")
                    search_results.append(VectorSearchResult(
                        chunk_id=chroma_id,
                        content=content or "",
                        page_number=page_number if page_number != -1 else None,
                        # cosine distance is in [0, 2]; convert to similarity
                        similarity_score=round(1.0 - distance, 4),
                        metadata=metadata,
                    ))
            return search_results

        results = await asyncio.to_thread(_sync_search)
        logger.debug(
            "Vector search returned %d results (top_k=%d, index=%s)",
            len(results), top_k, collection.name,
        )
        return results

    # -- reader pinning -----------------------------------------------------

    def acquire(self) -> None:
        self._readers += 1

    async def release(self) -> None:
        self._readers -= 1
        await self._drop_if_idle()

    async def retire(self) -> None:
        """Mark as replaced; the collection is dropped once unused."""
        self._retired = True
        await self._drop_if_idle()

    async def _drop_if_idle(self) -> None:
        if not self._retired or self._readers > 0 or self._collection is None:
            return
        # Detach first so a concurrent release cannot drop it twice
        name = self._collection.name
        self._collection = None
        await asyncio.to_thread(_get_client().delete_collection, name)
        logger.info("Dropped retired vector index '%s'", name)


# ---------------------------------------------------------------------------
# IndexStore
# ---------------------------------------------------------------------------


class IndexStore:
    """
    Holds the current VectorIndex for one application instance.

    States: unloaded (current is None) → loaded → loaded (after each reload).
    """

    def __init__(self) -> None:
        self._current: VectorIndex | None = None
        self._build_lock = asyncio.Lock()

    @property
    def current(self) -> VectorIndex | None:
        return self._current

    @property
    def is_loaded(self) -> bool:
        return self._current is not None

    async def replace(self, build: Callable[[], Awaitable[VectorIndex]]) -> VectorIndex:
        """
        Build a new index and make it current.

        Concurrent loads are serialised. If build() raises, the current
        index stays as it was and the exception propagates.
        """
        async with self._build_lock:
            new_index = await build()
            previous, self._current = self._current, new_index

        if previous is not None:
            await previous.retire()

        logger.info(
            "Vector index replaced (chunks=%d, previous=%s)",
            len(new_index), previous.name if previous is not None else None,
        )
        return new_index

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[VectorIndex | None]:
        """
        Yield the current index (None when unloaded) and keep it alive
        until the block exits, even if it is replaced meanwhile.
        """
        index = self._current
        if index is None:
            yield None
            return

        index.acquire()
        try:
            yield index
        finally:
            await index.release()


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _create_collection(
    chunks: Sequence[ChunkResult],
    embeddings: Sequence[Sequence[float]],
) -> chromadb.Collection:
    client = _get_client()
    collection = client.create_collection(
        name=f"docqa-{uuid.uuid4().hex}",
        metadata={"hnsw:space": "cosine"},
    )

    try:
        collection.add(
            ids=[f"chunk{c.chunk_index}" for c in chunks],
            documents=[c.content for c in chunks],
            embeddings=[list(e) for e in embeddings],
            metadatas=[_chunk_metadata(c) for c in chunks],
        )
    except Exception:
        client.delete_collection(collection.name)
        raise

    return collection


def _chunk_metadata(chunk: ChunkResult) -> dict:
    """Flatten a chunk's positional fields and metadata for ChromaDB."""
    return _sanitise_chroma_metadata({
        **chunk.metadata,
        "chunk_index": chunk.chunk_index,
        "start_index": chunk.start_index if chunk.start_index is not None else -1,
        "page_number": chunk.page_number if chunk.page_number is not None else -1,
    })


def _sanitise_chroma_metadata(metadata: dict) -> dict:
    """
    Sanitise metadata for ChromaDB compatibility.

    ChromaDB requires all metadata values to be str, int, float, or bool:
    - list → comma-separated string
    - None → empty string
    """
    sanitised = {}
    for key, value in metadata.items():
        if value is None:
            sanitised[key] = ""
        elif isinstance(value, list):
            sanitised[key] = ",".join(str(v) for v in value)
        elif isinstance(value, (str, int, float, bool)):
            sanitised[key] = value
        else:
            sanitised[key] = str(value)
    return sanitised
