# =============================================================================
# Embedding Service — Ollama Native Embed API
# =============================================================================
#
# Generates vector embeddings through Ollama's native endpoint
# (<ollama_base_url>/api/embed). The OpenAI-compatible /v1/embeddings route
# ignores runtime options, so the native route is used to make use_mmap,
# num_thread and num_gpu take effect.
#
# One OllamaEmbedder instance is created per application and used for both
# indexing (embed_batch) and querying (embed_query), so documents and
# questions are always embedded under the same model configuration.
#
# DEADLINES & RETRIES:
# - Every HTTP call is bounded by settings.backend_timeout_seconds
# - No retries: a failed call fails the request
# - Connection / HTTP errors  → BackendUnavailableError
# - Timeouts                  → BackendTimeoutError
#
# requests is blocking, so each call runs in a worker thread.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import requests

from docqa.config import Settings
from docqa.services.errors import BackendTimeoutError, BackendUnavailableError

logger = logging.getLogger(__name__)


class OllamaEmbedder:
    """Async embedding client bound to one model configuration."""

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
    ) -> None:
        self._model = settings.embedding_model
        self._batch_size = max(settings.embedding_batch_size, 1)
        self._url = f"{settings.ollama_base_url.rstrip('/')}/api/embed"
        self._timeout = settings.backend_timeout_seconds

        # Ollama runtime options, applied per request
        self._options = {
            "use_mmap": settings.embedding_use_mmap,
            "num_thread": settings.embedding_num_thread,
            "num_gpu": settings.embedding_num_gpu,
        }

        self._session = session or requests.Session()

        logger.info(
            "Initialized embedding client (model=%s, url=%s)",
            self._model, self._url,
        )

    @property
    def model(self) -> str:
        return self._model

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Generate embeddings for a batch of texts.

        Texts are sent in sub-batches of settings.embedding_batch_size.
        Returns embeddings in the SAME ORDER as the input texts.

        Raises:
            BackendUnavailableError: If Ollama is unreachable or errors.
            BackendTimeoutError: If a call exceeds its deadline.
        """
        if not texts:
            return []

        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), self._batch_size):
            batch = list(texts[i : i + self._batch_size])
            logger.info(
                "Embedding batch %d–%d of %d texts (model=%s)",
                i + 1,
                i + len(batch),
                len(texts),
                self._model,
            )
            all_embeddings.extend(await asyncio.to_thread(self._post, batch))

        logger.info("Generated %d embeddings (model=%s)", len(texts), self._model)
        return all_embeddings

    async def embed_query(self, text: str) -> list[float]:
        """Generate an embedding for a single question."""
        result = await self.embed_batch([text])
        return result[0]

    async def aclose(self) -> None:
        self._session.close()

    def _post(self, batch: list[str]) -> list[list[float]]:
        try:
            response = self._session.post(
                self._url,
                json={"model": self._model, "input": batch, "options": self._options},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as exc:
            raise BackendTimeoutError(
                f"Embedding request timed out (model={self._model})"
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            raise BackendUnavailableError(
                f"Embedding backend error (model={self._model}): {exc}"
            ) from exc

        embeddings = data.get("embeddings") or []
        if len(embeddings) != len(batch):
            raise BackendUnavailableError(
                f"Embedding backend returned {len(embeddings)} vectors "
                f"for {len(batch)} inputs"
            )
        return embeddings
