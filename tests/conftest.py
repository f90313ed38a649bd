# =============================================================================
# Shared Test Fixtures — Fake Backends
# =============================================================================
#
# FakeEmbedder and FakeLLM stand in for Ollama so the whole service can run
# in-process with no network. Both record their calls so tests can assert
# that a backend was (or was not) used.
#
# FakeEmbedder: deterministic bag-of-words hashing vectors, so texts sharing
#               words end up close in cosine space.
# FakeLLM:      reads the filled prompt back, answers with the context
#               sentence sharing the most words with the question, and
#               otherwise with the fallback sentence.
# =============================================================================

from __future__ import annotations

import hashlib
import re
from collections.abc import Sequence

import pytest
from fastapi.testclient import TestClient

from docqa.config import Settings
from docqa.main import create_app
from docqa.services.answerer import FALLBACK_ANSWER
from docqa.services.llm import LLMResponse

SAMPLE_TEXT = "The sky is blue. Grass is green."

_DIMENSIONS = 64
_STOPWORDS = {
    "a", "an", "and", "are", "color", "colour", "does", "how", "in", "is",
    "it", "of", "on", "the", "to", "was", "what", "which", "who", "why",
}


def _content_words(text: str) -> set[str]:
    return {w for w in re.findall(r"[a-z]+", text.lower()) if w not in _STOPWORDS}


def hash_embedding(text: str) -> list[float]:
    vector = [0.0] * _DIMENSIONS
    for word in _content_words(text):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % (_DIMENSIONS - 1)
        vector[bucket] += 1.0
    # Constant component keeps every vector non-zero
    vector[-1] = 0.1
    return vector


class FakeEmbedder:
    def __init__(self) -> None:
        self.batches: list[list[str]] = []
        self.queries: list[str] = []
        self.fail_with: Exception | None = None
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.batches) + len(self.queries)

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        if self.fail_with is not None:
            raise self.fail_with
        self.batches.append(list(texts))
        return [hash_embedding(t) for t in texts]

    async def embed_query(self, text: str) -> list[float]:
        if self.fail_with is not None:
            raise self.fail_with
        self.queries.append(text)
        return hash_embedding(text)

    async def aclose(self) -> None:
        self.closed = True


class FakeLLM:
    def __init__(self) -> None:
        self.prompts: list[str] = []
        self.fail_with: Exception | None = None

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        if self.fail_with is not None:
            raise self.fail_with

        prompt = messages[-1]["content"]
        self.prompts.append(prompt)

        context = prompt.split("Context: ", 1)[1].split("\n\nQuestion: ", 1)[0]
        question = prompt.split("\n\nQuestion: ", 1)[1].split("\n\nAnswer:", 1)[0]

        question_words = _content_words(question)
        sentences = [s for s in re.split(r"(?<=[.!?])\s+", context) if s.strip()]
        best, best_overlap = FALLBACK_ANSWER, 0
        for sentence in sentences:
            overlap = len(question_words & _content_words(sentence))
            if overlap > best_overlap:
                best, best_overlap = sentence.strip(), overlap

        return LLMResponse(
            content=f"  {best}\n",
            model="fake-llm",
            input_tokens=len(prompt.split()),
            output_tokens=len(best.split()),
        )

    async def aclose(self) -> None:
        pass


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def settings(tmp_path) -> Settings:
    (tmp_path / "langchain-test.txt").write_text(SAMPLE_TEXT, encoding="utf-8")
    return Settings(
        _env_file=None,
        data_dir=tmp_path,
        ask_timeout_seconds=30.0,
        load_timeout_seconds=30.0,
    )


@pytest.fixture
def client(settings, fake_embedder, fake_llm):
    app = create_app(settings=settings, embedder=fake_embedder, llm=fake_llm)
    with TestClient(app) as test_client:
        yield test_client
