# =============================================================================
# Unit Tests — Answer Orchestrator and LLM Provider
# =============================================================================
#
# Tests prompt construction, answer generation and the OpenAI-compatible
# provider with a mocked client. No Ollama is needed.
# =============================================================================

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from docqa.config import Settings
from docqa.services.answerer import (
    FALLBACK_ANSWER,
    PROMPT_TEMPLATE,
    answer_question,
    build_prompt,
)
from docqa.services.errors import BackendTimeoutError, BackendUnavailableError
from docqa.services.llm import LLMResponse, OpenAICompatibleProvider
from docqa.services.vectorstore import VectorSearchResult


def _run(coro):
    """Run an async function synchronously in tests."""
    return asyncio.run(coro)


def _chunk(content: str, score: float = 0.9) -> VectorSearchResult:
    return VectorSearchResult(
        chunk_id="chunk0",
        content=content,
        page_number=None,
        similarity_score=score,
    )


def _mock_llm(content: str = "The sky is blue.") -> AsyncMock:
    llm = AsyncMock()
    llm.complete.return_value = LLMResponse(
        content=content, model="gemma2:2b", input_tokens=100, output_tokens=5,
    )
    return llm


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


class TestBuildPrompt:
    def test_template_wording(self):
        assert PROMPT_TEMPLATE.startswith(
            "You are a helpful AI assistant. Answer the following question "
            "based only on the provided context."
        )
        assert f'say "{FALLBACK_ANSWER}"' in PROMPT_TEMPLATE
        assert "If I like your results I'll tip you $1000!" in PROMPT_TEMPLATE

    def test_fills_context_and_question(self):
        prompt = build_prompt(
            "What color is the sky?",
            [_chunk("The sky is blue."), _chunk("Grass is green.")],
        )
        assert "Context: The sky is blue.\n\nGrass is green.\n" in prompt
        assert "Question: What color is the sky?\n" in prompt
        assert prompt.endswith("Answer: \n")

    def test_question_is_inserted_verbatim(self):
        prompt = build_prompt("Is {this} a $1000 question?", [_chunk("x")])
        assert "Question: Is {this} a $1000 question?" in prompt


# ---------------------------------------------------------------------------
# answer_question
# ---------------------------------------------------------------------------


class TestAnswerQuestion:
    def test_returns_stripped_llm_answer(self):
        llm = _mock_llm("  The sky is blue.\n")
        result = _run(answer_question("What color is the sky?", [_chunk("The sky is blue.")], llm))

        assert result.answer == "The sky is blue."
        assert result.model == "gemma2:2b"
        assert result.context_chunks == 1

    def test_sends_single_user_message(self):
        llm = _mock_llm()
        chunks = [_chunk("The sky is blue.")]
        _run(answer_question("What color is the sky?", chunks, llm))

        messages = llm.complete.call_args.kwargs["messages"]
        assert messages == [
            {"role": "user", "content": build_prompt("What color is the sky?", chunks)},
        ]

    def test_no_chunks_returns_fallback_without_llm(self):
        llm = _mock_llm()
        result = _run(answer_question("Anything?", [], llm))

        assert result.answer == FALLBACK_ANSWER
        assert result.context_chunks == 0
        llm.complete.assert_not_called()

    def test_backend_errors_propagate(self):
        llm = _mock_llm()
        llm.complete.side_effect = BackendUnavailableError("down")
        with pytest.raises(BackendUnavailableError):
            _run(answer_question("q", [_chunk("c")], llm))


# ---------------------------------------------------------------------------
# OpenAICompatibleProvider
# ---------------------------------------------------------------------------


def _completion(content, model="gemma2:2b"):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model=model,
        usage=SimpleNamespace(prompt_tokens=42, completion_tokens=7),
    )


def _make_provider(**overrides):
    settings = Settings(_env_file=None, **overrides)
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion("Blue."))
    client.close = AsyncMock()
    return OpenAICompatibleProvider(settings, client=client), client


def _request() -> httpx.Request:
    return httpx.Request("POST", "http://localhost:11434/v1/chat/completions")


class TestOpenAICompatibleProvider:
    def test_complete_returns_normalised_response(self):
        provider, _ = _make_provider()
        response = _run(provider.complete([{"role": "user", "content": "hi"}]))

        assert response.content == "Blue."
        assert response.model == "gemma2:2b"
        assert response.input_tokens == 42
        assert response.output_tokens == 7

    def test_unset_sampling_options_are_not_sent(self):
        provider, client = _make_provider()
        _run(provider.complete([{"role": "user", "content": "hi"}]))

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gemma2:2b"
        assert "temperature" not in kwargs
        assert "max_tokens" not in kwargs

    def test_configured_sampling_options_are_sent(self):
        provider, client = _make_provider(llm_temperature=0.2, llm_max_tokens=256)
        _run(provider.complete([{"role": "user", "content": "hi"}]))

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 256

    def test_system_prompt_is_prepended(self):
        provider, client = _make_provider()
        _run(provider.complete([{"role": "user", "content": "hi"}], system="Be brief."))

        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "Be brief."}
        assert messages[1] == {"role": "user", "content": "hi"}

    def test_connection_error(self):
        provider, client = _make_provider()
        client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=_request(),
        )
        with pytest.raises(BackendUnavailableError):
            _run(provider.complete([{"role": "user", "content": "hi"}]))

    def test_timeout(self):
        provider, client = _make_provider()
        client.chat.completions.create.side_effect = openai.APITimeoutError(
            request=_request(),
        )
        with pytest.raises(BackendTimeoutError):
            _run(provider.complete([{"role": "user", "content": "hi"}]))

    def test_no_choices(self):
        provider, client = _make_provider()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[], model="gemma2:2b", usage=None,
        )
        with pytest.raises(BackendUnavailableError):
            _run(provider.complete([{"role": "user", "content": "hi"}]))
