# =============================================================================
# LLM Provider — Ollama via the OpenAI-Compatible Chat API
# =============================================================================
#
# Provides the completion interface used by the answer orchestrator.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — any OpenAI-compatible API; by default
#   │   └── complete()             Ollama at <ollama_base_url>/v1
#   └── create_llm_provider()    — builds the provider from Settings
#
# Calls are bounded by settings.backend_timeout_seconds and never retried.
# Failures surface as BackendUnavailableError / BackendTimeoutError.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import openai
from openai import AsyncOpenAI

from docqa.config import Settings
from docqa.services.errors import BackendTimeoutError, BackendUnavailableError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Normalised completion returned by a provider."""

    content: str           # The generated text
    model: str             # Model identifier (e.g., "gemma2:2b")
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """Anything with an async complete() can answer questions."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
            system: Optional system prompt, prepended as a system message.
            temperature: Override sampling temperature.
            max_tokens: Override max output tokens.
        """
        ...

    async def aclose(self) -> None:
        ...


# ---------------------------------------------------------------------------
# Implementation: OpenAI-Compatible (Ollama)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Chat completions through the OpenAI SDK with a custom base_url.

    Pointed at Ollama by default; any other OpenAI-compatible server works
    by changing OLLAMA_BASE_URL / LLM_MODEL.
    """

    def __init__(
        self,
        settings: Settings,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(
            api_key=settings.ollama_api_key,
            base_url=settings.ollama_openai_url,
            timeout=settings.backend_timeout_seconds,
            max_retries=0,
        )
        self._model = settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model, settings.ollama_openai_url,
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        kwargs: dict = {"model": self._model, "messages": all_messages}

        resolved_temperature = temperature if temperature is not None else self._temperature
        if resolved_temperature is not None:
            kwargs["temperature"] = resolved_temperature

        resolved_max_tokens = max_tokens if max_tokens is not None else self._max_tokens
        if resolved_max_tokens is not None:
            kwargs["max_tokens"] = resolved_max_tokens

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise BackendTimeoutError(
                f"LLM request timed out (model={self._model})"
            ) from exc
        except openai.APIError as exc:
            raise BackendUnavailableError(
                f"LLM backend error (model={self._model}): {exc}"
            ) from exc

        if not response.choices:
            raise BackendUnavailableError(
                f"LLM backend returned no choices (model={self._model})"
            )

        content = response.choices[0].message.content or ""

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=content,
            model=response.model or self._model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def aclose(self) -> None:
        await self._client.close()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def create_llm_provider(settings: Settings) -> OpenAICompatibleProvider:
    """Build the LLM provider described by settings."""
    return OpenAICompatibleProvider(settings)
