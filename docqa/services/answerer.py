# =============================================================================
# Answer Orchestrator — Retrieval-Augmented Answer Generation
# =============================================================================
#
# Takes the retrieved chunks and the user's question, fills the fixed
# prompt template and asks the LLM for an answer.
#
# The prompt template and the fallback sentence are part of the service's
# observable behaviour: when the context does not contain the answer the
# model is told to reply with FALLBACK_ANSWER, and clients match on it.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from docqa.logging_config import log_latency
from docqa.services.llm import LLMProvider
from docqa.services.vectorstore import VectorSearchResult

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "I don't have enough information to answer that question."

PROMPT_TEMPLATE = (
    "You are a helpful AI assistant. Answer the following question based "
    "only on the provided context. If the answer cannot be derived from the "
    f"context, say \"{FALLBACK_ANSWER}\" If I like your results I'll tip "
    "you $1000!\n"
    "\n"
    "Context: {context}\n"
    "\n"
    "Question: {question}\n"
    "\n"
    "Answer: \n"
)


@dataclass
class AnswerResult:
    """Result from the answer orchestrator."""

    answer: str
    model: str
    input_tokens: int
    output_tokens: int
    context_chunks: int


def build_prompt(question: str, chunks: Sequence[VectorSearchResult]) -> str:
    """Fill the prompt template with the question and the chunk texts."""
    return PROMPT_TEMPLATE.format(
        context=_format_context(chunks),
        question=question,
    )


@log_latency("answerer.answer_question")
async def answer_question(
    question: str,
    chunks: Sequence[VectorSearchResult],
    llm: LLMProvider,
) -> AnswerResult:
    """
    Answer a question from the retrieved chunks.

    With no chunks at all there is nothing to ground an answer on, so the
    fallback is returned without calling the model.

    Raises:
        BackendUnavailableError: If the model cannot be reached.
    """
    if not chunks:
        logger.info("No context chunks; returning fallback answer")
        return AnswerResult(
            answer=FALLBACK_ANSWER,
            model="n/a",
            input_tokens=0,
            output_tokens=0,
            context_chunks=0,
        )

    prompt = build_prompt(question, chunks)

    logger.info("Generating answer: chunks=%d", len(chunks))
    response = await llm.complete(messages=[{"role": "user", "content": prompt}])

    logger.info(
        "Answer complete: model=%s, tokens=%d+%d",
        response.model, response.input_tokens, response.output_tokens,
    )

    return AnswerResult(
        answer=response.content.strip(),
        model=response.model,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
        context_chunks=len(chunks),
    )


def _format_context(chunks: Sequence[VectorSearchResult]) -> str:
    """Join chunk contents, most relevant first, separated by blank lines."""
    return "\n\n".join(chunk.content for chunk in chunks)
