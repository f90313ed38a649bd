# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# Response bodies returned by the API. /ask returns either an AskResponse
# (an index is loaded) or a MessageResponse (nothing loaded yet).
# =============================================================================

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str
    index_loaded: bool = Field(
        description="Whether a document has been loaded into the vector index",
    )


class MessageResponse(BaseModel):
    """A plain status message (load results, "not loaded yet")."""

    message: str


class AskResponse(BaseModel):
    """Response for POST /ask — the answer to the question."""

    answer: str = Field(description="The generated answer to the question")
