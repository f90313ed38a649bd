# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# Request bodies accepted by the API. A body that does not match is
# rejected by FastAPI with a 422 before the handler runs.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    """
    Request body for POST /ask — ask a question about the loaded document.

    Example:
        {"question": "What color is the sky?"}
    """

    question: str = Field(
        ...,
        min_length=1,
        description="The natural-language question to answer",
        examples=["What color is the sky?"],
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"question": "What color is the sky?"},
            ]
        }
    )
