# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the HTTP API:
#   - requests.py:  AskRequest
#   - responses.py: AskResponse, MessageResponse, HealthResponse
# =============================================================================
