# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - embeddings.py: GET /loadTextEmbeddings, GET /loadPdfEmbeddings
#   - ask.py: POST /ask
#   - deps.py: app.state dependencies and request deadlines
# =============================================================================
