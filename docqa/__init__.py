# =============================================================================
# Document Q&A Service
# =============================================================================
# Loads a text or PDF document into an in-memory vector index and answers
# questions about it with a locally hosted language model (Ollama).
#
# Package structure:
#   docqa/
#   ├── api/       → FastAPI route handlers (load embeddings, ask)
#   ├── models/    → Pydantic V2 request/response schemas
#   ├── services/  → Loading, chunking, embedding, indexing, answering
#   ├── config.py  → Pydantic Settings
#   └── main.py    → Application factory and server entry point
# =============================================================================
