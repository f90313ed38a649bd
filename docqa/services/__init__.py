# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core logic, separated from API handlers:
#   - loader.py: text file reading and PDF page extraction (docling)
#   - chunker.py: recursive character chunking (langchain-text-splitters)
#   - embedder.py: Ollama embeddings through the OpenAI SDK
#   - vectorstore.py: in-process ChromaDB index + swappable IndexStore
#   - llm.py: Ollama chat completions through the OpenAI SDK
#   - answerer.py: prompt template and answer generation
#   - ingest.py: load → chunk → embed → index pipelines
#   - errors.py: service exceptions mapped to HTTP errors
# =============================================================================
