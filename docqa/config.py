# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# All runtime knobs of the service live here: HTTP binding, the Ollama
# backend, embedding/LLM model identity, chunking, retrieval and deadlines.
#
# HOW IT WORKS:
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `OLLAMA_BASE_URL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from docqa.config import get_settings
#   print(get_settings().ollama_base_url)
# =============================================================================

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Repository root: docqa/config.py → docqa/ → project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target a local Ollama install serving gemma2:2b and the sample
    documents shipped in ./data.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Document Q&A Service"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Ollama Backend
    # -------------------------------------------------------------------------
    # Embeddings use the native API (<base_url>/api/embed), which applies
    # the embedding_* runtime options below. Completions go through the
    # OpenAI-compatible API (<base_url>/v1); Ollama ignores the API key, but
    # the OpenAI SDK refuses to start without one.
    # -------------------------------------------------------------------------
    ollama_base_url: str = "http://localhost:11434"
    ollama_api_key: str = "ollama"

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    # The same model and runtime options are used for indexing and for
    # querying. Vectors produced under a different configuration are not
    # comparable, so changing any of these requires a reload.
    # -------------------------------------------------------------------------
    embedding_model: str = "gemma2:2b"
    embedding_batch_size: int = 32  # Chunks per embeddings API call
    embedding_use_mmap: bool = True
    embedding_num_thread: int = 6
    embedding_num_gpu: int = 1

    # -------------------------------------------------------------------------
    # LLM Configuration
    # -------------------------------------------------------------------------
    # None means "use the model's own default" — the parameter is not sent.
    # -------------------------------------------------------------------------
    llm_model: str = "gemma2:2b"
    llm_temperature: float | None = None
    llm_max_tokens: int | None = None

    # -------------------------------------------------------------------------
    # Deadlines
    # -------------------------------------------------------------------------
    # backend_timeout_seconds bounds every single call to Ollama.
    # load/ask timeouts bound a whole request, across all of its calls.
    # There are no retries anywhere: a failed call fails the request.
    # -------------------------------------------------------------------------
    backend_timeout_seconds: float = 120.0
    load_timeout_seconds: float = 900.0
    ask_timeout_seconds: float = 300.0

    # -------------------------------------------------------------------------
    # Source Documents
    # -------------------------------------------------------------------------
    data_dir: Path = PROJECT_ROOT / "data"
    text_file_name: str = "langchain-test.txt"
    pdf_file_name: str = "langchain-test.pdf"

    # PDF conversion (docling). OCR is only needed for scanned documents.
    pdf_ocr_enabled: bool = False
    pdf_table_structure: bool = True

    # -------------------------------------------------------------------------
    # Chunking Configuration
    # -------------------------------------------------------------------------
    # Character-based, split preferentially at paragraph > line > space.
    # -------------------------------------------------------------------------
    chunk_size: int = 1000
    chunk_overlap: int = 50

    # -------------------------------------------------------------------------
    # Retrieval Configuration
    # -------------------------------------------------------------------------
    retrieval_top_k: int = 3

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def ollama_openai_url(self) -> str:
        """Base URL of Ollama's OpenAI-compatible API."""
        return f"{self.ollama_base_url.rstrip('/')}/v1"

    @property
    def text_file_path(self) -> Path:
        return Path(self.data_dir) / self.text_file_name

    @property
    def pdf_file_path(self) -> Path:
        return Path(self.data_dir) / self.pdf_file_name


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    In tests, build a Settings directly and hand it to create_app():
        app = create_app(settings=Settings(data_dir=tmp_path))
    """
    return Settings()
