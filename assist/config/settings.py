"""
Assist - Centralized Configuration
===================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Backends
--------
- ``MODEL_PROVIDER`` selects the generation/embedding backend:
  ``"bedrock"`` (Claude v2 + Titan through ``boto3``, credentials from the
  standard AWS chain) or ``"gemini"`` (LangChain Google GenAI).
- ``STORE_BACKEND`` selects where ``KnowledgeEntry`` rows live:
  ``"mongo"`` (Atlas ``$vectorSearch`` through ``motor``) or ``"lancedb"``.

Security
--------
- ``GOOGLE_API_KEY`` and ``MONGO_URI`` are typed as ``SecretStr``.  They are
  only required when the matching backend is selected; a missing value then
  raises a ``ValidationError`` at startup.  Raw values never appear in repr,
  logs, or tracebacks.

Policies
--------
- ``STREAM_ERROR_POLICY``: what a mid-stream backend failure returns.
  ``"partial"`` hands back the text accumulated so far (the error is logged),
  ``"raise"`` raises ``StreamError`` carrying that text.
- ``RETRIEVAL_FAILURE_POLICY``: ``"raise"`` surfaces a failed similarity
  search, ``"degrade"`` continues with an empty context.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROVIDER_EMBEDDING_DIMENSION = {"bedrock": 1536, "gemini": 3072}


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).

    Attributes
    ----------
    ENV : Literal["dev", "prod"]
        Environment mode controlling default logging verbosity.
    LOG_LEVEL : str | None
        Explicit logging level name (``"INFO"``, ``"DEBUG"``…); wins over ``ENV``.
    MODEL_PROVIDER : Literal["bedrock", "gemini"]
        Backend used for both completions and embeddings.
    LLM_MODEL, EMBEDDING_MODEL : str
        Bedrock model identifiers.
    GEMINI_LLM_MODEL, GEMINI_EMBEDDING_MODEL : str
        Gemini model identifiers.
    STORE_BACKEND : Literal["mongo", "lancedb"]
        Knowledge-base persistence collaborator.
    STREAM_TIMEOUT_SECONDS : float
        Upper bound on waiting for a streamed completion to finish.
    STREAM_ECHO : bool
        Echo streamed deltas to stdout while they arrive.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    LANCEDB_PATH: Path = BASE_DIR / "data" / "lancedb"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: str | None = None

    # ── Model Backend ──────────────────────────────────────────────────
    MODEL_PROVIDER: Literal["bedrock", "gemini"] = "bedrock"
    AWS_REGION: str = "us-east-1"
    LLM_MODEL: str = "anthropic.claude-v2"
    EMBEDDING_MODEL: str = "amazon.titan-embed-text-v1"

    GOOGLE_API_KEY: SecretStr | None = None
    GEMINI_LLM_MODEL: str = "gemini-2.0-flash"
    GEMINI_EMBEDDING_MODEL: str = "gemini-embedding-001"

    # ── Knowledge Store ────────────────────────────────────────────────
    STORE_BACKEND: Literal["mongo", "lancedb"] = "mongo"

    MONGO_URI: SecretStr | None = None
    MONGO_DB_NAME: str = "assist"
    MONGO_COLLECTION: str = "knowledge_base"
    MONGO_VECTOR_INDEX: str = "vector_index"

    LANCEDB_TABLE_NAME: str = "knowledge_base"
    # Unset: follows the provider (Titan v1 1536, gemini-embedding-001 3072).
    EMBEDDING_DIMENSION: int | None = None

    VECTOR_SEARCH_LIMIT: int = 5
    VECTOR_SEARCH_CANDIDATES: int = 100

    # ── Streaming & Policies ───────────────────────────────────────────
    STREAM_TIMEOUT_SECONDS: float = 60.0
    STREAM_ERROR_POLICY: Literal["partial", "raise"] = "partial"
    RETRIEVAL_FAILURE_POLICY: Literal["raise", "degrade"] = "raise"
    STREAM_ECHO: bool = True

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("STREAM_TIMEOUT_SECONDS")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"STREAM_TIMEOUT_SECONDS must be > 0, got {v}")
        return v


    @field_validator("VECTOR_SEARCH_LIMIT", "VECTOR_SEARCH_CANDIDATES", "EMBEDDING_DIMENSION")
    @classmethod
    def _count_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"value must be ≥ 1, got {v}")
        return v


    @model_validator(mode="after")
    def _backend_credentials(self) -> "Settings":
        if self.MODEL_PROVIDER == "gemini" and self.GOOGLE_API_KEY is None:
            raise ValueError("GOOGLE_API_KEY is required when MODEL_PROVIDER='gemini'")
        if self.STORE_BACKEND == "mongo" and self.MONGO_URI is None:
            raise ValueError("MONGO_URI is required when STORE_BACKEND='mongo'")
        if self.VECTOR_SEARCH_CANDIDATES < self.VECTOR_SEARCH_LIMIT:
            raise ValueError("VECTOR_SEARCH_CANDIDATES must be ≥ VECTOR_SEARCH_LIMIT")
        if self.EMBEDDING_DIMENSION is None:
            self.EMBEDDING_DIMENSION = _PROVIDER_EMBEDDING_DIMENSION[self.MODEL_PROVIDER]
        return self

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from assist.config.settings import settings
settings = Settings()
