"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage
    storage_backend: Literal["memory", "local", "sql"] = "memory"
    local_storage_dir: str = "local-storage"
    database_url: str | None = None

    # Completion / embedding providers
    openai_api_key: SecretStr | None = None
    completion_model: str = "gpt-4o-mini"
    completion_temperature: float = 0.4
    completion_max_tokens: int = 2000
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 768

    # Vector index
    index_name: str = "tender-documents"
    index_batch_size: int = 5
    retrieval_top_k: int = 5

    # Ingestion limits
    max_upload_bytes: int = 10 * 1024 * 1024

    # Chunking (characters)
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Retry on rate limiting
    retry_max_retries: int = 3
    retry_base_delay_ms: int = 1000

    # Analysis
    analysis_max_chars: int = 100_000
    error_summary_ttl_seconds: int = 300

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
