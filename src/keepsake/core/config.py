"""
Configuration management.

Loads settings from environment variables and .env file.
Prefix: KEEPSAKE_
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KEEPSAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Data storage directory")
    db_name: str = Field(default="memory.db", description="SQLite database name")
    table_name: str = Field(default="user_memories", description="Memory table name")

    # Oracle
    model: str = Field(default="gpt-4o-mini", description="Chat model (LiteLLM name)")
    api_key: str = Field(default="", description="Provider API key")
    api_base: str = Field(default="", description="Provider base URL override")
    local_llm_url: str = Field(
        default="http://localhost:1234/v1",
        description="Local LLM endpoint (OpenAI-compatible)",
    )
    max_tokens: int = Field(default=1024, description="Max completion tokens")
    classifier_temperature: float = Field(default=0.0, description="Gate temperature")
    extraction_temperature: float = Field(default=0.1, description="Extractor temperature")
    summary_temperature: float = Field(default=0.3, description="Summarizer temperature")
    structured_extraction: bool = Field(
        default=False, description="Ask the extractor for a JSON verdict"
    )

    # Embeddings
    embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model (LiteLLM name)"
    )
    embedding_dimensions: int = Field(default=1536, description="Embedding vector size")

    # Retrieval / compaction
    search_limit: int = Field(default=5, description="Default search result limit")
    hybrid_semantic_weight: float = Field(
        default=0.7, description="Semantic share of the hybrid score"
    )
    recent_only_keep: int = Field(default=5, description="Default RecentOnly keep count")

    # Logging
    log_level: str = Field(default="INFO", description="Log level name")
    log_file: Path | None = Field(default=None, description="Optional log file")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
