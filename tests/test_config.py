"""Tests for configuration module."""

from pathlib import Path

from keepsake.core.config import Settings


def test_default_settings():
    """Settings load with defaults."""
    settings = Settings(
        _env_file=None,  # Don't load .env in tests
    )
    assert settings.data_dir == Path("data")
    assert settings.table_name == "user_memories"
    assert settings.search_limit == 5
    assert settings.hybrid_semantic_weight == 0.7
    assert settings.recent_only_keep == 5
    assert settings.structured_extraction is False


def test_db_path():
    """Database path combines data_dir and db_name."""
    settings = Settings(
        data_dir=Path("/tmp/test"),
        db_name="test.db",
        _env_file=None,
    )
    assert settings.db_path == Path("/tmp/test/test.db")


def test_env_prefix(monkeypatch):
    """KEEPSAKE_ environment variables override defaults."""
    monkeypatch.setenv("KEEPSAKE_MODEL", "ollama/llama3")
    monkeypatch.setenv("KEEPSAKE_SEARCH_LIMIT", "12")
    monkeypatch.setenv("KEEPSAKE_STRUCTURED_EXTRACTION", "true")

    settings = Settings(_env_file=None)
    assert settings.model == "ollama/llama3"
    assert settings.search_limit == 12
    assert settings.structured_extraction is True
