"""Unit tests for settings."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from pdfqa.config import Settings, load_settings


class TestSettings:
    """Tests for environment defaults and validation."""

    def test_defaults(self, monkeypatch):
        """Test defaults when the environment is empty."""
        for name in ("CHUNK_SIZE", "RETRIEVAL_TOP_K", "EMBED_DELAY_SECONDS", "STORE_PATH"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.chunk_size == 1000
        assert settings.top_k == 3
        assert settings.embed_delay_seconds == 0.5
        assert settings.store_path.name == "embeddings.json"

    def test_environment(self, monkeypatch, tmp_path):
        """Test values are read from the environment."""
        monkeypatch.setenv("CHUNK_SIZE", "250")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "5")
        monkeypatch.setenv("STORE_PATH", str(tmp_path / "s.json"))

        settings = Settings()

        assert settings.chunk_size == 250
        assert settings.top_k == 5
        assert settings.store_path == tmp_path / "s.json"

    @pytest.mark.parametrize(
        "field,value",
        [("chunk_size", 0), ("top_k", -1), ("embed_delay_seconds", -0.1)],
    )
    def test_invalid_values(self, field, value):
        """Test out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_load_settings_ignores_none(self, monkeypatch):
        """Test None overrides fall back to the environment."""
        monkeypatch.setenv("CHUNK_SIZE", "300")

        settings = load_settings(chunk_size=None, top_k=7, store_path="x/y.json")

        assert settings.chunk_size == 300
        assert settings.top_k == 7
        assert settings.store_path == Path("x/y.json")
