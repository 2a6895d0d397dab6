"""Application configuration with sensible defaults.

Values come from the environment when set. A ``Settings`` instance is
passed explicitly to the pipeline and the Ollama client.
"""
import logging
import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, field_validator

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"


class Settings(BaseModel):
    """Runtime settings for the build and query phases."""

    # Ollama configuration
    ollama_base_url: str = Field(
        default_factory=lambda: os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", "nomic-embed-text")
    )
    chat_model: str = Field(
        default_factory=lambda: os.getenv("CHAT_MODEL", "llama3.2")
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    )

    # RAG parameters (character-based, no overlap)
    chunk_size: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1000"))
    )
    top_k: int = Field(
        default_factory=lambda: int(os.getenv("RETRIEVAL_TOP_K", "3"))
    )
    # Pause after each chunk embedding to stay under provider rate limits
    embed_delay_seconds: float = Field(
        default_factory=lambda: float(os.getenv("EMBED_DELAY_SECONDS", "0.5"))
    )

    # Persistence
    store_path: Path = Field(
        default_factory=lambda: Path(
            os.getenv("STORE_PATH", str(DATA_DIR / "embeddings.json"))
        )
    )

    # Logging
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @field_validator("chunk_size", "top_k")
    @classmethod
    def check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"must be a positive integer, got {value}")
        return value

    @field_validator("embed_delay_seconds", "request_timeout")
    @classmethod
    def check_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"must not be negative, got {value}")
        return value


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, applying non-None overrides.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Settings instance
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on top of stdlib logging."""
    logging.basicConfig(format="%(message)s", level=level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
