"""Pytest configuration and shared fixtures."""
from typing import List

import pytest

from pdfqa.config import Settings
from pdfqa.rag.store import EmbeddingRecord, EmbeddingStore


def letter_embed(text: str) -> List[float]:
    """Deterministic 3-d embedding: counts of 'a', 'b' and 'c'."""
    return [float(text.count("a")), float(text.count("b")), float(text.count("c"))]


class RecordingGenerator:
    """Generation stub that remembers the prompts it was given."""

    def __init__(self, reply: str = "ANSWER"):
        self.reply = reply
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class RecordingSleep:
    """Sleep stub that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def store_path(tmp_path):
    """Path for a store file inside a fresh temporary directory."""
    return tmp_path / "data" / "embeddings.json"


@pytest.fixture
def settings(store_path):
    """Settings pointing at a temporary store, no inter-call delay."""
    return Settings(
        store_path=store_path,
        chunk_size=4,
        top_k=2,
        embed_delay_seconds=0.0,
    )


@pytest.fixture
def generator():
    return RecordingGenerator()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def abc_store():
    """The three-record store used in the ranking scenarios."""
    return EmbeddingStore([
        EmbeddingRecord(text="A", embedding=[1, 0]),
        EmbeddingRecord(text="B", embedding=[0, 1]),
        EmbeddingRecord(text="C", embedding=[1, 1]),
    ])
