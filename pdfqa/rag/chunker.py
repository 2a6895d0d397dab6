"""Fixed-size text chunking for the RAG pipeline.

Chunks are consecutive, non-overlapping character slices. Word and sentence
boundaries are ignored, so a chunk may end mid-word.
"""
from typing import List
from dataclasses import dataclass
import structlog

from pdfqa.errors import InvalidArgumentError

logger = structlog.get_logger()


@dataclass(frozen=True)
class TextChunk:
    """Represents a chunk of text with position information."""

    text: str
    offset: int
    index: int

    @property
    def length(self) -> int:
        return len(self.text)


class TextChunker:
    """Character-based chunker producing fixed-width slices."""

    def __init__(self, chunk_size: int):
        """Initialize the text chunker.

        Args:
            chunk_size: Size of each chunk in characters

        Raises:
            InvalidArgumentError: If chunk_size is not positive
        """
        if chunk_size <= 0:
            raise InvalidArgumentError(
                f"Chunk size must be a positive integer, got {chunk_size}"
            )
        self.chunk_size = chunk_size

    def chunk_text(self, text: str) -> List[TextChunk]:
        """Split text into fixed-size chunks.

        Every chunk has exactly ``chunk_size`` characters except the last,
        which holds the remainder.

        Args:
            text: Text to chunk

        Returns:
            List of TextChunk objects in source order (empty for empty text)
        """
        if not text:
            return []

        chunks = [
            TextChunk(text=text[start : start + self.chunk_size], offset=start, index=index)
            for index, start in enumerate(range(0, len(text), self.chunk_size))
        ]

        logger.info(
            "text_chunked",
            text_length=len(text),
            chunk_size=self.chunk_size,
            chunk_count=len(chunks),
        )

        return chunks

    def get_chunk_stats(self, chunks: List[TextChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of TextChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
            }

        chunk_sizes = [c.length for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
        }


def chunk_text(text: str, size: int) -> List[TextChunk]:
    """Chunk text into ``size``-character slices (convenience function).

    Args:
        text: Text to chunk
        size: Chunk size in characters

    Returns:
        List of TextChunk objects

    Raises:
        InvalidArgumentError: If size is not positive
    """
    return TextChunker(size).chunk_text(text)
