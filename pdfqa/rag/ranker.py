"""Brute-force cosine similarity ranking over an embedding store.

Every query is scored against every stored vector. A zero-norm vector on
either side scores 0.0 instead of NaN. Ties keep store order.
"""
from typing import List, Sequence
from dataclasses import dataclass
import numpy as np
import structlog

from pdfqa.errors import DimensionMismatchError, InvalidArgumentError
from pdfqa.rag.store import EmbeddingStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ScoredChunk:
    """A stored chunk with its similarity to the query."""

    text: str
    similarity: float
    position: int

    @property
    def preview(self) -> str:
        """First 80 characters on one line, for logs and CLI output."""
        return self.text[:80].replace("\n", " ")


def _as_vector(values: Sequence[float]) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise InvalidArgumentError(f"Expected a 1-D vector, got shape {vector.shape}")
    return vector


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity between two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    a = _as_vector(a)
    b = _as_vector(b)

    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"Vector dimension mismatch: {a.shape[0]} != {b.shape[0]}",
            expected=a.shape[0],
            actual=b.shape[0],
        )

    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0.0:
        return 0.0
    return float(np.dot(a, b) / denominator)


def cosine_similarities(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of a query against each row of an (N, D) matrix.

    Rows (or a query) with zero norm score 0.0.
    """
    query_vector = _as_vector(query)
    dots = matrix @ query_vector
    denominators = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)

    similarities = np.zeros(matrix.shape[0], dtype=np.float64)
    nonzero = denominators != 0.0
    similarities[nonzero] = dots[nonzero] / denominators[nonzero]
    return similarities


def rank(query: Sequence[float], store: EmbeddingStore, k: int) -> List[ScoredChunk]:
    """Return the k stored chunks most similar to the query.

    Args:
        query: Query embedding
        store: Store to search
        k: Number of results to return

    Returns:
        ``min(k, len(store))`` ScoredChunks by descending similarity;
        equal similarities keep store order

    Raises:
        InvalidArgumentError: If k is not positive or the query is not finite
        DimensionMismatchError: If the query length differs from the store's
    """
    if k <= 0:
        raise InvalidArgumentError(f"k must be a positive integer, got {k}")

    if len(store) == 0:
        logger.warning("rank_empty_store")
        return []

    query_vector = _as_vector(query)
    if query_vector.shape[0] != store.dimension:
        raise DimensionMismatchError(
            f"Query dimension mismatch: expected {store.dimension}, "
            f"got {query_vector.shape[0]}",
            expected=store.dimension,
            actual=query_vector.shape[0],
        )

    if not np.all(np.isfinite(query_vector)):
        raise InvalidArgumentError("Query vector contains NaN or infinite values")

    similarities = cosine_similarities(query_vector, store.as_matrix())

    # Stable sort on the negated scores keeps store order among ties
    order = np.argsort(-similarities, kind="stable")[:k]

    results = [
        ScoredChunk(
            text=store[int(position)].text,
            similarity=float(similarities[position]),
            position=int(position),
        )
        for position in order
    ]

    logger.info(
        "rank_completed",
        store_size=len(store),
        top_k=k,
        results_returned=len(results),
        top_similarity=results[0].similarity,
    )

    return results
