"""JSON-backed embedding store.

Handles:
- Uniform dimension validation across records
- Atomic persistence to a single JSON array
- Shape validation on load
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Annotated, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pdfqa.errors import (
    CorruptDataError,
    DimensionMismatchError,
    StoreNotFoundError,
    StoreReadError,
    StoreWriteError,
)

logger = structlog.get_logger()

FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


class EmbeddingRecord(BaseModel):
    """A chunk of text and its embedding vector."""

    model_config = ConfigDict(frozen=True)

    text: str
    embedding: Annotated[Tuple[FiniteFloat, ...], Field(min_length=1)]

    @property
    def dimension(self) -> int:
        return len(self.embedding)


_records_adapter = TypeAdapter(List[EmbeddingRecord])


class EmbeddingStore:
    """Ordered, read-only collection of embedding records."""

    def __init__(self, records: Iterable[EmbeddingRecord] = ()):
        """Initialize the store.

        Args:
            records: Records in chunk order

        Raises:
            DimensionMismatchError: If records have different vector lengths
        """
        self._records: Tuple[EmbeddingRecord, ...] = tuple(records)
        self.dimension: Optional[int] = None

        if self._records:
            self.dimension = self._records[0].dimension
            for position, record in enumerate(self._records):
                if record.dimension != self.dimension:
                    raise DimensionMismatchError(
                        f"Record {position} has dimension {record.dimension}, "
                        f"expected {self.dimension}",
                        expected=self.dimension,
                        actual=record.dimension,
                    )

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EmbeddingRecord]:
        return iter(self._records)

    def __getitem__(self, position: int) -> EmbeddingRecord:
        return self._records[position]

    def __eq__(self, other) -> bool:
        if not isinstance(other, EmbeddingStore):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"EmbeddingStore(records={len(self)}, dimension={self.dimension})"

    @property
    def records(self) -> Tuple[EmbeddingRecord, ...]:
        return self._records

    @property
    def texts(self) -> List[str]:
        return [record.text for record in self._records]

    def as_matrix(self) -> np.ndarray:
        """Return the embeddings as an (N, D) float64 matrix."""
        if not self._records:
            return np.zeros((0, 0), dtype=np.float64)
        return np.array([record.embedding for record in self._records], dtype=np.float64)

    def save(self, path: Union[str, Path]) -> None:
        """Write the store to disk as a JSON array.

        The file is written next to its destination and moved into place,
        so readers see either the previous store or the complete new one.

        Args:
            path: Destination file

        Raises:
            StoreWriteError: If the file cannot be written
        """
        path = Path(path)
        payload = [record.model_dump() for record in self._records]

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("store_save_failed", path=str(path), error=str(e))
            raise StoreWriteError(f"Failed to save store to {path}: {e}") from e

        logger.info(
            "store_saved",
            path=str(path),
            record_count=len(self),
            dimension=self.dimension,
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "EmbeddingStore":
        """Load a store previously written by ``save``.

        Args:
            path: Store file

        Returns:
            EmbeddingStore with records in file order

        Raises:
            StoreNotFoundError: If the file does not exist
            CorruptDataError: If the content is not a valid record array
            StoreReadError: If the file exists but cannot be read
        """
        path = Path(path)

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreNotFoundError(f"Embedding store not found: {path}", path=path) from e
        except UnicodeDecodeError as e:
            logger.error("store_corrupt", path=str(path), error=str(e))
            raise CorruptDataError(f"Store {path} is not valid UTF-8") from e
        except OSError as e:
            logger.error("store_read_failed", path=str(path), error=str(e))
            raise StoreReadError(f"Failed to read store {path}: {e}") from e

        try:
            # Strict: no string or boolean coercion into text or embedding values
            records = _records_adapter.validate_json(raw, strict=True)
        except ValidationError as e:
            logger.error(
                "store_corrupt",
                path=str(path),
                error_count=e.error_count(),
                error=str(e).splitlines()[0],
            )
            raise CorruptDataError(f"Store {path} is not a valid record array") from e

        try:
            store = cls(records)
        except DimensionMismatchError as e:
            logger.error("store_corrupt", path=str(path), error=str(e))
            raise CorruptDataError(f"Store {path} has inconsistent dimensions: {e}") from e

        logger.info(
            "store_loaded",
            path=str(path),
            record_count=len(store),
            dimension=store.dimension,
        )

        return store
