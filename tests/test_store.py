"""Unit tests for the JSON embedding store."""
import json
from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

from pdfqa.errors import (
    CorruptDataError,
    DimensionMismatchError,
    StoreNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from pdfqa.rag.store import EmbeddingRecord, EmbeddingStore


class TestEmbeddingStore:
    """Tests for construction and accessors."""

    def test_dimension(self, abc_store):
        """Test dimension comes from the records."""
        assert len(abc_store) == 3
        assert abc_store.dimension == 2
        assert abc_store.texts == ["A", "B", "C"]

    def test_empty_store_has_no_dimension(self):
        """Test an empty store."""
        store = EmbeddingStore([])
        assert len(store) == 0
        assert store.dimension is None

    def test_mixed_dimensions_rejected(self):
        """Test records must share a dimension."""
        with pytest.raises(DimensionMismatchError):
            EmbeddingStore([
                EmbeddingRecord(text="x", embedding=[1.0, 2.0]),
                EmbeddingRecord(text="y", embedding=[1.0, 2.0, 3.0]),
            ])

    def test_records_are_immutable(self):
        """Test records cannot be modified after creation."""
        record = EmbeddingRecord(text="x", embedding=[1.0])
        with pytest.raises(ValidationError):
            record.text = "y"

    @pytest.mark.parametrize("embedding", [[], [float("nan")], [float("inf"), 1.0]])
    def test_invalid_embedding_rejected(self, embedding):
        """Test records need a non-empty, finite embedding."""
        with pytest.raises(ValidationError):
            EmbeddingRecord(text="x", embedding=embedding)

    def test_as_matrix(self, abc_store):
        """Test the embedding matrix shape and values."""
        matrix = abc_store.as_matrix()
        assert matrix.shape == (3, 2)
        assert matrix.dtype == np.float64
        assert matrix[2].tolist() == [1.0, 1.0]


class TestSaveLoad:
    """Tests for persistence."""

    def test_round_trip(self, abc_store, store_path):
        """Test load(save(store)) equals the original store."""
        abc_store.save(store_path)
        loaded = EmbeddingStore.load(store_path)

        assert loaded == abc_store
        assert [r.text for r in loaded] == ["A", "B", "C"]
        assert loaded[2].embedding == (1.0, 1.0)

    def test_file_format(self, abc_store, store_path):
        """Test the file is a JSON array of text/embedding objects."""
        abc_store.save(store_path)
        data = json.loads(store_path.read_text())

        assert data == [
            {"text": "A", "embedding": [1.0, 0.0]},
            {"text": "B", "embedding": [0.0, 1.0]},
            {"text": "C", "embedding": [1.0, 1.0]},
        ]

    def test_save_replaces_previous(self, abc_store, store_path):
        """Test saving overwrites the previous store entirely."""
        abc_store.save(store_path)
        EmbeddingStore([EmbeddingRecord(text="Z", embedding=[0.5])]).save(store_path)

        loaded = EmbeddingStore.load(store_path)
        assert loaded.texts == ["Z"]

    def test_save_leaves_no_temp_files(self, abc_store, store_path):
        """Test the temporary file is moved into place."""
        abc_store.save(store_path)
        assert [p.name for p in store_path.parent.iterdir()] == [store_path.name]

    def test_save_write_failure(self, abc_store, tmp_path):
        """Test an unwritable destination raises StoreWriteError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StoreWriteError):
            abc_store.save(blocker / "sub" / "embeddings.json")

    def test_empty_store_round_trip(self, store_path):
        """Test an empty store saves as an empty array."""
        EmbeddingStore([]).save(store_path)
        assert json.loads(store_path.read_text()) == []
        assert len(EmbeddingStore.load(store_path)) == 0

    def test_load_missing(self, tmp_path):
        """Test loading a missing file raises StoreNotFoundError."""
        with pytest.raises(StoreNotFoundError):
            EmbeddingStore.load(tmp_path / "missing.json")

    def test_missing_is_file_not_found(self, tmp_path):
        """Test StoreNotFoundError is also a FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            EmbeddingStore.load(tmp_path / "missing.json")

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            '"not json"',
            '{"text": "A", "embedding": [1, 0]}',
            '[{"text": "A"}]',
            '[{"text": "A", "embedding": "abc"}]',
            '[{"embedding": [1, 0]}]',
            '[{"text": "A", "embedding": ["1", "0"]}]',
            '[{"text": "A", "embedding": [true, false]}]',
            '[{"text": "A", "embedding": [NaN, 0]}]',
            '[{"text": "A", "embedding": [Infinity, 0]}]',
            '[{"text": "A", "embedding": []}]',
            '[{"text": 7, "embedding": [1, 0]}]',
        ],
    )
    def test_load_corrupt(self, store_path, content):
        """Test malformed content raises CorruptDataError."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content)

        with pytest.raises(CorruptDataError):
            EmbeddingStore.load(store_path)

    def test_load_inconsistent_dimensions(self, store_path):
        """Test records with different dimensions are corrupt data."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps([
            {"text": "A", "embedding": [1, 0]},
            {"text": "B", "embedding": [1, 0, 0]},
        ]))

        with pytest.raises(CorruptDataError):
            EmbeddingStore.load(store_path)

    def test_load_integer_embeddings(self, store_path):
        """Test integer JSON numbers are accepted as floats."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text('[{"text": "A", "embedding": [1, 0]}]')

        loaded = EmbeddingStore.load(store_path)
        assert loaded[0].embedding == (1.0, 0.0)

    def test_load_invalid_utf8(self, store_path):
        """Test undecodable bytes raise CorruptDataError."""
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b"\xff\xfe[")

        with pytest.raises(CorruptDataError):
            EmbeddingStore.load(store_path)

    def test_load_directory_is_read_error(self, store_path):
        """Test an unreadable path raises StoreReadError."""
        store_path.mkdir(parents=True)

        with pytest.raises(StoreReadError):
            EmbeddingStore.load(store_path)

    def test_file_removed_before_read(self, abc_store, store_path, monkeypatch):
        """Test a file that disappears while loading is reported as missing."""
        abc_store.save(store_path)

        def vanished(self, *args, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", str(self))

        monkeypatch.setattr(Path, "read_text", vanished)

        with pytest.raises(StoreNotFoundError):
            EmbeddingStore.load(store_path)
