"""Question answering over a single PDF with retrieval-augmented generation."""

__version__ = "0.1.0"
