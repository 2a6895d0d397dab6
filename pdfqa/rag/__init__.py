"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- PDF text extraction
- Fixed-size document chunking
- JSON embedding storage
- Cosine similarity ranking
- Build and query orchestration
"""
