"""Build and query pipeline for single-document question answering.

Orchestrates:
- Text extraction and chunking
- Per-chunk embedding (sequential, rate limited)
- Store persistence
- Query embedding, ranking, prompt assembly and generation
"""
import math
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import structlog

from pdfqa.config import Settings, load_settings
from pdfqa.errors import (
    CollaboratorError,
    DimensionMismatchError,
    InvalidArgumentError,
    StoreNotFoundError,
)
from pdfqa.rag.chunker import TextChunk, TextChunker
from pdfqa.rag.ranker import ScoredChunk, rank
from pdfqa.rag.store import EmbeddingRecord, EmbeddingStore

logger = structlog.get_logger()

EmbedFn = Callable[[str], Sequence[float]]
GenerateFn = Callable[[str], str]
ExtractFn = Callable[[bytes], str]

DEFAULT_TOP_K = 3

PROMPT_TEMPLATE = """Based on this context from the document, answer the question:

Context:
{context}

Question: {question}

Answer:"""

NO_INDEX_MESSAGE = "No embeddings found! Please build the index first."
ERROR_MESSAGE = "Sorry, I couldn't generate an answer due to an error."
EMPTY_QUESTION_MESSAGE = "Please ask a question."


class QueryState(str, Enum):
    """Stages of a single query."""

    START = "start"
    EMBEDDING_QUERY = "embedding_query"
    RANKING = "ranking"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


@dataclass
class AnswerResult:
    """Outcome of a query."""

    question: str
    answer: str
    state: QueryState
    sources: List[ScoredChunk] = field(default_factory=list)
    error: Optional[str] = None
    missing_index: bool = False

    @property
    def success(self) -> bool:
        return self.state is QueryState.DONE


@dataclass
class BuildStats:
    """Summary of the most recent build."""

    chunks_created: int
    embeddings_generated: int
    dimension: Optional[int]
    store_path: Optional[Path]
    elapsed_seconds: float


def build_context(results: Sequence[ScoredChunk]) -> str:
    """Join ranked chunk texts with a blank line between them."""
    return "\n\n".join(result.text for result in results)


def build_prompt(question: str, context: str) -> str:
    """Fill the generation prompt template."""
    return PROMPT_TEMPLATE.format(context=context, question=question)


def _call_embed(embed_fn: EmbedFn, text: str) -> List[float]:
    """Call the embedding collaborator, normalizing failures.

    Raises:
        CollaboratorError: If the call raises or returns an empty or
            non-numeric vector
    """
    try:
        vector = embed_fn(text)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(f"Embedding call failed: {e}", "embedding") from e

    if vector is None or len(vector) == 0:
        raise CollaboratorError("Empty embedding returned", "embedding")

    try:
        values = [float(value) for value in vector]
    except (TypeError, ValueError) as e:
        raise CollaboratorError(f"Non-numeric embedding returned: {e}", "embedding") from e

    if not all(math.isfinite(value) for value in values):
        raise CollaboratorError("Embedding contains NaN or infinite values", "embedding")

    return values


def _call_generate(generate_fn: GenerateFn, prompt: str) -> str:
    """Call the generation collaborator, normalizing failures."""
    try:
        text = generate_fn(prompt)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(f"Generation call failed: {e}", "generation") from e

    if not isinstance(text, str):
        raise CollaboratorError(
            f"Generation returned {type(text).__name__}, expected str", "generation"
        )
    return text


def embed_chunks(
    chunks: Sequence[TextChunk],
    embed_fn: EmbedFn,
    delay_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[EmbeddingRecord]:
    """Embed chunks one at a time, in order.

    Stops at the first failure; no partial result is returned.

    Args:
        chunks: Chunks to embed
        embed_fn: Embedding collaborator
        delay_seconds: Pause after each call
        sleep: Sleep function (injectable for tests)
        progress_callback: Optional callback function(current, total)

    Returns:
        One EmbeddingRecord per chunk, in chunk order

    Raises:
        CollaboratorError: If any embedding call fails
        DimensionMismatchError: If vectors come back with different lengths
    """
    records = []
    dimension = None

    for current, chunk in enumerate(chunks, 1):
        if progress_callback:
            progress_callback(current, len(chunks))

        logger.debug("embedding_chunk", index=chunk.index, total=len(chunks))

        try:
            vector = _call_embed(embed_fn, chunk.text)
        except CollaboratorError as e:
            logger.error(
                "embedding_generation_failed",
                index=chunk.index,
                text_preview=chunk.text[:100],
                error=str(e),
            )
            raise

        if dimension is None:
            dimension = len(vector)
        elif len(vector) != dimension:
            raise DimensionMismatchError(
                f"Chunk {chunk.index} embedded to dimension {len(vector)}, "
                f"expected {dimension}",
                expected=dimension,
                actual=len(vector),
            )

        records.append(EmbeddingRecord(text=chunk.text, embedding=vector))

        if delay_seconds > 0:
            sleep(delay_seconds)

    return records


def build(
    document_text: str,
    chunk_size: int,
    embed_fn: EmbedFn,
    delay_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> EmbeddingStore:
    """Chunk and embed a document into an in-memory store (not persisted).

    Raises:
        InvalidArgumentError: If chunk_size is not positive
        CollaboratorError: If any embedding call fails
    """
    chunks = TextChunker(chunk_size).chunk_text(document_text)
    records = embed_chunks(chunks, embed_fn, delay_seconds=delay_seconds, sleep=sleep)
    return EmbeddingStore(records)


class RAGPipeline:
    """Build phase and query phase over one persisted embedding store."""

    def __init__(
        self,
        settings: Settings,
        embed_fn: EmbedFn,
        generate_fn: GenerateFn,
        extract_fn: Optional[ExtractFn] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the pipeline.

        Args:
            settings: Chunk size, top-k, delay and store path
            embed_fn: Embedding collaborator, text -> vector
            generate_fn: Generation collaborator, prompt -> text
            extract_fn: PDF text extraction collaborator, bytes -> text
            sleep: Sleep function used for the inter-call delay
        """
        self.settings = settings
        self.embed_fn = embed_fn
        self.generate_fn = generate_fn
        self.extract_fn = extract_fn
        self.sleep = sleep

        self.last_build_stats: Optional[BuildStats] = None

        # Serializes rebuilds against store loads within this process
        self._lock = threading.Lock()

        logger.info(
            "pipeline_initialized",
            store_path=str(self.settings.store_path),
            chunk_size=self.settings.chunk_size,
            top_k=self.settings.top_k,
        )

    @property
    def store_path(self) -> Path:
        return Path(self.settings.store_path)

    # ==================== BUILD PHASE ====================

    def build(
        self,
        document_text: str,
        chunk_size: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> EmbeddingStore:
        """Chunk, embed and persist a document, replacing any previous store.

        Args:
            document_text: Full text of the source document
            chunk_size: Chunk size in characters (default from settings)
            progress_callback: Optional callback function(current, total)

        Returns:
            The new store

        Raises:
            InvalidArgumentError: If chunk_size is not positive
            CollaboratorError: If any embedding call fails (nothing is saved)
            StoreWriteError: If the store cannot be written
        """
        chunk_size = chunk_size if chunk_size is not None else self.settings.chunk_size
        chunker = TextChunker(chunk_size)

        with self._lock:
            start = time.time()
            logger.info("build_started", text_length=len(document_text), chunk_size=chunk_size)

            chunks = chunker.chunk_text(document_text)
            logger.info("chunks_created", **chunker.get_chunk_stats(chunks))

            if not chunks:
                logger.warning("no_chunks_created", text_length=len(document_text))

            records = embed_chunks(
                chunks,
                self.embed_fn,
                delay_seconds=self.settings.embed_delay_seconds,
                sleep=self.sleep,
                progress_callback=progress_callback,
            )

            store = EmbeddingStore(records)
            store.save(self.store_path)

            self.last_build_stats = BuildStats(
                chunks_created=len(chunks),
                embeddings_generated=len(records),
                dimension=store.dimension,
                store_path=self.store_path,
                elapsed_seconds=time.time() - start,
            )

        logger.info(
            "build_completed",
            chunks_created=len(chunks),
            dimension=store.dimension,
            store_path=str(self.store_path),
        )

        return store

    def build_from_pdf(
        self,
        pdf_path: Union[str, Path],
        chunk_size: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> EmbeddingStore:
        """Extract a PDF's text and build the store from it.

        Raises:
            InvalidArgumentError: If no extraction collaborator is configured
            FileNotFoundError: If the PDF does not exist
            CollaboratorError: If extraction or embedding fails
        """
        if self.extract_fn is None:
            raise InvalidArgumentError("No text extraction function configured")

        pdf_path = Path(pdf_path)
        if not pdf_path.exists():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")

        try:
            text = self.extract_fn(pdf_path.read_bytes())
        except CollaboratorError:
            raise
        except Exception as e:
            logger.error("pdf_extraction_failed", path=str(pdf_path), error=str(e))
            raise CollaboratorError(f"Text extraction failed: {e}", "extraction") from e

        logger.info("pdf_loaded", path=str(pdf_path), char_count=len(text))

        return self.build(text, chunk_size=chunk_size, progress_callback=progress_callback)

    # ==================== QUERY PHASE ====================

    def load_store(self) -> EmbeddingStore:
        """Load the persisted store.

        Raises:
            StoreNotFoundError: If no store has been built
            CorruptDataError: If the store file is invalid
        """
        with self._lock:
            return EmbeddingStore.load(self.store_path)

    def ask(self, question: str, k: Optional[int] = None) -> AnswerResult:
        """Answer a question from the stored document chunks.

        A blank question, collaborator failures and a missing store are
        reported in the returned result. Structural errors are raised.

        Args:
            question: User question
            k: Number of chunks to use as context (default from settings)

        Returns:
            AnswerResult

        Raises:
            InvalidArgumentError: If k is not positive
            DimensionMismatchError: If the query vector does not match the store
            CorruptDataError: If the store file is invalid
        """
        k = k if k is not None else self.settings.top_k
        if k <= 0:
            raise InvalidArgumentError(f"k must be a positive integer, got {k}")
        if not question or not question.strip():
            logger.warning("empty_question")
            return AnswerResult(
                question=question or "",
                answer=EMPTY_QUESTION_MESSAGE,
                state=QueryState.ERROR,
                error="Question must not be empty",
            )

        state = QueryState.START
        logger.info("query_started", question_length=len(question), top_k=k)

        try:
            store = self.load_store()
        except StoreNotFoundError as e:
            logger.warning("store_missing", path=str(self.store_path))
            return AnswerResult(
                question=question,
                answer=NO_INDEX_MESSAGE,
                state=QueryState.ERROR,
                error=str(e),
                missing_index=True,
            )

        try:
            state = QueryState.EMBEDDING_QUERY
            query_vector = _call_embed(self.embed_fn, question)

            state = QueryState.RANKING
            results = rank(query_vector, store, k)
            for i, result in enumerate(results, 1):
                logger.debug("chunk_ranked", rank=i, similarity=round(result.similarity, 3))

            state = QueryState.GENERATING
            prompt = build_prompt(question, build_context(results))
            text = _call_generate(self.generate_fn, prompt)

        except CollaboratorError as e:
            logger.error("query_failed", state=state.value, error=str(e))
            return AnswerResult(
                question=question,
                answer=ERROR_MESSAGE,
                state=QueryState.ERROR,
                error=str(e),
            )

        logger.info("query_completed", sources=len(results), answer_length=len(text))

        return AnswerResult(
            question=question,
            answer=text,
            state=QueryState.DONE,
            sources=results,
        )

    def answer(self, question: str, k: Optional[int] = None) -> str:
        """Answer a question, returning only the user-facing text."""
        return self.ask(question, k=k).answer


def answer(
    question: str,
    embed_fn: EmbedFn,
    generate_fn: GenerateFn,
    k: int = DEFAULT_TOP_K,
    store_path: Union[str, Path, None] = None,
) -> str:
    """Answer a question against a persisted store (convenience function).

    Args:
        question: User question
        embed_fn: Embedding collaborator
        generate_fn: Generation collaborator
        k: Number of chunks to use as context
        store_path: Store file (default from settings)

    Returns:
        Generated answer, or a user-facing message on failure
    """
    settings = load_settings(store_path=store_path)
    pipeline = RAGPipeline(settings, embed_fn=embed_fn, generate_fn=generate_fn)
    return pipeline.answer(question, k=k)
