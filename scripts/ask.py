#!/usr/bin/env python
"""Ask questions about the indexed PDF.

Usage:
    python scripts/ask.py "Tell me about John W. Smith"   # Single question
    python scripts/ask.py                                 # Interactive mode
    python scripts/ask.py --build resume.pdf "question"   # Build first if no store exists
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfqa.config import configure_logging, load_settings
from pdfqa.errors import PdfQAError
from pdfqa.llm_client import OllamaClient
from pdfqa.rag.pdf_parser import extract_text
from pdfqa.rag.pipeline import AnswerResult, RAGPipeline
import structlog

logger = structlog.get_logger()


def print_result(result: AnswerResult, show_sources: bool = False):
    """Print an answer, optionally with the chunks it was based on."""
    print(f"\n💡 Answer: {result.answer}")

    if show_sources and result.sources:
        print("\n🔍 Most relevant chunks:")
        for i, source in enumerate(result.sources, 1):
            print(f"  {i}. Similarity: {source.similarity:.3f}  {source.preview}...")


def interactive(pipeline: RAGPipeline, top_k: int, show_sources: bool):
    """Prompt for questions until the user quits."""
    print(f"\n{'=' * 60}")
    print("  Ready! Ask questions about the document.")
    print("  Type 'quit' to stop.")
    print(f"{'=' * 60}")

    while True:
        try:
            question = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not question:
            continue
        if question.lower() in ("quit", "exit", "q"):
            print("Bye!")
            break

        print_result(pipeline.ask(question, k=top_k), show_sources)


def main():
    """Main entry point for ask script."""
    parser = argparse.ArgumentParser(
        description="Ask questions about the indexed PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("question", nargs="*", help="Question to ask (omit for interactive mode)")

    parser.add_argument(
        "--top-k",
        "-k",
        type=int,
        default=None,
        help="Number of chunks to use as context (default: RETRIEVAL_TOP_K or 3)",
    )

    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Store file (default: STORE_PATH or data/embeddings.json)",
    )

    parser.add_argument(
        "--build",
        type=Path,
        default=None,
        metavar="PDF",
        help="Build the store from this PDF if it does not exist yet",
    )

    parser.add_argument(
        "--sources",
        action="store_true",
        help="Show the retrieved chunks with their similarity",
    )

    args = parser.parse_args()

    try:
        settings = load_settings(top_k=args.top_k, store_path=args.store)
    except ValueError as e:
        print(f"\n❌ Invalid configuration: {e}\n")
        sys.exit(1)

    configure_logging(settings.log_level)

    client = OllamaClient(settings)
    pipeline = RAGPipeline(
        settings,
        embed_fn=client.embed,
        generate_fn=client.generate,
        extract_fn=extract_text,
    )

    try:
        if args.build is not None:
            if settings.store_path.exists():
                print("\n✅ Embeddings already exist, skipping creation")
            else:
                print(f"\n🚀 First time setup - creating embeddings from {args.build}...")
                pipeline.build_from_pdf(args.build)

        if not args.question:
            interactive(pipeline, settings.top_k, args.sources)
            return

        question = " ".join(args.question)
        print(f"\n🤔 Question: {question}")
        result = pipeline.ask(question, k=settings.top_k)
        print_result(result, args.sources)

        if not result.success:
            sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except PdfQAError as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("ask_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
