#!/usr/bin/env python
"""Build the embedding store from a PDF.

Usage:
    python scripts/build_index.py resume.pdf                  # Build with defaults
    python scripts/build_index.py resume.pdf --chunk-size 500 # Smaller chunks
    python scripts/build_index.py resume.pdf --verbose        # Show detailed progress
"""
import argparse
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdfqa.config import configure_logging, load_settings
from pdfqa.errors import PdfQAError
from pdfqa.llm_client import OllamaClient
from pdfqa.rag.pdf_parser import extract_text
from pdfqa.rag.pipeline import RAGPipeline
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int):
        """Update progress."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% (chunk {current}/{total})",
            end="",
            flush=True,
        )

        if self.verbose:
            print()

    def finish(self, stats):
        """Finish progress reporting."""
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print(f"  Build Complete!")
        print(f"{'=' * 60}\n")
        print(f"  📝 Chunks created:       {stats.chunks_created}")
        print(f"  🧮 Embeddings generated: {stats.embeddings_generated}")
        print(f"  📐 Dimension:            {stats.dimension}")
        print(f"  ⏱️  Time elapsed:         {elapsed_seconds:.1f}s")
        print(f"\n✅ Store ready at: {stats.store_path}\n")


def main():
    """Main entry point for build script."""
    parser = argparse.ArgumentParser(
        description="Build the embedding store from a PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/build_index.py resume.pdf
  python scripts/build_index.py resume.pdf --chunk-size 500
  python scripts/build_index.py resume.pdf --store data/other.json
        """,
    )

    parser.add_argument("pdf", type=Path, help="PDF document to index")

    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Chunk size in characters (default: CHUNK_SIZE or 1000)",
    )

    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Output store file (default: STORE_PATH or data/embeddings.json)",
    )

    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait after each embedding call (default: 0.5)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )

    args = parser.parse_args()

    try:
        settings = load_settings(
            chunk_size=args.chunk_size,
            store_path=args.store,
            embed_delay_seconds=args.delay,
        )
    except ValueError as e:
        print(f"\n❌ Invalid configuration: {e}\n")
        sys.exit(1)

    configure_logging("DEBUG" if args.verbose else settings.log_level)

    progress = ProgressReporter(verbose=args.verbose)

    try:
        print("\n📋 Configuration:")
        print(f"   PDF:              {args.pdf}")
        print(f"   Embedding model:  {settings.embedding_model}")
        print(f"   Chunk size:       {settings.chunk_size} chars")
        print(f"   Store:            {settings.store_path}")

        client = OllamaClient(settings)
        pipeline = RAGPipeline(
            settings,
            embed_fn=client.embed,
            generate_fn=client.generate,
            extract_fn=extract_text,
        )

        progress.start(f"Embedding {args.pdf.name}")

        pipeline.build_from_pdf(args.pdf, progress_callback=progress.update)

        progress.finish(pipeline.last_build_stats)

    except KeyboardInterrupt:
        print("\n\n⚠️  Build cancelled by user. No store was written.\n")
        sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except PdfQAError as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("build_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
