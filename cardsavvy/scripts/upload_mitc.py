"""Upload MITC text documents to the card vector index.

Usage:
    python -m cardsavvy.scripts.upload_mitc "MITCs docs" [--pattern "*.txt"] [--no-create-index]

PDFs must be converted to text first (e.g. ``pdftotext card.pdf card.txt``).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cardsavvy.config import settings
from cardsavvy.domain.exceptions import VectorStoreError
from cardsavvy.domain.ingestion import IngestionReport, MitcDocument, MitcIngestor
from cardsavvy.infrastructure.clients.llm import OpenAIClient
from cardsavvy.infrastructure.clients.vector_store import PineconeClient
from cardsavvy.infrastructure.observability.logging import setup_logging


def load_documents(folder: Path, pattern: str) -> List[MitcDocument]:
    """Read every file matching ``pattern`` in ``folder``, sorted by name"""
    if not folder.is_dir():
        raise FileNotFoundError(f"MITC folder not found at: {folder}")
    return [
        MitcDocument(file_name=path.name, content=path.read_text(encoding="utf-8", errors="replace"))
        for path in sorted(folder.glob(pattern))
        if path.is_file()
    ]


async def run(folder: Path, pattern: str, create_index: bool) -> IngestionReport:
    vector_store = PineconeClient()
    if create_index and await vector_store.ensure_index(settings.embedding_dimension):
        logging.info("Created vector index", extra={"index": vector_store.index_name})

    documents = load_documents(folder, pattern)
    if not documents:
        logging.warning("No MITC documents found", extra={"folder": str(folder), "pattern": pattern})
        return IngestionReport()

    ingestor = MitcIngestor(OpenAIClient(), vector_store)
    report = await ingestor.ingest(documents)

    try:
        stats = await vector_store.describe_index_stats()
        logging.info("Index stats", extra={"total_vector_count": stats.get("totalVectorCount")})
    except VectorStoreError as e:
        logging.warning(f"Could not read index stats: {e}")
    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Index MITC documents for card recommendations")
    parser.add_argument("folder", type=Path, help="directory containing extracted MITC text files")
    parser.add_argument("--pattern", default="*.txt", help="glob for document files (default: *.txt)")
    parser.add_argument("--no-create-index", action="store_true", help="fail instead of creating a missing index")
    args = parser.parse_args(argv)

    setup_logging(settings.log_level)
    try:
        report = asyncio.run(run(args.folder, args.pattern, not args.no_create_index))
    except (FileNotFoundError, VectorStoreError) as e:
        logging.error(str(e))
        return 1

    logging.info(
        "MITC upload finished",
        extra={"uploaded": len(report.uploaded), "skipped": len(report.skipped)},
    )
    return 0 if not report.skipped else 2


if __name__ == "__main__":
    sys.exit(main())
