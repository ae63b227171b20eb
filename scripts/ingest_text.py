#!/usr/bin/env python3
"""CLI helper that ingests a local text file through the configured stores."""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from lawton.errors import LawtonError
from lawton.ingest.models import ChunkMetadata, IngestRequest
from lawton.services.knowledge import KnowledgeService


def _load_dotenv() -> None:
    project_root = Path(__file__).resolve().parents[1]
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
    else:  # pragma: no cover - fallback path
        load_dotenv()


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def _split_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("file", type=Path, help="UTF-8 text file to ingest")
    parser.add_argument("--path", help="Document identity; defaults to the file path")
    parser.add_argument("--sharepoint-url", required=True)
    parser.add_argument("--title")
    parser.add_argument("--topic")
    parser.add_argument("--cefr")
    parser.add_argument("--skill")
    parser.add_argument("--format")
    parser.add_argument("--difficulty")
    parser.add_argument("--tags", help="Comma separated tags")
    parser.add_argument("--error-patterns", help="Comma separated error patterns")
    return parser


def main(argv: list[str] | None = None) -> int:
    _load_dotenv()
    _configure_logging()
    args = build_parser().parse_args(argv)

    try:
        text = args.file.read_text(encoding="utf-8")
    except OSError as error:
        logging.error("Cannot read %s: %s", args.file, error)
        return 1

    mime_type, _ = mimetypes.guess_type(args.file.name)
    request = IngestRequest(
        sharepoint_url=args.sharepoint_url,
        path=args.path or str(args.file),
        text=text,
        title=args.title or args.file.stem,
        mime_type=mime_type or "text/plain",
        metadata=ChunkMetadata(
            topic=args.topic,
            cefr=args.cefr,
            skill=args.skill,
            format=args.format,
            difficulty=args.difficulty,
            tags=_split_list(args.tags),
            error_patterns=_split_list(args.error_patterns),
        ),
    )

    try:
        result = KnowledgeService().ingest(request)
    except LawtonError as error:
        logging.error("Ingestion failed: %s", error)
        return 1

    logging.info("Stored %d chunks for doc %s", result.chunks_inserted, result.doc_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
