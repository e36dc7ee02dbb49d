#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Book Studio CLI

Usage:
    bookstudio metrics chapter1.html chapter2.txt
    bookstudio readiness <document_id> --tag fantasy --consent
    bookstudio serve --port 8000
    bookstudio config
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from config.logging_config import set_console_level
from config.settings import settings
from .authoring.chapter_store import ChapterStore
from .errors import BookStudioError
from .pagination import compute_metrics, reading_minutes
from .persistence.client import PersistenceClient
from .publishing.readiness import PublicationReadiness


def cmd_metrics(args):
    """Print word and page counts per file and in total"""
    total_words = 0
    total_pages = 0

    print(f"{'File':<40} {'Words':>10} {'Pages':>8}")
    print("-" * 60)
    for name in args.files:
        path = Path(name)
        if not path.exists():
            print(f"❌ File not found: {path}")
            return 1
        metrics = compute_metrics(path.read_text(encoding="utf-8"))
        total_words += metrics.word_count
        total_pages += metrics.page_count
        print(f"{path.name:<40} {metrics.word_count:>10} {metrics.page_count:>8}")

    print("-" * 60)
    print(f"{'Total':<40} {total_words:>10} {total_pages:>8}")
    print(f"Estimated reading time: {reading_minutes(total_words)} min")
    return 0


async def _readiness(args) -> int:
    async with PersistenceClient(base_url=args.base_url, token=args.token) as client:
        store = ChapterStore(client, args.document_id)
        await store.load()

        slots = None
        try:
            slots = (await client.get_publish_slots() or {}).get("remaining")
        except BookStudioError as e:
            print(f"⚠️  Publish slots unavailable: {e}")

        readiness = PublicationReadiness(None, store.chapters, args.tag or [], args.consent, slots)
        verdict = readiness.verdict()

        print(f"\nDocument {args.document_id}: {len(store)} chapters, {readiness.page_progress()}")
        for check in readiness.checklist():
            mark = "✅" if check.passed else "❌"
            detail = f" ({check.detail})" if check.detail else ""
            print(f"  {mark} {check.label}{detail}")

        if verdict.can_submit:
            print("\nReady to publish.")
            return 0
        print(f"\nNot ready: {verdict.reason}")
        return 2


def cmd_readiness(args):
    """Load a document's chapters and print the publish checklist"""
    try:
        return asyncio.run(_readiness(args))
    except BookStudioError as e:
        print(f"❌ {e}")
        return 1


def cmd_serve(args):
    """Run the reference persistence service"""
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_config(args):
    settings.print_config()
    return 0


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Book Studio - authoring, publishing and reading tools",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Metrics command
    metrics_parser = subparsers.add_parser('metrics', help='Word and page counts for text files')
    metrics_parser.add_argument('files', nargs='+', help='Chapter files (plain text or HTML)')

    # Readiness command
    readiness_parser = subparsers.add_parser('readiness', help='Check whether a document can be published')
    readiness_parser.add_argument('document_id', help='Document ID')
    readiness_parser.add_argument('--tag', action='append', help='Selected tag id (repeatable)')
    readiness_parser.add_argument('--consent', action='store_true', help='Publishing terms accepted')
    readiness_parser.add_argument('--base-url', default=None, help='Persistence service URL')
    readiness_parser.add_argument('--token', default=None, help='Bearer token')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Run the reference persistence service')
    serve_parser.add_argument('--host', default=settings.server_host, help='Bind address')
    serve_parser.add_argument('--port', type=int, default=settings.server_port, help='Port')
    serve_parser.add_argument('--reload', action='store_true', help='Auto-reload on code changes')

    # Config command
    subparsers.add_parser('config', help='Show the effective configuration')

    args = parser.parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        'metrics': cmd_metrics,
        'readiness': cmd_readiness,
        'serve': cmd_serve,
        'config': cmd_config,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
