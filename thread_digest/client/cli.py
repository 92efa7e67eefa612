#!/usr/bin/env python3
"""
Command-line client for the thread digest API.

Examples:
  thread-digest summarize --team T0123ABCD9 --channel C0123ABCD9 --ts 1700000000.000100
  thread-digest summarize --team T0123ABCD9 --channel C0123ABCD9 --ts 1700000000.000100 \\
      --lang english --cache-file ~/.thread-digest.json
"""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

from thread_digest.client.summary_client import DEFAULT_ENDPOINT, CachedSummaryClient, SummaryApiClient, SummaryApiError
from thread_digest.core.exceptions import InvalidKeyComponentError
from thread_digest.core.logging import setup_logging
from thread_digest.infrastructure.cache.local_store import LocalSummaryStore
from thread_digest.slack.formatting import parse_target_language


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thread-digest",
        description="Summarize Slack threads through the thread digest API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize = subparsers.add_parser("summarize", help="Summarize (or translate) one thread")
    summarize.add_argument("--team", required=True, help="Slack team ID (T...)")
    summarize.add_argument("--channel", required=True, help="Slack channel ID (C...)")
    summarize.add_argument("--ts", required=True, help="Thread parent timestamp")
    summarize.add_argument(
        "--lang",
        default="ja",
        help="Target language code or English name (default: ja)",
    )
    summarize.add_argument(
        "--endpoint",
        default=DEFAULT_ENDPOINT,
        help=f"API base URL (default: {DEFAULT_ENDPOINT})",
    )
    summarize.add_argument("--cache-file", default=None, help="JSON file backing the local result cache")
    return parser


async def run_summarize(args: argparse.Namespace) -> dict:
    language = parse_target_language(args.lang)
    cache_path = Path(args.cache_file).expanduser() if args.cache_file else None

    async with SummaryApiClient(args.endpoint) as api:
        client = CachedSummaryClient(api, LocalSummaryStore(path=cache_path))
        return await client.summarize(args.team, args.channel, args.ts, language)


def main(argv: list[str] | None = None) -> int:
    """Main entry point with argument parsing."""
    args = build_parser().parse_args(argv)
    setup_logging(log_level="WARNING", log_format="console")

    try:
        result = asyncio.run(run_summarize(args))
    except InvalidKeyComponentError as e:
        print(f"Invalid thread reference: {e.message}", file=sys.stderr)
        return 2
    except SummaryApiError as e:
        code = f" [{e.error_code}]" if e.error_code else ""
        print(f"Summary failed{code}: {e.message}", file=sys.stderr)
        return 1

    sys.stdout.write(orjson.dumps(result, option=orjson.OPT_INDENT_2).decode() + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
