"""
Parse one conversation log and print it in the canonical shape.

Detects the log's format, prints the canonical conversation JSON (with token
counts) to stdout and summary statistics to stderr. No AI calls are made.

Usage:
    python backend/scripts/parse_log.py sample-logs/responses/1.json
    python backend/scripts/parse_log.py sample-logs/completions/1.json
"""

import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ctxview.config import Settings
from ctxview.enrichment.summary import summarize_conversation
from ctxview.enrichment.token_accounting import count_tokens
from ctxview.enrichment.tokens import TiktokenCounter
from ctxview.importer.parsers.base import FormatError
from ctxview.importer.registry import NoMatchingFormat, default_registry, load_json


def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print("Usage: python backend/scripts/parse_log.py <path-to-json-file>", file=sys.stderr)
        return 1

    path = Path(argv[0])
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 1

    settings = Settings.from_env()
    registry = default_registry()
    try:
        data = load_json(path.read_bytes())
        fmt = registry.detect(data)
        conversation = registry.parse(data)
    except (FormatError, NoMatchingFormat) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    conversation = count_tokens(conversation, TiktokenCounter(settings.tokenizer_model))
    print(json.dumps(conversation.to_json(), indent=2, ensure_ascii=False))

    summary = summarize_conversation(conversation)
    print("\n=== Summary ===", file=sys.stderr)
    print(f"Format: {fmt}", file=sys.stderr)
    print(f"Total messages: {summary.total_messages}", file=sys.stderr)
    print(f"Total tokens: {summary.total_tokens}", file=sys.stderr)

    print("\nMessages by role:", file=sys.stderr)
    for role, count in summary.messages_by_role.items():
        print(f"  {role}: {count} ({summary.tokens_by_role.get(role, 0)} tokens)", file=sys.stderr)

    if summary.part_counts:
        print("\nParts by type:", file=sys.stderr)
        for part_type, count in summary.part_counts.items():
            print(f"  {part_type}: {count}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.WARNING)
    sys.exit(main(sys.argv[1:]))
