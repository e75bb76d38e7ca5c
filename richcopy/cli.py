#!/usr/bin/env python3
"""
richcopy CLI: convert between document JSON and editor markup.

Usage:
    richcopy render doc.json -o doc.html
    richcopy parse page.html -o doc.json
    richcopy validate doc.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

logger = logging.getLogger(__name__)


def _read(path: str) -> str:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No such file: {path}")
    return p.read_text(encoding="utf-8")


def _load_json(path: str) -> dict:
    try:
        data = json.loads(_read(path))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path} must hold a JSON object, got {type(data).__name__}")
    return data


def _write(text: str, output: Optional[str]) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Wrote %d bytes to %s", len(text), output)
    else:
        print(text)


# ── Subcommands ──────────────────────────────────────────────────────

def cmd_render(args: argparse.Namespace) -> int:
    from richcopy.renderer import render
    from richcopy.schema import Document

    try:
        doc = Document.model_validate(_load_json(args.input))
    except ValidationError as e:
        raise ValueError(f"{args.input} is not a valid document ({e.error_count()} errors)") from e
    _write(render(doc), args.output)
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    from richcopy.parser import parse_markup

    doc = parse_markup(_read(args.input))
    _write(doc.to_json(indent=args.indent), args.output)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    from richcopy.validation import validate_document

    report = validate_document(_load_json(args.input))
    for issue in report.issues:
        print(f"{issue.severity.upper():7s} {issue.path or '<root>'}: {issue.message}")
    if report.valid:
        logger.info(f"{args.input}: valid ({len(report.warnings)} warnings)")
        return 0
    logger.error(f"{args.input}: {len(report.errors)} errors")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="richcopy",
        description="Convert between richcopy document JSON and editor markup",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_render = sub.add_parser("render", help="Render document JSON to markup")
    p_render.add_argument("input", help="Path to the document JSON")
    p_render.add_argument("-o", "--output", default=None, help="Output HTML path (default: stdout)")
    p_render.set_defaults(func=cmd_render)

    p_parse = sub.add_parser("parse", help="Parse editor markup into document JSON")
    p_parse.add_argument("input", help="Path to the HTML fragment")
    p_parse.add_argument("-o", "--output", default=None, help="Output JSON path (default: stdout)")
    p_parse.add_argument("--indent", type=int, default=2, help="JSON indent level (default: 2)")
    p_parse.set_defaults(func=cmd_parse)

    p_validate = sub.add_parser("validate", help="Check document JSON against the schema")
    p_validate.add_argument("input", help="Path to the document JSON")
    p_validate.set_defaults(func=cmd_validate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)

    from richcopy.config import get_settings

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return args.func(args)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
