#!/usr/bin/env python3
"""Command-line interface for domquery."""

from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import NoReturn

from . import DomQuery, css_to_xpath
from .errors import SelectorError


def _get_version() -> str:
    try:
        return version("domquery")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="domquery",
        description="Compile CSS selectors to XPath and query HTML or XML documents with them.",
        epilog=(
            "Examples:\n"
            "  domquery --xpath 'div > a:first'\n"
            "  domquery page.html --selector 'ul li:even' --format text\n"
            "  curl -s https://example.com | domquery - --selector 'a[href^=\"https\"]'\n"
            "\n"
            "If you don't have the 'domquery' command available, use:\n"
            "  python -m domquery ...\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "path",
        nargs="?",
        help="HTML or XML file to query, or '-' to read from stdin",
    )
    parser.add_argument(
        "--selector",
        help="CSS selector for choosing nodes (defaults to the document root)",
    )
    parser.add_argument(
        "--xpath",
        metavar="SELECTOR",
        help="Print the XPath expression compiled from SELECTOR and exit",
    )
    parser.add_argument(
        "--format",
        choices=["html", "text"],
        default="html",
        help="Output format (default: html)",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Only output the first matching node",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log compiled selectors and evaluated expressions to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"domquery {_get_version()}",
    )

    args = parser.parse_args(argv)

    if not args.path and args.xpath is None:
        parser.print_help(sys.stderr)
        raise SystemExit(1)

    return args


def _read_markup(path: str) -> str:
    if path == "-":
        return sys.stdin.read()

    return Path(path).read_text()


def main(argv: list[str] | None = None) -> NoReturn | None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        if args.xpath is not None:
            sys.stdout.write(css_to_xpath(args.xpath))
            sys.stdout.write("\n")
            return None

        doc = DomQuery(_read_markup(args.path))
        nodes = doc.find(args.selector) if args.selector else doc
    except SelectorError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2) from e

    if not nodes.length:
        raise SystemExit(1)

    if args.first:
        nodes = nodes.first()

    if args.format == "html":
        outputs = [node.outer_html() for node in nodes]
    else:
        outputs = [node.text().strip() for node in nodes]
    sys.stdout.write("\n".join(outputs))
    sys.stdout.write("\n")
    return None


if __name__ == "__main__":
    main()
