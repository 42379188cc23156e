"""CLI for trying selectors against a saved CUP tree: python -m cup_pages"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from cup_pages.format import format_matches
from cup_pages.selector import build_selector, find_elements
from cup_pages.sources import load_tree


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="cup-pages: evaluate a page object selector against a saved CUP tree"
    )
    parser.add_argument("selector", help="Selector to evaluate (e.g. 'table row:eq(1) cell')")
    parser.add_argument(
        "--tree",
        type=str,
        default=os.environ.get("CUP_PAGES_TREE"),
        help="CUP JSON envelope or node list (default: $CUP_PAGES_TREE)",
    )
    parser.add_argument("--scope", type=str, default=None, help="Scope to nest the selector in")
    parser.add_argument(
        "--reset-scope", action="store_true", help="Use --scope alone, ignoring any parent scope"
    )
    parser.add_argument("--at", type=int, default=None, help="Zero-based index into the matches")
    parser.add_argument("--contains", type=str, default=None, help="Text the match must contain")
    parser.add_argument("--count", action="store_true", help="Print only the match count")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.tree:
        parser.error("no tree given; pass --tree or set CUP_PAGES_TREE")

    filters = {
        "scope": args.scope,
        "reset_scope": args.reset_scope,
        "at": args.at,
        "contains": args.contains,
    }
    selector = build_selector(None, args.selector, filters)

    try:
        source = load_tree(args.tree)
        matches = find_elements(source.get_tree(), selector)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.count:
        print(len(matches))
        return 0

    print(f"# {selector}")
    print(f"# {len(matches)} match{'es' if len(matches) != 1 else ''}")
    if matches:
        print(format_matches(matches))
    return 0


if __name__ == "__main__":
    sys.exit(main())
