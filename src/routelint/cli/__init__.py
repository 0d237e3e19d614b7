"""routelint CLI — check route templates, apply fixes, inspect a template.

Entry point registered as ``routelint`` in ``pyproject.toml``::

    [project.scripts]
    routelint = "routelint.cli:main"
"""

import argparse
import sys


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("paths", nargs="+", help="Files or directories to analyze")
    parser.add_argument(
        "--config",
        default=None,
        help="pyproject.toml to read [tool.routelint] from (default: nearest one)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level (default: from config, else warning)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``routelint`` command."""
    parser = argparse.ArgumentParser(
        prog="routelint",
        description="routelint — static analysis for route templates.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- routelint check --------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Report route template problems")
    _add_common(check_parser)
    check_parser.add_argument(
        "--format",
        choices=["text", "json", "html"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force colored output on or off (default: auto-detect)",
    )

    # -- routelint fix ----------------------------------------------------
    fix_parser = subparsers.add_parser("fix", help="Apply suggested fixes in place")
    _add_common(fix_parser)
    fix_parser.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff instead of writing files",
    )

    # -- routelint parse --------------------------------------------------
    parse_parser = subparsers.add_parser("parse", help="Parse one template and show its structure")
    parse_parser.add_argument("template", help="Route template text, e.g. '/users/{id:int}'")
    parse_parser.add_argument(
        "--attribute",
        action="store_true",
        help="Parse as a decorator route ([controller] tokens and {{ }} escapes allowed)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "check":
        from routelint.cli._check import run_check

        run_check(args)
    elif args.command == "fix":
        from routelint.cli._fix import run_fix

        run_fix(args)
    elif args.command == "parse":
        from routelint.cli._parse import run_parse

        run_parse(args)
