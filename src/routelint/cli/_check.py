"""``routelint check`` — report route template problems.

Files are analyzed concurrently in worker threads. Exits with code 1 if
any diagnostic is reported.
"""

import argparse
import sys
from pathlib import Path

import anyio

from routelint.analyzer import AnalysisResult, analyze_paths_async
from routelint.cli._common import configure


def render(result: AnalysisResult, fmt: str, *, color: bool | None = None) -> str:
    match fmt:
        case "json":
            from routelint.report.data import to_json

            return to_json(result) + "\n"
        case "html":
            from routelint.report.html import render_html

            return render_html(result)
        case _:
            from routelint.report.terminal import format_result

            return format_result(result, color=color)


def run_check(args: argparse.Namespace) -> None:
    """Analyze ``args.paths`` and print the report to stdout."""
    config = configure(args)
    paths = [Path(p) for p in args.paths]
    result = anyio.run(analyze_paths_async, paths, config)
    sys.stdout.write(render(result, args.format, color=args.color))
    if not result.ok:
        raise SystemExit(1)
