"""``routelint fix`` — apply the suggested fixes.

Writes changed files in place, or prints a unified diff with ``--diff``.
"""

import argparse
import difflib
import logging
import sys
import tokenize
from pathlib import Path

from routelint.analyzer import analyze_paths
from routelint.cli._common import configure
from routelint.fixes import apply_fixes

logger = logging.getLogger("routelint.cli")


def _source_encoding(path: Path) -> str:
    with path.open("rb") as fh:
        encoding, _ = tokenize.detect_encoding(fh.readline)
    return encoding


def run_fix(args: argparse.Namespace) -> None:
    config = configure(args)
    result = analyze_paths([Path(p) for p in args.paths], config)

    changed = 0
    for file in result.files:
        if not file.diagnostics:
            continue
        fixed = apply_fixes(file.source, file.diagnostics, config)
        if fixed == file.source.text:
            continue
        changed += 1
        if args.diff:
            sys.stdout.writelines(
                difflib.unified_diff(
                    file.source.text.splitlines(keepends=True),
                    fixed.splitlines(keepends=True),
                    fromfile=f"a/{file.path}",
                    tofile=f"b/{file.path}",
                )
            )
        else:
            path = Path(file.path)
            path.write_text(fixed, encoding=_source_encoding(path))
            logger.info("Fixed %s", file.path)

    noun = "file" if changed == 1 else "files"
    verb = "would change" if args.diff else "changed"
    print(f"{changed} {noun} {verb}", file=sys.stderr)
