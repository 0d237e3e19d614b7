"""Rich terminal formatting for ``routelint check``.

Respects TTY detection — no ANSI codes when piped or redirected.

Example output (with color)::

    ── routelint check ──────────────────────────────────────────

      4 routes · 2 files

      ✗  app/views.py:12:21  RL001
         The route parameter name 'id' appears more than one time...
         @app.get("/users/{id}/{ID}")
                             ^^^^

      ▲  app/views.py:20:17  RL002
         Route parameter 'slug' is not used by handler 'show'.

      ✗  1 error · 1 warning · 0 suggestions

    ─────────────────────────────────────────────────────────────

"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from routelint.diagnostics import Severity
from routelint.report import ReportEntry, iter_entries

if TYPE_CHECKING:
    from routelint.analyzer import AnalysisResult

_W = 65


# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------


def _use_color(stream: object | None = None) -> bool:
    """True if the output stream supports ANSI color."""
    s = stream or sys.stdout
    try:
        return s.isatty()  # type: ignore[union-attr]
    except (AttributeError, ValueError):
        return False


class _Palette:
    """ANSI escape sequences — empty strings when color is disabled."""

    __slots__ = ("bold", "cyan", "dim", "green", "red", "reset", "yellow")

    def __init__(self, *, enabled: bool) -> None:
        if enabled:
            self.reset = "\033[0m"
            self.bold = "\033[1m"
            self.dim = "\033[2m"
            self.red = "\033[31m"
            self.green = "\033[32m"
            self.yellow = "\033[33m"
            self.cyan = "\033[36m"
        else:
            self.reset = ""
            self.bold = ""
            self.dim = ""
            self.red = ""
            self.green = ""
            self.yellow = ""
            self.cyan = ""


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


# ---------------------------------------------------------------------------
# Entry formatting
# ---------------------------------------------------------------------------


def _severity_icon(severity: Severity, c: _Palette) -> str:
    match severity:
        case Severity.ERROR:
            return f"{c.red}{c.bold}\u2717{c.reset}"   # ✗
        case Severity.WARNING:
            return f"{c.yellow}\u25b2{c.reset}"         # ▲
        case Severity.INFO:
            return f"{c.cyan}\u00b7{c.reset}"           # ·


def _format_entry(entry: ReportEntry, c: _Palette) -> list[str]:
    icon = _severity_icon(entry.severity, c)
    location = f"{entry.path}:{entry.line}:{entry.column}"
    lines = [
        f"  {icon}  {c.cyan}{location}{c.reset}  {c.dim}{entry.kind.code}{c.reset}",
        f"     {c.bold}{entry.message}{c.reset}",
    ]
    if entry.source_line.strip():
        source = entry.source_line.rstrip()
        lines.append(f"     {c.dim}{source}{c.reset}")
        caret = " " * (entry.column - 1) + "^" * entry.width
        lines.append(f"     {c.red}{caret}{c.reset}")
    for line, column in entry.related:
        lines.append(f"     {c.dim}see {entry.path}:{line}:{column}{c.reset}")
    return lines


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_result(result: AnalysisResult, *, color: bool | None = None) -> str:
    """Format an ``AnalysisResult`` for terminal display.

    Args:
        result: The analysis result to format.
        color: Force color on/off.  ``None`` auto-detects from stdout.

    Returns:
        Multi-line string ready for ``sys.stdout.write()``.
    """
    use = color if color is not None else _use_color()
    c = _Palette(enabled=use)

    lines: list[str] = []
    rule = f"{c.dim}─{c.reset}" * _W

    # ── Header ──────────────────────────────────────────────
    title_text = "routelint check"
    pad = _W - len(title_text) - 4
    lines.append(
        f"  {c.dim}──{c.reset} {c.bold}{title_text}{c.reset} "
        f"{c.dim}{'─' * max(pad, 1)}{c.reset}"
    )
    lines.append("")

    # ── Stats ───────────────────────────────────────────────
    sep = f" {c.dim}·{c.reset} "
    stats = [
        f"{c.bold}{result.routes_checked}{c.reset} {c.dim}routes{c.reset}",
        f"{c.bold}{len(result.files)}{c.reset} {c.dim}files{c.reset}",
    ]
    lines.append(f"  {sep.join(stats)}")
    lines.append("")

    # ── Unreadable files ────────────────────────────────────
    for failed in result.failed:
        lines.append(f"  {c.yellow}!{c.reset}  {c.cyan}{failed.path}{c.reset}  {failed.error}")
    if result.failed:
        lines.append("")

    # ── Diagnostics, in source order ────────────────────────
    counts = dict.fromkeys(Severity, 0)
    for entry in iter_entries(result):
        counts[entry.severity] += 1
        lines.extend(_format_entry(entry, c))
        lines.append("")

    # ── Summary line ────────────────────────────────────────
    errors = counts[Severity.ERROR]
    warnings = counts[Severity.WARNING]
    suggestions = counts[Severity.INFO]
    if not any(counts.values()):
        lines.append(f"  {c.green}{c.bold}✓{c.reset}  {c.green}All clear{c.reset}")
    else:
        icon = f"{c.red}{c.bold}✗{c.reset}" if errors else f"{c.yellow}▲{c.reset}"
        lines.append(
            f"  {icon}  {c.red if errors else ''}{_plural(errors, 'error')}{c.reset}"
            f"{sep}{c.yellow}{_plural(warnings, 'warning')}{c.reset}"
            f"{sep}{c.cyan}{_plural(suggestions, 'suggestion')}{c.reset}"
        )

    # ── Footer rule ─────────────────────────────────────────
    lines.append("")
    lines.append(f"  {rule}")
    lines.append("")

    return "\n".join(lines)
