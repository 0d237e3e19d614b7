"""Reporters — turn an ``AnalysisResult`` into terminal, JSON or HTML output.

All reporters work from ``ReportEntry`` rows, which resolve diagnostic
spans to 1-based line/column positions.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from routelint.analyzer import AnalysisResult, FileResult
from routelint.diagnostics import Diagnostic, DiagnosticKind, Severity


@dataclass(frozen=True, slots=True)
class ReportEntry:
    """A diagnostic resolved against its file."""

    path: str
    line: int
    column: int
    diagnostic: Diagnostic
    source_line: str = ""
    width: int = 1
    related: tuple[tuple[int, int], ...] = field(default_factory=tuple)

    @property
    def kind(self) -> DiagnosticKind:
        return self.diagnostic.kind

    @property
    def severity(self) -> Severity:
        return self.diagnostic.kind.severity

    @property
    def message(self) -> str:
        return self.diagnostic.message


def file_entries(file: FileResult) -> Iterator[ReportEntry]:
    source = file.source
    for diagnostic in file.diagnostics:
        line, column = source.position(diagnostic.span.start)
        text = source.line(line)
        # Underline to the end of the span or the end of the line.
        width = max(1, min(diagnostic.span.length, len(text) - column + 1))
        related = tuple(source.position(span.start) for span in diagnostic.additional_spans)
        yield ReportEntry(file.path, line, column, diagnostic, text, width, related)


def iter_entries(result: AnalysisResult) -> Iterator[ReportEntry]:
    """Entries for every diagnostic, file by file, in source order."""
    for file in result.files:
        yield from file_entries(file)


__all__ = ["ReportEntry", "file_entries", "iter_entries"]
