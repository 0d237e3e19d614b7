"""Source text positions.

All spans in routelint are code-point offsets into the original source
text. ``SourceText`` converts between those offsets and the
line/column positions that ``ast`` and humans use.
"""

from __future__ import annotations

import bisect
import io
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class TextSpan:
    """A half-open range ``[start, start + length)`` of source text."""

    start: int
    length: int = 0

    @property
    def end(self) -> int:
        return self.start + self.length

    @classmethod
    def from_bounds(cls, start: int, end: int) -> TextSpan:
        return cls(start, end - start)

    def contains(self, other: TextSpan) -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: TextSpan) -> bool:
        return self.start < other.end and other.start < self.end

    def union(self, other: TextSpan) -> TextSpan:
        return TextSpan.from_bounds(min(self.start, other.start), max(self.end, other.end))


class SourceText:
    """Immutable source text with a line-start table.

    ``ast`` reports columns as UTF-8 byte offsets; ``offset_of`` turns
    them into code-point offsets so spans line up with ``str`` slicing.
    """

    __slots__ = ("_line_starts", "_lines", "path", "text")

    def __init__(self, text: str, path: str = "<string>") -> None:
        self.text = text
        self.path = path
        # Only \n, \r\n and \r end a line, as in the tokenizer.
        self._lines = io.StringIO(text, newline="").readlines()
        starts = [0]
        for line in self._lines:
            starts.append(starts[-1] + len(line))
        self._line_starts = starts

    def __len__(self) -> int:
        return len(self.text)

    def __getitem__(self, span: TextSpan) -> str:
        return self.text[span.start : span.end]

    def line(self, lineno: int) -> str:
        """Return line *lineno* (1-based) without its line ending."""
        if 1 <= lineno <= len(self._lines):
            return self._lines[lineno - 1].rstrip("\r\n")
        return ""

    def offset_of(self, lineno: int, byte_col: int) -> int:
        """Absolute offset of an ``ast`` position (1-based line, UTF-8 column)."""
        if lineno > len(self._lines):
            return len(self.text)
        raw = self._lines[lineno - 1].encode("utf-8")
        col = len(raw[:byte_col].decode("utf-8", errors="replace"))
        return self._line_starts[lineno - 1] + col

    def node_span(self, node: object) -> TextSpan:
        """Span of an ``ast`` node that carries full position information."""
        start = self.offset_of(node.lineno, node.col_offset)  # type: ignore[attr-defined]
        end = self.offset_of(node.end_lineno, node.end_col_offset)  # type: ignore[attr-defined]
        return TextSpan.from_bounds(start, end)

    def position(self, offset: int) -> tuple[int, int]:
        """Return the (1-based line, 1-based column) of *offset*."""
        index = bisect.bisect_right(self._line_starts, offset) - 1
        index = max(0, min(index, max(len(self._lines) - 1, 0)))
        return index + 1, offset - self._line_starts[index] + 1
