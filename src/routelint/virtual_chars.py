"""Virtual characters — decoded string-literal content with source provenance.

A Python string literal such as ``"/users/\\x7bid}"`` decodes to
``/users/{id}``, but diagnostics must point at the characters the user
actually typed. The mapper decodes a literal token into a sequence of
``VirtualChar``, each carrying the span of source text it came from::

    token   "/a\\x7b"
    chars   '/' (1)  'a' (1)  '{' (4)

Spans are contiguous and cover the literal body exactly. A backslash-newline
continuation decodes to nothing and is folded into the span of the next
decoded character.
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import overload

from routelint.errors import LiteralDecodeError
from routelint.text import TextSpan

logger = logging.getLogger("routelint.virtual_chars")

_SIMPLE_ESCAPES: dict[str, str] = {
    "\\": "\\",
    "'": "'",
    '"': '"',
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}

_OCTAL = frozenset("01234567")
_HEX = frozenset("0123456789abcdefABCDEF")
_PREFIX_CHARS = frozenset("rRuUbBfFtT")


@dataclass(frozen=True, slots=True)
class VirtualChar:
    """One decoded character and the source text that produced it."""

    value: str
    span: TextSpan

    def __str__(self) -> str:
        return self.value


class VirtualCharSequence(Sequence[VirtualChar]):
    """Immutable, source-ordered sequence of ``VirtualChar``.

    Slicing returns another ``VirtualCharSequence`` so the parser can carve
    out sub-ranges without losing provenance.
    """

    __slots__ = ("_chars",)

    def __init__(self, chars: Iterable[VirtualChar] = ()) -> None:
        self._chars: tuple[VirtualChar, ...] = tuple(chars)

    @classmethod
    def from_text(cls, text: str, offset: int = 0) -> VirtualCharSequence:
        """Build a sequence where every character maps to itself.

        Used for templates that do not come from a source literal.
        """
        return cls(VirtualChar(ch, TextSpan(offset + i, 1)) for i, ch in enumerate(text))

    @overload
    def __getitem__(self, index: int) -> VirtualChar: ...
    @overload
    def __getitem__(self, index: slice) -> VirtualCharSequence: ...
    def __getitem__(self, index: int | slice) -> VirtualChar | VirtualCharSequence:
        if isinstance(index, slice):
            return VirtualCharSequence(self._chars[index])
        return self._chars[index]

    def __len__(self) -> int:
        return len(self._chars)

    def __iter__(self) -> Iterator[VirtualChar]:
        return iter(self._chars)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VirtualCharSequence):
            return NotImplemented
        return self._chars == other._chars

    def __hash__(self) -> int:
        return hash(self._chars)

    def __repr__(self) -> str:
        return f"VirtualCharSequence({self.create_string()!r})"

    def create_string(self) -> str:
        return "".join(ch.value for ch in self._chars)

    def span_of(self, start: int, end: int) -> TextSpan:
        """Source span covering characters ``[start, end)``.

        An empty range yields a zero-length span at the boundary.
        """
        if start < end:
            return TextSpan.from_bounds(self._chars[start].span.start, self._chars[end - 1].span.end)
        if start < len(self._chars):
            return TextSpan(self._chars[start].span.start, 0)
        if self._chars:
            return TextSpan(self._chars[-1].span.end, 0)
        return TextSpan(0, 0)

    @property
    def span(self) -> TextSpan:
        return self.span_of(0, len(self._chars))


class LiteralKind(Enum):
    """How the body of a literal is decoded."""

    PLAIN = "plain"
    RAW = "raw"
    DISALLOWED = "disallowed"


def literal_kind(prefix: str) -> LiteralKind:
    """Classify a string prefix such as ``r``, ``Rb`` or ``f``."""
    lowered = prefix.lower()
    if any(ch in lowered for ch in "bft") or len(set(lowered)) != len(lowered):
        return LiteralKind.DISALLOWED
    if "u" in lowered:
        return LiteralKind.PLAIN if lowered == "u" else LiteralKind.DISALLOWED
    if "r" in lowered:
        return LiteralKind.RAW
    return LiteralKind.PLAIN


def try_convert_to_virtual_chars(token_text: str, offset: int = 0) -> VirtualCharSequence | None:
    """Decode a string-literal token, or return ``None`` if it cannot be decoded.

    *token_text* is the full token including prefix and quotes; *offset* is
    its absolute position in the source.
    """
    try:
        return convert_to_virtual_chars(token_text, offset)
    except LiteralDecodeError as exc:
        logger.debug("Skipping undecodable literal %r: %s", token_text[:40], exc)
        return None


def convert_to_virtual_chars(token_text: str, offset: int = 0) -> VirtualCharSequence:
    """Decode a string-literal token. Raises ``LiteralDecodeError`` on failure."""
    i = 0
    while i < len(token_text) and token_text[i] in _PREFIX_CHARS:
        i += 1
    kind = literal_kind(token_text[:i])
    if kind is LiteralKind.DISALLOWED:
        raise LiteralDecodeError(f"unsupported string prefix {token_text[:i]!r}", offset)

    if token_text.startswith(('"""', "'''"), i):
        quote = token_text[i : i + 3]
    elif i < len(token_text) and token_text[i] in "\"'":
        quote = token_text[i]
    else:
        raise LiteralDecodeError("not a string literal", offset + i)

    decoder = _BodyDecoder(token_text, offset, i + len(quote), quote, raw=kind is LiteralKind.RAW)
    return VirtualCharSequence(decoder.decode())


class _BodyDecoder:
    """Walks a literal body, decoding escapes and recording spans."""

    __slots__ = ("_chars", "_offset", "_pending", "_pos", "_quote", "_raw", "_text")

    def __init__(self, text: str, offset: int, start: int, quote: str, *, raw: bool) -> None:
        self._text = text
        self._offset = offset
        self._pos = start
        self._quote = quote
        self._raw = raw
        self._chars: list[VirtualChar] = []
        self._pending: int | None = None

    def decode(self) -> list[VirtualChar]:
        text = self._text
        while True:
            if self._pos >= len(text):
                raise LiteralDecodeError("unterminated string literal", self._offset + self._pos)
            if text.startswith(self._quote, self._pos):
                break
            ch = text[self._pos]
            if ch == "\n" and len(self._quote) == 1:
                raise LiteralDecodeError("newline in single-quoted literal", self._offset + self._pos)
            if ch != "\\":
                self._emit(ch, 1)
            elif self._raw:
                self._raw_escape()
            else:
                self._escape()

        if self._pos + len(self._quote) != len(text):
            raise LiteralDecodeError("unexpected text after closing quote", self._offset + self._pos)
        if self._pending is not None and self._chars:
            last = self._chars[-1]
            end = self._offset + self._pos
            self._chars[-1] = VirtualChar(last.value, TextSpan.from_bounds(last.span.start, end))
        return self._chars

    def _emit(self, value: str, length: int) -> None:
        start = self._offset + self._pos
        if self._pending is not None:
            span = TextSpan.from_bounds(self._pending, start + length)
            self._pending = None
        else:
            span = TextSpan(start, length)
        self._chars.append(VirtualChar(value, span))
        self._pos += length

    def _raw_escape(self) -> None:
        # r"\"" keeps both characters and does not end the literal.
        self._emit("\\", 1)
        if self._pos < len(self._text):
            nxt = self._text[self._pos]
            if nxt == "\n" and len(self._quote) == 1:
                raise LiteralDecodeError("newline in single-quoted literal", self._offset + self._pos)
            self._emit(nxt, 1)

    def _escape(self) -> None:
        text = self._text
        pos = self._pos
        if pos + 1 >= len(text):
            raise LiteralDecodeError("trailing backslash", self._offset + pos)
        nxt = text[pos + 1]

        if nxt == "\n":
            if self._pending is None:
                self._pending = self._offset + pos
            self._pos += 2
            return

        if nxt in _SIMPLE_ESCAPES:
            self._emit(_SIMPLE_ESCAPES[nxt], 2)
            return

        if nxt in _OCTAL:
            end = pos + 1
            while end < len(text) and end < pos + 4 and text[end] in _OCTAL:
                end += 1
            self._emit(chr(int(text[pos + 1 : end], 8)), end - pos)
            return

        if nxt in "xuU":
            width = {"x": 2, "u": 4, "U": 8}[nxt]
            digits = text[pos + 2 : pos + 2 + width]
            if len(digits) != width or any(d not in _HEX for d in digits):
                raise LiteralDecodeError(f"truncated \\{nxt} escape", self._offset + pos)
            code = int(digits, 16)
            if code > 0x10FFFF:
                raise LiteralDecodeError("code point out of range", self._offset + pos)
            self._emit(chr(code), 2 + width)
            return

        if nxt == "N":
            close = text.find("}", pos + 3)
            if not text.startswith("{", pos + 2) or close == -1:
                raise LiteralDecodeError("malformed \\N{...} escape", self._offset + pos)
            name = text[pos + 3 : close]
            try:
                value = unicodedata.lookup(name)
            except KeyError as exc:
                raise LiteralDecodeError(f"unknown character name {name!r}", self._offset + pos) from exc
            self._emit(value, close + 1 - pos)
            return

        # Unrecognized escapes keep the backslash; the next character is
        # decoded on its own.
        self._emit("\\", 1)
