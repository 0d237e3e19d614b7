"""Route template parser.

Turns a ``VirtualCharSequence`` into a ``RouteTree``. The parser never
raises on malformed input: each malformed construct becomes one
``EmbeddedDiagnostic`` and parsing resumes after it, so a single pass
reports everything that is wrong with a template.

Grammar::

    template    := ['~'] ('/' segment)* | segment ('/' segment)*
    segment     := (literal | parameter | replacement)*
    parameter   := '{' ['*' | '**'] name (':' policy)* ['=' default] ['?'] '}'
    replacement := '[' token ']'

``{{``, ``}}``, ``[[``, ``]]`` and ``[token]`` are only valid when token
replacement is allowed (attribute-style routes).
"""

from dataclasses import dataclass

from routelint.pattern.nodes import (
    EmbeddedDiagnostic,
    LiteralNode,
    ReplacementNode,
    RouteParameter,
    RouteParameterMap,
    RouteTree,
    SegmentNode,
    SegmentPart,
)
from routelint.text import TextSpan
from routelint.virtual_chars import VirtualChar, VirtualCharSequence

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

INVALID_TILDE = "The route template cannot start with a '~' character unless followed by a '/'."
CONSECUTIVE_SEPARATORS = (
    "The route template separator character '/' cannot appear consecutively. "
    "It must be separated by either a parameter or a literal value."
)
INCOMPLETE_PARAMETER = (
    "There is an incomplete parameter in the route template. "
    "Check that each '{' character has a matching '}' character."
)
UNESCAPED_BRACE = "In a route parameter, '{' and '}' must be escaped with '{{' and '}}'."
ESCAPED_BRACE_NOT_ALLOWED = (
    "The escape sequence '{0}' is only valid in attribute routes. "
    "Remove the brace or use a parameter."
)
TOKEN_REPLACEMENT_NOT_ALLOWED = (
    "Token replacement syntax '{0}' is only valid in attribute routes."
)
UNCLOSED_REPLACEMENT = "A replacement token is not closed."
EMPTY_REPLACEMENT = "An empty replacement token ('[]') is not allowed."
UNESCAPED_REPLACEMENT_OPEN = (
    "An unescaped '[' token is not allowed inside of a replacement token. Use '[[' to escape."
)
UNESCAPED_REPLACEMENT_CLOSE = "Token delimiter ']' must be escaped as ']]' outside of a replacement token."
INVALID_PARAMETER_NAME = (
    "The route parameter name '{0}' is invalid. Route parameter names must be non-empty "
    "and cannot contain these characters: '{{', '}}', '/'. The '?' character marks a "
    "parameter as optional, and can occur only at the end of the parameter. The '*' "
    "character marks a parameter as catch-all, and can occur only at the start of the parameter."
)
EMPTY_POLICY = "The route parameter '{0}' has an empty constraint."
DUPLICATE_PARAMETER = "The route parameter name '{0}' appears more than one time in the route template."
OPTIONAL_WITH_DEFAULT = "An optional parameter cannot have default value."
OPTIONAL_CATCH_ALL = "A catch-all parameter cannot be marked optional."
CATCH_ALL_NOT_LAST = "A catch-all parameter can only appear as the last segment of the route template."
CATCH_ALL_IN_COMPLEX_SEGMENT = (
    "A path segment that contains more than one section, such as a literal section or "
    "a parameter, cannot contain a catch-all parameter."
)
CONSECUTIVE_PARAMETERS = (
    "A path segment cannot contain two consecutive parameters. "
    "They must be separated by a '/' or by a literal string."
)
OPTIONAL_NOT_LAST = (
    "An optional parameter must be at the end of the segment. In the segment '{0}', "
    "optional parameter '{1}' is followed by '{2}'."
)
OPTIONAL_BAD_PRECEDING = (
    "In the segment '{0}', the optional parameter '{1}' is preceded by an invalid "
    "segment '{2}'. Only a period (.) can precede an optional parameter."
)
QUESTION_MARK_IN_LITERAL = (
    "The literal section '{0}' is invalid. Literal sections cannot contain the '?' character."
)

_INVALID_NAME_CHARS = frozenset("/{}?*")


def parse(chars: VirtualCharSequence | None, *, allow_token_replacement: bool = False) -> RouteTree | None:
    """Parse a template. Returns ``None`` only when *chars* is ``None``.

    ``None`` is what the mapper hands back for a literal it could not
    decode, so callers can chain the two without a check in between.
    """
    if chars is None:
        return None
    return RoutePatternParser(chars, allow_token_replacement=allow_token_replacement).parse()


def parse_template(text: str, *, allow_token_replacement: bool = False) -> RouteTree:
    """Parse a plain template string; spans are offsets into *text*."""
    parser = RoutePatternParser(
        VirtualCharSequence.from_text(text),
        allow_token_replacement=allow_token_replacement,
    )
    return parser.parse()


@dataclass(slots=True)
class _LiteralBuffer:
    """Literal characters collected between non-literal parts."""

    chars: list[VirtualChar]

    def flush(self, parts: list[SegmentPart], diagnostics: list[EmbeddedDiagnostic]) -> None:
        if not self.chars:
            return
        value = "".join(ch.value for ch in self.chars)
        span = TextSpan.from_bounds(self.chars[0].span.start, self.chars[-1].span.end)
        if "?" in value:
            diagnostics.append(EmbeddedDiagnostic(QUESTION_MARK_IN_LITERAL.format(value), span))
        parts.append(LiteralNode(value, span))
        self.chars = []


class RoutePatternParser:
    """Single-use recursive-descent parser over virtual characters."""

    __slots__ = ("_allow", "_chars", "_diagnostics", "_params", "_pos", "_seen")

    def __init__(self, chars: VirtualCharSequence, *, allow_token_replacement: bool = False) -> None:
        self._chars = chars
        self._allow = allow_token_replacement
        self._pos = 0
        self._diagnostics: list[EmbeddedDiagnostic] = []
        self._params: list[RouteParameter] = []
        self._seen: set[str] = set()

    # -- helpers -----------------------------------------------------------

    def _peek(self, ahead: int = 0) -> str:
        index = self._pos + ahead
        if index < len(self._chars):
            return self._chars[index].value
        return ""

    def _span(self, start: int, end: int) -> TextSpan:
        return self._chars.span_of(start, end)

    def _report(self, message: str, start: int, end: int) -> None:
        self._diagnostics.append(EmbeddedDiagnostic(message, self._span(start, end)))

    def _joined(self, start: int, end: int) -> VirtualChar:
        """Collapse an escape pair like ``{{`` into one character."""
        return VirtualChar(self._chars[start].value, self._span(start, end))

    # -- template ----------------------------------------------------------

    def parse(self) -> RouteTree:
        chars = self._chars
        if self._peek() == "~":
            if self._peek(1) != "/":
                self._report(INVALID_TILDE, 0, 1)
            self._pos = 1
        if self._peek() == "/":
            self._pos += 1

        segments: list[SegmentNode] = []
        while self._pos < len(chars):
            start = self._pos
            segment = self._parse_segment()
            if self._pos > start:
                segments.append(segment)
            elif self._peek() == "/":
                self._report(CONSECUTIVE_SEPARATORS, self._pos, self._pos + 1)
            if self._peek() == "/":
                self._pos += 1

        self._check_catch_all_placement(segments)
        diagnostics = sorted(self._diagnostics, key=lambda d: d.span.start)
        return RouteTree(
            text=chars.create_string(),
            segments=tuple(segments),
            route_parameters=RouteParameterMap(self._params),
            diagnostics=tuple(diagnostics),
        )

    # -- segments ----------------------------------------------------------

    def _parse_segment(self) -> SegmentNode:
        start = self._pos
        parts: list[SegmentPart] = []
        literal = _LiteralBuffer([])

        while self._pos < len(self._chars) and self._peek() != "/":
            ch = self._peek()
            if ch in "{}" and self._peek(1) == ch:
                self._escaped_pair(literal)
            elif ch == "{":
                literal.flush(parts, self._diagnostics)
                param = self._parse_parameter()
                if param is not None:
                    parts.append(param)
            elif ch == "}":
                self._report(INCOMPLETE_PARAMETER, self._pos, self._pos + 1)
                self._pos += 1
            elif ch in "[]" and self._peek(1) == ch:
                self._escaped_pair(literal)
            elif ch == "[":
                if not self._allow:
                    self._reject_replacement()
                else:
                    literal.flush(parts, self._diagnostics)
                    node = self._parse_replacement()
                    if node is not None:
                        parts.append(node)
            elif ch == "]":
                if not self._allow:
                    self._report(TOKEN_REPLACEMENT_NOT_ALLOWED.format("]"), self._pos, self._pos + 1)
                    self._pos += 1
                else:
                    self._report(UNESCAPED_REPLACEMENT_CLOSE, self._pos, self._pos + 1)
                    self._pos += 1
            else:
                literal.chars.append(self._chars[self._pos])
                self._pos += 1

        literal.flush(parts, self._diagnostics)
        segment = SegmentNode(tuple(parts), self._span(start, self._pos))
        self._check_segment(segment, self._chars[start : self._pos].create_string())
        return segment

    def _escaped_pair(self, literal: _LiteralBuffer) -> None:
        pair = self._peek() * 2
        if self._allow:
            literal.chars.append(self._joined(self._pos, self._pos + 2))
        elif pair in ("{{", "}}"):
            self._report(ESCAPED_BRACE_NOT_ALLOWED.format(pair), self._pos, self._pos + 2)
        else:
            self._report(TOKEN_REPLACEMENT_NOT_ALLOWED.format(pair), self._pos, self._pos + 2)
        self._pos += 2

    def _reject_replacement(self) -> None:
        start = self._pos
        end = start + 1
        while end < len(self._chars) and self._chars[end].value not in "/]":
            end += 1
        if end < len(self._chars) and self._chars[end].value == "]":
            end += 1
        else:
            end = start + 1
        text = self._chars[start:end].create_string()
        self._report(TOKEN_REPLACEMENT_NOT_ALLOWED.format(text), start, end)
        self._pos = end

    def _check_segment(self, segment: SegmentNode, text: str) -> None:
        parts = segment.parts
        if len(parts) < 2:
            return
        for index, part in enumerate(parts):
            if not isinstance(part, RouteParameter):
                continue
            previous = parts[index - 1] if index else None
            if isinstance(previous, RouteParameter):
                self._diagnostics.append(EmbeddedDiagnostic(CONSECUTIVE_PARAMETERS, part.span))
            if part.is_catch_all:
                self._diagnostics.append(EmbeddedDiagnostic(CATCH_ALL_IN_COMPLEX_SEGMENT, segment.span))
            if part.is_optional:
                if index != len(parts) - 1:
                    following = _part_text(parts[index + 1])
                    message = OPTIONAL_NOT_LAST.format(text, part.name, following)
                    self._diagnostics.append(EmbeddedDiagnostic(message, part.span))
                elif isinstance(previous, LiteralNode) and previous.value != ".":
                    message = OPTIONAL_BAD_PRECEDING.format(text, part.name, previous.value)
                    self._diagnostics.append(EmbeddedDiagnostic(message, part.span))

    def _check_catch_all_placement(self, segments: list[SegmentNode]) -> None:
        for segment in segments[:-1]:
            for param in segment.parameters:
                if param.is_catch_all:
                    self._diagnostics.append(EmbeddedDiagnostic(CATCH_ALL_NOT_LAST, param.span))

    # -- replacement tokens ------------------------------------------------

    def _parse_replacement(self) -> ReplacementNode | None:
        start = self._pos
        self._pos += 1
        token: list[str] = []
        while self._pos < len(self._chars) and self._peek() != "/":
            ch = self._peek()
            if ch in "[]" and self._peek(1) == ch:
                token.append(ch)
                self._pos += 2
                continue
            if ch == "]":
                self._pos += 1
                span = self._span(start, self._pos)
                if not token:
                    self._diagnostics.append(EmbeddedDiagnostic(EMPTY_REPLACEMENT, span))
                    return None
                return ReplacementNode("".join(token), span)
            if ch == "[":
                self._report(UNESCAPED_REPLACEMENT_OPEN, self._pos, self._pos + 1)
            else:
                token.append(ch)
            self._pos += 1

        self._report(UNCLOSED_REPLACEMENT, start, self._pos)
        return None

    # -- parameters --------------------------------------------------------

    def _parse_parameter(self) -> RouteParameter | None:
        start = self._pos
        self._pos += 1
        body: list[VirtualChar] = []
        while True:
            if self._pos >= len(self._chars):
                self._report(INCOMPLETE_PARAMETER, start, self._pos)
                return None
            ch = self._peek()
            if self._allow and ch in "{}" and self._peek(1) == ch:
                body.append(self._joined(self._pos, self._pos + 2))
                self._pos += 2
                continue
            if ch == "}":
                self._pos += 1
                break
            if ch == "{":
                self._report(UNESCAPED_BRACE, self._pos, self._pos + 1)
            else:
                body.append(self._chars[self._pos])
            self._pos += 1

        span = self._span(start, self._pos)
        return self._build_parameter(VirtualCharSequence(body), span)

    def _build_parameter(self, body: VirtualCharSequence, span: TextSpan) -> RouteParameter | None:
        begin = 0
        is_catch_all = spans_segments = False
        if body and body[0].value == "*":
            is_catch_all = True
            begin = 1
            if len(body) > 1 and body[1].value == "*":
                spans_segments = True
                begin = 2

        end = len(body)
        is_optional = False
        if end > begin and body[end - 1].value == "?":
            is_optional = True
            end -= 1

        equals = _find_unnested(body, "=", begin, end)
        default_value = None
        if equals is not None:
            default_value = body[equals + 1 : end].create_string()
            end = equals

        pieces = _split_unnested(body, ":", begin, end)
        name_start, name_end = pieces[0]
        name = body[name_start:name_end].create_string()
        name_span = body.span_of(name_start, name_end)

        if not name or any(ch in _INVALID_NAME_CHARS for ch in name):
            where = name_span if name else span
            self._diagnostics.append(EmbeddedDiagnostic(INVALID_PARAMETER_NAME.format(name), where))
            return None

        policies: list[str] = []
        for piece_start, piece_end in pieces[1:]:
            if piece_start == piece_end:
                colon = body.span_of(piece_start - 1, piece_start)
                self._diagnostics.append(EmbeddedDiagnostic(EMPTY_POLICY.format(name), colon))
                continue
            policies.append(":" + body[piece_start:piece_end].create_string())

        if is_optional and default_value is not None:
            self._diagnostics.append(EmbeddedDiagnostic(OPTIONAL_WITH_DEFAULT, span))
        if is_optional and is_catch_all:
            self._diagnostics.append(EmbeddedDiagnostic(OPTIONAL_CATCH_ALL, span))

        param = RouteParameter(
            name=name,
            span=span,
            name_span=name_span,
            policies=tuple(policies),
            default_value=default_value,
            is_optional=is_optional,
            is_catch_all=is_catch_all,
            spans_segments=spans_segments,
        )
        key = name.casefold()
        if key in self._seen:
            self._diagnostics.append(EmbeddedDiagnostic(DUPLICATE_PARAMETER.format(name), span))
        else:
            self._seen.add(key)
            self._params.append(param)
        return param


def _part_text(part: SegmentPart) -> str:
    match part:
        case LiteralNode(value=value):
            return value
        case RouteParameter(name=name):
            return "{" + name + "}"
        case ReplacementNode(token=token):
            return "[" + token + "]"


def _find_unnested(body: VirtualCharSequence, target: str, start: int, end: int) -> int | None:
    """Index of the first *target* outside parentheses in ``[start, end)``."""
    depth = 0
    for index in range(start, end):
        ch = body[index].value
        if ch == "(":
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
        elif ch == target and not depth:
            return index
    return None


def _split_unnested(body: VirtualCharSequence, sep: str, start: int, end: int) -> list[tuple[int, int]]:
    """Split ``[start, end)`` on *sep* outside parentheses into index ranges."""
    pieces: list[tuple[int, int]] = []
    while True:
        index = _find_unnested(body, sep, start, end)
        if index is None:
            pieces.append((start, end))
            return pieces
        pieces.append((start, index))
        start = index + 1
