"""Code fixes for cross-reference diagnostics.

Fixes are driven by the diagnostic contract only: the kind, the spans and
the ``RouteParameter*`` property bag. The source is re-read to locate the
route literal and its handler, the way an editor code action would.

- ``ADD_CONSTRAINT``: ``"/users/{id}"`` -> ``"/users/{id:int}"``
- ``UNUSED_PARAMETER``: ``def show():`` -> ``def show(id: int):``

Imports for annotation types (``UUID``, ``Decimal``, ``datetime``) are
not added.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from routelint.config import LintConfig
from routelint.diagnostics import Diagnostic, DiagnosticKind, RouteParameterProperties
from routelint.pattern import RouteParameter, parse
from routelint.policy import TYPE_POLICIES
from routelint.text import SourceText, TextSpan
from routelint.usage import Insertion, RouteLiteral, find_route_literals
from routelint.virtual_chars import try_convert_to_virtual_chars

logger = logging.getLogger("routelint.fixes")

# Annotation written for a new handler parameter, by route policy
_ANNOTATIONS: dict[str, str] = {
    "int": "int",
    "long": "int",
    "bool": "bool",
    "float": "float",
    "double": "float",
    "decimal": "Decimal",
    "datetime": "datetime",
    "guid": "UUID",
}


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``span`` of the source with ``new_text``."""

    span: TextSpan
    new_text: str


class _FixContext:
    """Route literals of one module, looked up by span."""

    __slots__ = ("literals",)

    def __init__(self, source: SourceText, config: LintConfig) -> None:
        module = ast.parse(source.text, filename=source.path)
        self.literals = find_route_literals(module, source, config)

    def literal_at(self, span: TextSpan) -> RouteLiteral | None:
        for literal in self.literals:
            if literal.span.contains(span):
                return literal
        return None

    def parameter_at(self, span: TextSpan) -> RouteParameter | None:
        literal = self.literal_at(span)
        if literal is None:
            return None
        chars = try_convert_to_virtual_chars(literal.token, literal.span.start)
        tree = parse(chars, allow_token_replacement=literal.usage.is_attribute_style)
        if tree is None:
            return None
        for param in tree.parameters:
            if param.span == span:
                return param
        return None


def parameter_text(properties: RouteParameterProperties, *, annotations: bool = True) -> str:
    """Source text for a handler parameter that consumes a route parameter."""
    policies = [p for p in properties.policy.split(":") if p]
    policy = next((p for p in policies if p in TYPE_POLICIES), None)
    annotation = _ANNOTATIONS.get(policy or "", "str")
    optional = bool(properties.is_optional)
    if not annotations:
        return f"{properties.name}=None" if optional else properties.name
    if optional:
        return f"{properties.name}: {annotation} | None = None"
    return f"{properties.name}: {annotation}"


def _constraint_edit(diagnostic: Diagnostic, context: _FixContext) -> TextEdit | None:
    props = diagnostic.route_parameter
    if props is None or not diagnostic.additional_spans:
        return None
    param = context.parameter_at(diagnostic.additional_spans[0])
    if param is None:
        return None
    return TextEdit(TextSpan(param.name_span.end, 0), f":{props.policy}")


def _handler_edit(insertion: Insertion, parameters: list[RouteParameterProperties]) -> TextEdit:
    unique: dict[str, RouteParameterProperties] = {}
    for props in parameters:
        unique.setdefault(props.name.casefold(), props)
    parameters = list(unique.values())
    texts = [parameter_text(p, annotations=insertion.annotations) for p in parameters]
    prefix = ""
    if insertion.after_default and not insertion.keyword_only and not all(p.is_optional for p in parameters):
        prefix = "*, "
    return TextEdit(
        TextSpan(insertion.offset, 0),
        f"{insertion.leading}{prefix}{', '.join(texts)}{insertion.trailing}",
    )


def compute_edits(
    source: SourceText,
    diagnostics: Iterable[Diagnostic],
    config: LintConfig | None = None,
) -> list[TextEdit]:
    """Edits that fix every fixable diagnostic.

    Unused parameters of the same handler are added in one edit.
    """
    context = _FixContext(source, config or LintConfig())
    edits: list[TextEdit] = []
    handlers: dict[int, tuple[Insertion, list[RouteParameterProperties]]] = {}
    for diagnostic in diagnostics:
        match diagnostic.kind:
            case DiagnosticKind.ADD_CONSTRAINT:
                edit = _constraint_edit(diagnostic, context)
                if edit is not None:
                    edits.append(edit)
                    continue
            case DiagnosticKind.UNUSED_PARAMETER:
                literal = context.literal_at(diagnostic.span)
                props = diagnostic.route_parameter
                if literal is not None and literal.usage.handler is not None and props is not None:
                    insertion = literal.usage.handler.insertion
                    handlers.setdefault(insertion.offset, (insertion, []))[1].append(props)
                    continue
            case _:
                continue
        logger.debug("No fix for %s at offset %d", diagnostic.kind.value, diagnostic.span.start)

    edits.extend(_handler_edit(insertion, params) for insertion, params in handlers.values())
    return edits


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """Apply non-overlapping edits; an edit overlapping an applied one is dropped.

    Insertions at the same offset keep their relative order.
    """
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].span.start, item[0]), reverse=True)
    applied: list[TextSpan] = []
    for _, edit in ordered:
        if any(edit.span.overlaps(span) for span in applied):
            logger.debug("Dropping overlapping edit at %d", edit.span.start)
            continue
        text = text[: edit.span.start] + edit.new_text + text[edit.span.end :]
        applied.append(edit.span)
    return text


def apply_fixes(
    source: SourceText,
    diagnostics: Iterable[Diagnostic],
    config: LintConfig | None = None,
) -> str:
    """Return the source text with every fixable diagnostic fixed."""
    return apply_edits(source.text, compute_edits(source, diagnostics, config))
