"""Route tree node types.

A parsed template is a ``RouteTree``: an ordered tuple of segments, each
holding literal, parameter and replacement-token parts::

    "/users/{id:int}/file.{ext?}"

    SegmentNode(LiteralNode("users"))
    SegmentNode(RouteParameter("id", policies=(":int",)))
    SegmentNode(LiteralNode("file."), RouteParameter("ext", is_optional=True))

All spans point into the original source text.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from routelint.text import TextSpan


@dataclass(frozen=True, slots=True)
class EmbeddedDiagnostic:
    """A structural problem found while parsing a template."""

    message: str
    span: TextSpan


@dataclass(frozen=True, slots=True)
class LiteralNode:
    """Literal path text, with escapes (``{{``, ``[[``) already resolved."""

    value: str
    span: TextSpan


@dataclass(frozen=True, slots=True)
class ReplacementNode:
    """A ``[token]`` replacement, e.g. ``[controller]`` in attribute routes."""

    token: str
    span: TextSpan


@dataclass(frozen=True, slots=True)
class RouteParameter:
    """A ``{...}`` parameter.

    ``policies`` keep their leading ``:`` so joining them reproduces the
    template text (``":int:min(1)"``). ``span`` covers the whole
    ``{...}`` occurrence, ``name_span`` only the name.
    """

    name: str
    span: TextSpan
    name_span: TextSpan
    policies: tuple[str, ...] = ()
    default_value: str | None = None
    is_optional: bool = False
    is_catch_all: bool = False
    spans_segments: bool = False


SegmentPart = LiteralNode | RouteParameter | ReplacementNode


@dataclass(frozen=True, slots=True)
class SegmentNode:
    """One ``/``-separated path segment."""

    parts: tuple[SegmentPart, ...]
    span: TextSpan

    @property
    def is_simple(self) -> bool:
        return len(self.parts) == 1

    @property
    def parameters(self) -> tuple[RouteParameter, ...]:
        return tuple(p for p in self.parts if isinstance(p, RouteParameter))


class RouteParameterMap(Mapping[str, RouteParameter]):
    """Immutable, case-insensitive mapping of parameter name to parameter.

    Iteration yields the names as written in the template, in template
    order.
    """

    __slots__ = ("_params",)

    def __init__(self, params: Iterable[RouteParameter] = ()) -> None:
        table: dict[str, RouteParameter] = {}
        for param in params:
            table.setdefault(param.name.casefold(), param)
        self._params = table

    def __getitem__(self, key: str) -> RouteParameter:
        return self._params[key.casefold()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._params

    def __iter__(self) -> Iterator[str]:
        return (param.name for param in self._params.values())

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"RouteParameterMap({list(self)!r})"


@dataclass(frozen=True, slots=True)
class RouteTree:
    """Root of a parsed (possibly partially parsed) template."""

    text: str
    segments: tuple[SegmentNode, ...] = ()
    route_parameters: RouteParameterMap = field(default_factory=RouteParameterMap)
    diagnostics: tuple[EmbeddedDiagnostic, ...] = ()

    @property
    def parameters(self) -> tuple[RouteParameter, ...]:
        """Every parameter occurrence in template order, duplicates included."""
        return tuple(p for segment in self.segments for p in segment.parameters)
