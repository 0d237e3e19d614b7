"""Route templates — the embedded route-pattern language.

Templates are parsed into an immutable ``RouteTree`` whose spans point
back into the source the template came from.
"""

from routelint.pattern.nodes import (
    EmbeddedDiagnostic,
    LiteralNode,
    ReplacementNode,
    RouteParameter,
    RouteParameterMap,
    RouteTree,
    SegmentNode,
)
from routelint.pattern.parser import RoutePatternParser, parse, parse_template

__all__ = [
    "EmbeddedDiagnostic",
    "LiteralNode",
    "ReplacementNode",
    "RouteParameter",
    "RouteParameterMap",
    "RoutePatternParser",
    "RouteTree",
    "SegmentNode",
    "parse",
    "parse_template",
]
