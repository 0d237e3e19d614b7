"""Diagnostics reported to the host.

``Diagnostic.properties`` is the interoperability contract with code-fix
tooling: the key names and the raw joined policy string must not change.
Internally the values travel as a ``RouteParameterProperties`` record.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from routelint.text import TextSpan

ROUTE_PARAMETER_NAME = "RouteParameterName"
ROUTE_PARAMETER_POLICY = "RouteParameterPolicy"
ROUTE_PARAMETER_IS_OPTIONAL = "RouteParameterIsOptional"


class Severity(Enum):
    """How loudly a diagnostic is reported."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticKind(Enum):
    """What a diagnostic is about. Values double as CLI/config names."""

    ISSUE = "issue"
    UNUSED_PARAMETER = "unused-parameter"
    ADD_CONSTRAINT = "add-constraint"

    @property
    def code(self) -> str:
        return _CODES[self]

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def severity(self) -> Severity:
        return _SEVERITIES[self]


_CODES = {
    DiagnosticKind.ISSUE: "RL001",
    DiagnosticKind.UNUSED_PARAMETER: "RL002",
    DiagnosticKind.ADD_CONSTRAINT: "RL003",
}

_TITLES = {
    DiagnosticKind.ISSUE: "Route issue",
    DiagnosticKind.UNUSED_PARAMETER: "Unused route parameter",
    DiagnosticKind.ADD_CONSTRAINT: "Route parameter constraint",
}

_SEVERITIES = {
    DiagnosticKind.ISSUE: Severity.ERROR,
    DiagnosticKind.UNUSED_PARAMETER: Severity.WARNING,
    DiagnosticKind.ADD_CONSTRAINT: Severity.INFO,
}


@dataclass(frozen=True, slots=True)
class RouteParameterProperties:
    """Structured data attached to cross-reference diagnostics.

    ``is_optional`` is ``None`` for add-constraint diagnostics, which do
    not carry the key.
    """

    name: str
    policy: str
    is_optional: bool | None = None

    def to_dict(self) -> dict[str, str]:
        properties = {
            ROUTE_PARAMETER_NAME: self.name,
            ROUTE_PARAMETER_POLICY: self.policy,
        }
        if self.is_optional is not None:
            properties[ROUTE_PARAMETER_IS_OPTIONAL] = str(self.is_optional)
        return properties

    @classmethod
    def from_dict(cls, properties: dict[str, str]) -> RouteParameterProperties:
        optional = properties.get(ROUTE_PARAMETER_IS_OPTIONAL)
        return cls(
            name=properties[ROUTE_PARAMETER_NAME],
            policy=properties.get(ROUTE_PARAMETER_POLICY, ""),
            is_optional=None if optional is None else optional == "True",
        )


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding, anchored at a span of the original source."""

    kind: DiagnosticKind
    span: TextSpan
    message: str
    additional_spans: tuple[TextSpan, ...] = ()
    route_parameter: RouteParameterProperties | None = None

    @property
    def properties(self) -> dict[str, str]:
        if self.route_parameter is None:
            return {}
        return self.route_parameter.to_dict()
