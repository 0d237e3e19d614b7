"""routelint exception hierarchy.

Shared across the parser, the analyzer, configuration loading and the CLI
so every module raises and catches the same types.
"""

from dataclasses import dataclass


class RouteLintError(Exception):
    """Base for all routelint-specific errors."""


class ConfigurationError(RouteLintError):
    """Raised when ``[tool.routelint]`` configuration is invalid.

    Reported by the CLI with exit status 2.
    """


class AnalysisCancelled(RouteLintError):  # noqa: N818
    """The caller's cancellation signal was set between two route literals."""


@dataclass(frozen=True, slots=True)
class LiteralDecodeError(RouteLintError):
    """A string literal could not be decoded into virtual characters.

    Internal to the mapper: ``try_convert_to_virtual_chars`` catches it and
    returns ``None`` so the token is skipped.
    """

    reason: str
    offset: int = -1

    def __str__(self) -> str:
        if self.offset >= 0:
            return f"{self.reason} (at offset {self.offset})"
        return self.reason
