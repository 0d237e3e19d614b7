"""Lint configuration.

LintConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``load_config`` reads the ``[tool.routelint]``
table of the nearest ``pyproject.toml``.
"""

import dataclasses
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from routelint.errors import ConfigurationError

logger = logging.getLogger("routelint.config")

_KINDS = frozenset({"issue", "unused-parameter", "add-constraint"})
_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


@dataclass(frozen=True, slots=True)
class LintConfig:
    """Lint configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = LintConfig(route_decorators=frozenset({"route"}), max_workers=4)
    """

    # Discovery: call names whose string argument is a route template
    route_decorators: frozenset[str] = frozenset({
        "route", "get", "post", "put", "patch", "delete", "head", "options",
    })
    map_calls: frozenset[str] = frozenset({
        "add_route", "add_api_route", "add_url_rule",
        "map", "map_get", "map_post", "map_put", "map_patch", "map_delete",
    })
    route_keywords: frozenset[str] = frozenset({"path", "rule", "pattern", "template"})
    handler_keywords: frozenset[str] = frozenset({"handler", "endpoint", "view_func"})
    marker_comment: str = "lang=route"

    # Files
    include: tuple[str, ...] = ("**/*.py",)
    exclude: tuple[str, ...] = (
        ".venv/**", "venv/**", ".git/**", "**/__pycache__/**",
        "build/**", "dist/**", "node_modules/**",
    )

    # Reporting
    disabled: frozenset[str] = frozenset()  # Diagnostic kinds to drop
    log_level: str = "warning"

    # Concurrency (async analysis only)
    max_workers: int = 8

    def enabled(self, kind: str) -> bool:
        return kind not in self.disabled


def _as_names(key: str, value: Any) -> frozenset[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"[tool.routelint] {key!r} must be a list of strings, got {value!r}"
        raise ConfigurationError(msg)
    return frozenset(value)


def _as_patterns(key: str, value: Any) -> tuple[str, ...]:
    return tuple(sorted(_as_names(key, value)))


def config_from_mapping(table: dict[str, Any]) -> LintConfig:
    """Build a ``LintConfig`` from a ``[tool.routelint]`` table.

    Keys may be written in ``kebab-case`` or ``snake_case``. Unknown keys
    and wrongly typed values raise ``ConfigurationError``.
    """
    known = {f.name for f in dataclasses.fields(LintConfig)}
    overrides: dict[str, Any] = {}
    for raw_key, value in table.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            msg = f"Unknown [tool.routelint] option {raw_key!r}"
            raise ConfigurationError(msg)

        match key:
            case "include" | "exclude":
                overrides[key] = _as_patterns(raw_key, value)
            case "disabled":
                names = _as_names(raw_key, value)
                unknown = names - _KINDS
                if unknown:
                    msg = f"Unknown diagnostic kind(s) in 'disabled': {', '.join(sorted(unknown))}"
                    raise ConfigurationError(msg)
                overrides[key] = names
            case "marker_comment":
                if not isinstance(value, str):
                    msg = f"[tool.routelint] {raw_key!r} must be a string"
                    raise ConfigurationError(msg)
                overrides[key] = value
            case "log_level":
                if not isinstance(value, str) or value.lower() not in _LOG_LEVELS:
                    msg = f"[tool.routelint] 'log-level' must be one of {sorted(_LOG_LEVELS)}"
                    raise ConfigurationError(msg)
                overrides[key] = value.lower()
            case "max_workers":
                if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                    msg = "[tool.routelint] 'max-workers' must be a positive integer"
                    raise ConfigurationError(msg)
                overrides[key] = value
            case _:
                overrides[key] = _as_names(raw_key, value)

    return LintConfig(**overrides)


def find_pyproject(start: Path) -> Path | None:
    """Nearest ``pyproject.toml`` at or above *start*."""
    start = start.resolve()
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        path = candidate / "pyproject.toml"
        if path.is_file():
            return path
    return None


def load_config(start: Path | None = None, *, path: Path | None = None) -> LintConfig:
    """Load configuration from *path*, or from the nearest pyproject above *start*.

    Returns the defaults when no file or no ``[tool.routelint]`` table exists.
    """
    if path is None:
        path = find_pyproject(start or Path.cwd())
        if path is None:
            return LintConfig()

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as exc:
        msg = f"Cannot read configuration file {path}: {exc}"
        raise ConfigurationError(msg) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigurationError(msg) from exc

    table = data.get("tool", {}).get("routelint")
    if table is None:
        return LintConfig()
    if not isinstance(table, dict):
        msg = f"[tool.routelint] in {path} must be a table"
        raise ConfigurationError(msg)
    logger.debug("Loaded [tool.routelint] from %s", path)
    return config_from_mapping(table)
