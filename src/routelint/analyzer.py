"""Route template analysis — parse templates and cross-reference handlers.

For every route literal in a module:

1. Decode the literal into virtual characters (skipped if undecodable).
2. Parse the template; every structural problem becomes an ``ISSUE``.
3. If the literal is attached to a handler, compare the template's
   parameters with the handler's:

   - a handler parameter whose type implies a constraint the template
     lacks -> ``ADD_CONSTRAINT`` on the handler parameter;
   - a template parameter no handler parameter consumes ->
     ``UNUSED_PARAMETER`` on the template parameter.

Usage::

    result = analyze_paths([Path("app")], LintConfig())
    for file in result.files:
        for diagnostic in file.diagnostics:
            print(file.path, diagnostic.message)
"""

from __future__ import annotations

import ast
import fnmatch
import logging
import threading
import tokenize
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import anyio
import anyio.to_thread

from routelint.config import LintConfig
from routelint.diagnostics import Diagnostic, DiagnosticKind, RouteParameterProperties
from routelint.errors import AnalysisCancelled
from routelint.pattern import RouteTree, parse
from routelint.policy import WellKnownTypes, has_type_policy, infer_policy
from routelint.text import SourceText
from routelint.usage import Handler, RouteLiteral, find_route_literals
from routelint.virtual_chars import try_convert_to_virtual_chars

logger = logging.getLogger("routelint.analyzer")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileResult:
    """Diagnostics for one source file.

    ``error`` is set when the file could not be read or parsed as Python;
    such a file has no diagnostics.
    """

    source: SourceText
    diagnostics: tuple[Diagnostic, ...] = ()
    routes_checked: int = 0
    error: str | None = None

    @property
    def path(self) -> str:
        return self.source.path


@dataclass(slots=True)
class AnalysisResult:
    """Result of analyzing a set of files."""

    files: list[FileResult] = field(default_factory=list)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def routes_checked(self) -> int:
        return sum(f.routes_checked for f in self.files)

    @property
    def failed(self) -> list[FileResult]:
        return [f for f in self.files if f.error is not None]

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def count(self, kind: DiagnosticKind) -> int:
        return sum(1 for d in self.diagnostics if d.kind is kind)


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------


def cross_reference(
    tree: RouteTree,
    handler: Handler,
    well_known: WellKnownTypes,
) -> list[Diagnostic]:
    """Compare a template's parameters with its handler's parameters.

    Every template parameter ends up either matched by a handler parameter
    or reported as unused, never both.
    """
    diagnostics: list[Diagnostic] = []
    remaining = {name.casefold(): name for name in tree.route_parameters}

    for parameter in handler.parameters:
        if remaining.pop(parameter.name.casefold(), None) is None:
            continue

        route_parameter = tree.route_parameters[parameter.name]
        if has_type_policy(route_parameter.policies):
            continue

        policy = infer_policy(parameter.type, well_known)
        if policy is None:
            continue

        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.ADD_CONSTRAINT,
                span=parameter.span,
                message=(
                    f"Route parameter '{parameter.name}' is {policy} but the route "
                    f"template does not constrain it; add ':{policy}'."
                ),
                additional_spans=(route_parameter.span,),
                route_parameter=RouteParameterProperties(parameter.name, policy),
            )
        )

    for name in remaining.values():
        unused = tree.route_parameters[name]
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.UNUSED_PARAMETER,
                span=unused.span,
                message=(
                    f"Route parameter '{unused.name}' is not used by "
                    f"handler '{handler.name}'."
                ),
                additional_spans=(handler.span,),
                route_parameter=RouteParameterProperties(
                    unused.name,
                    "".join(unused.policies),
                    unused.is_optional,
                ),
            )
        )

    return diagnostics


def analyze_literal(literal: RouteLiteral, well_known: WellKnownTypes) -> list[Diagnostic] | None:
    """Diagnostics for one route literal, or ``None`` if it cannot be decoded."""
    chars = try_convert_to_virtual_chars(literal.token, literal.span.start)
    tree = parse(chars, allow_token_replacement=literal.usage.is_attribute_style)
    if tree is None:
        return None

    diagnostics = [
        Diagnostic(kind=DiagnosticKind.ISSUE, span=issue.span, message=issue.message)
        for issue in tree.diagnostics
    ]
    if literal.usage.handler is not None:
        diagnostics.extend(cross_reference(tree, literal.usage.handler, well_known))
    return diagnostics


def analyze_source(
    text: str,
    path: str = "<string>",
    config: LintConfig | None = None,
    well_known: WellKnownTypes | None = None,
    *,
    cancel: threading.Event | None = None,
) -> FileResult:
    """Analyze Python source text.

    Raises ``AnalysisCancelled`` if *cancel* is set before the next route
    literal is analyzed. A literal is always analyzed completely or not at
    all.
    """
    config = config or LintConfig()
    well_known = well_known or WellKnownTypes.create()
    source = SourceText(text, path)
    try:
        module = ast.parse(text, filename=path)
    except (SyntaxError, ValueError) as exc:
        logger.warning("Skipping %s: %s", path, exc)
        detail = exc.msg if isinstance(exc, SyntaxError) else str(exc)
        return FileResult(source, error=f"cannot parse: {detail}")

    diagnostics: list[Diagnostic] = []
    checked = 0
    for literal in find_route_literals(module, source, config):
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelled(f"Analysis of {path} cancelled")
        found = analyze_literal(literal, well_known)
        if found is None:
            continue
        checked += 1
        diagnostics.extend(d for d in found if config.enabled(d.kind.value))

    return FileResult(source, tuple(diagnostics), routes_checked=checked)


def analyze_file(
    path: Path,
    config: LintConfig | None = None,
    well_known: WellKnownTypes | None = None,
    *,
    cancel: threading.Event | None = None,
) -> FileResult:
    try:
        # Honours a BOM and a coding cookie.
        with tokenize.open(path) as file:
            text = file.read()
    except (OSError, SyntaxError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return FileResult(SourceText("", str(path)), error=f"cannot read file: {exc}")
    return analyze_source(text, str(path), config, well_known, cancel=cancel)


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def _matches(relative: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        # "**/x" also matches "x" at the root.
        if pattern.startswith("**/") and fnmatch.fnmatch(relative, pattern[3:]):
            return True
    return False


def discover_files(paths: Sequence[Path], config: LintConfig) -> list[Path]:
    """Expand files and directories into the Python files to analyze.

    Explicit file arguments are always included; directories are walked
    and filtered by ``config.include`` / ``config.exclude``.
    """
    found: dict[Path, None] = {}
    for root in paths:
        if root.is_file():
            found[root] = None
            continue
        if not root.is_dir():
            logger.warning("No such file or directory: %s", root)
            continue
        for candidate in sorted(root.rglob("*")):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(root).as_posix()
            if _matches(relative, config.include) and not _matches(relative, config.exclude):
                found[candidate] = None
    return list(found)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def analyze_paths(
    paths: Sequence[Path],
    config: LintConfig | None = None,
    *,
    cancel: threading.Event | None = None,
) -> AnalysisResult:
    """Analyze every Python file under *paths*, one after another."""
    config = config or LintConfig()
    well_known = WellKnownTypes.create()
    result = AnalysisResult()
    for path in discover_files(paths, config):
        result.files.append(analyze_file(path, config, well_known, cancel=cancel))
    logger.info("Checked %d routes in %d files", result.routes_checked, len(result.files))
    return result


async def analyze_paths_async(
    paths: Sequence[Path],
    config: LintConfig | None = None,
    *,
    cancel: threading.Event | None = None,
) -> AnalysisResult:
    """Analyze files concurrently in worker threads.

    At most ``config.max_workers`` files are analyzed at once. The
    well-known types are created once and shared read-only by all workers.
    Results keep the order of ``discover_files``.
    """
    config = config or LintConfig()
    well_known = WellKnownTypes.create()
    files = discover_files(paths, config)
    results: list[FileResult | None] = [None] * len(files)
    limiter = anyio.CapacityLimiter(config.max_workers)

    async def _analyze(index: int, path: Path) -> None:
        results[index] = await anyio.to_thread.run_sync(
            lambda: analyze_file(path, config, well_known, cancel=cancel),
            limiter=limiter,
        )

    try:
        async with anyio.create_task_group() as tg:
            for index, path in enumerate(files):
                tg.start_soon(_analyze, index, path)
    except* AnalysisCancelled as group:
        msg = "Analysis cancelled"
        raise AnalysisCancelled(msg) from group

    result = AnalysisResult(files=[r for r in results if r is not None])
    logger.info("Checked %d routes in %d files", result.routes_checked, len(result.files))
    return result
