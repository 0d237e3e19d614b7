"""routelint — static analysis for route templates in Python web code.

Finds route templates (decorator arguments, route-map calls and literals
marked ``# lang=route``), reports template syntax errors, and
cross-references template parameters with the handler's parameters.

Basic usage::

    from pathlib import Path
    from routelint import analyze_paths

    result = analyze_paths([Path("app")])
    for diagnostic in result.diagnostics:
        print(diagnostic.kind.code, diagnostic.message)

Parsing a single template::

    from routelint import parse_template

    tree = parse_template("/users/{id:int}/{slug?}")
    tree.route_parameters["ID"].policies   # (":int",)
"""

__version__ = "0.1.0"
__all__ = [
    "AnalysisCancelled",
    "AnalysisResult",
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticKind",
    "FileResult",
    "LintConfig",
    "RouteLintError",
    "RouteTree",
    "analyze_paths",
    "analyze_paths_async",
    "analyze_source",
    "apply_fixes",
    "load_config",
    "parse",
    "parse_template",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import routelint`` fast while providing a clean top-level API.
    """
    if name in ("AnalysisResult", "FileResult", "analyze_paths", "analyze_paths_async", "analyze_source"):
        from routelint import analyzer as _analyzer

        return getattr(_analyzer, name)

    if name in ("LintConfig", "load_config"):
        from routelint import config as _config

        return getattr(_config, name)

    if name in ("Diagnostic", "DiagnosticKind"):
        from routelint import diagnostics as _diagnostics

        return getattr(_diagnostics, name)

    if name in ("RouteTree", "parse", "parse_template"):
        from routelint import pattern as _pattern

        return getattr(_pattern, name)

    if name == "apply_fixes":
        from routelint.fixes import apply_fixes

        return apply_fixes

    if name in ("AnalysisCancelled", "ConfigurationError", "RouteLintError"):
        from routelint import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
