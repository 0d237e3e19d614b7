"""Machine-readable output for ``routelint check --format json``.

One object per diagnostic::

    {
      "path": "app/views.py",
      "line": 12,
      "column": 21,
      "kind": "unused-parameter",
      "code": "RL002",
      "severity": "warning",
      "message": "...",
      "properties": {"RouteParameterName": "id", ...},
      "additional": [{"line": 14, "column": 5}]
    }

Property names are the diagnostic contract shared with code-fix tooling.
"""

import json
from typing import Any

from routelint.analyzer import AnalysisResult
from routelint.report import ReportEntry, iter_entries


def entry_to_dict(entry: ReportEntry) -> dict[str, Any]:
    diagnostic = entry.diagnostic
    return {
        "path": entry.path,
        "line": entry.line,
        "column": entry.column,
        "offset": diagnostic.span.start,
        "length": diagnostic.span.length,
        "kind": entry.kind.value,
        "code": entry.kind.code,
        "severity": entry.severity.value,
        "message": entry.message,
        "properties": diagnostic.properties,
        "additional": [{"line": line, "column": column} for line, column in entry.related],
    }


def to_data(result: AnalysisResult) -> dict[str, Any]:
    """JSON-compatible summary of an analysis."""
    return {
        "routes_checked": result.routes_checked,
        "files_checked": len(result.files),
        "errors": [{"path": f.path, "error": f.error} for f in result.failed],
        "diagnostics": [entry_to_dict(entry) for entry in iter_entries(result)],
    }


def to_json(result: AnalysisResult, *, indent: int | None = 2) -> str:
    return json.dumps(to_data(result), indent=indent, ensure_ascii=False)
