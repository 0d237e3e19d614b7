"""HTML report for ``routelint check --format html``, rendered with kida."""

from kida import DictLoader, Environment

from routelint.analyzer import AnalysisResult
from routelint.report import iter_entries

_REPORT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>routelint report</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 2rem; color: #222; }
    table { border-collapse: collapse; width: 100%; }
    th, td { text-align: left; padding: .3rem .6rem; border-bottom: 1px solid #ddd; }
    code { font-family: ui-monospace, monospace; }
    .error { color: #b00020; }
    .warning { color: #a15c00; }
    .info { color: #005a9c; }
  </style>
</head>
<body>
  <h1>routelint report</h1>
  <p class="stats">{{ routes_checked }} routes &middot; {{ files_checked }} files</p>
  {% if failed %}
  <h2>Skipped files</h2>
  <ul>{% for file in failed %}<li><code>{{ file.path }}</code>: {{ file.error }}</li>{% end %}</ul>
  {% end %}
  {% if entries %}
  <table>
    <thead><tr><th>Location</th><th>Code</th><th>Message</th></tr></thead>
    <tbody>
    {% for entry in entries %}
      <tr class="{{ entry.severity.value }}">
        <td><code>{{ entry.path }}:{{ entry.line }}:{{ entry.column }}</code></td>
        <td>{{ entry.kind.code }}</td>
        <td>{{ entry.message }}</td>
      </tr>
    {% end %}
    </tbody>
  </table>
  {% else %}
  <p class="ok">All clear</p>
  {% end %}
</body>
</html>
"""


def _environment() -> Environment:
    return Environment(loader=DictLoader({"report.html": _REPORT_TEMPLATE}), autoescape=True)


def render_html(result: AnalysisResult) -> str:
    """Render the analysis as a standalone HTML page."""
    template = _environment().get_template("report.html")
    return template.render(
        {
            "routes_checked": result.routes_checked,
            "files_checked": len(result.files),
            "failed": result.failed,
            "entries": list(iter_entries(result)),
        }
    )
