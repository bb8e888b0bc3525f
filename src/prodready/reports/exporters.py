"""Multi-format exporters for scan results.

Supports:

*  **JSON** — machine-readable, suitable for CI artifact storage.
*  **Markdown** — human-readable, suitable for PR comments.
*  **HTML** — self-contained HTML document with embedded CSS.

All exporters accept an :class:`AnalysisResult` and produce a string.
"""

from __future__ import annotations

import html as html_mod
from datetime import datetime, timezone
from typing import Any

from prodready import __version__
from prodready.model import SEVERITY_ORDER, Category, Severity
from prodready.model.analysis_result import AnalysisResult
from prodready.model.issue import Issue
from prodready.policy.thresholds import tier_from_score
from prodready.utils.json_norm import stable_json_dumps

# ── recommendations ─────────────────────────────────────────────────
SECURITY_AUDIT_THRESHOLD = 5
RELIABILITY_THRESHOLD = 10
REFACTOR_SCORE_THRESHOLD = 50


def recommendations(result: AnalysisResult) -> list[str]:
    """Next steps derived from the severity/category mix."""
    recs: list[str] = []
    by_category = result.by_category
    if result.by_severity[Severity.CRITICAL.value] > 0:
        recs.append("Fix critical security issues immediately")
    if by_category.get(Category.SECURITY.value, 0) > SECURITY_AUDIT_THRESHOLD:
        recs.append("Consider a security audit")
    if by_category.get(Category.RELIABILITY.value, 0) > RELIABILITY_THRESHOLD:
        recs.append("Improve error handling across the application")
    if result.score < REFACTOR_SCORE_THRESHOLD:
        recs.append("Consider refactoring to improve code quality")
    return recs


def education(result: AnalysisResult) -> dict[str, str]:
    """One explanation per detected issue type."""
    out: dict[str, str] = {}
    for issue in result.issues:
        if issue.educational_content and issue.type not in out:
            out[issue.type] = issue.educational_content
    return out


def _sorted_issues(result: AnalysisResult) -> list[Issue]:
    return sorted(
        result.issues,
        key=lambda i: (SEVERITY_ORDER.index(i.severity), i.file, i.line),
    )


# ════════════════════════════════════════════════════════════════════
# JSON exporter
# ════════════════════════════════════════════════════════════════════


def report_dict(result: AnalysisResult) -> dict[str, Any]:
    return {
        "summary": {
            "score": result.score,
            "tier": tier_from_score(result.score).value,
            "totalIssues": result.total_issues,
            "byCategory": result.by_category,
            "bySeverity": result.by_severity,
        },
        "issues": [
            {
                "type": i.type,
                "severity": i.severity.value,
                "category": i.category.value,
                "message": i.message,
                "file": i.file,
                "line": i.line,
                "impact": i.impact,
            }
            for i in result.issues
        ],
        "files": list(result.files),
        "recommendations": recommendations(result),
        "education": education(result),
    }


def export_json(result: AnalysisResult, *, indent: int = 2) -> str:
    """Export an ``AnalysisResult`` report as indented JSON."""
    return stable_json_dumps(report_dict(result), indent=indent)


# ════════════════════════════════════════════════════════════════════
# Markdown exporter
# ════════════════════════════════════════════════════════════════════


def export_markdown(result: AnalysisResult, *, top_n: int = 20) -> str:
    """Export an ``AnalysisResult`` as a concise Markdown summary."""
    lines: list[str] = []
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    tier = tier_from_score(result.score).value.upper()

    lines.append("# Production Readiness Report")
    lines.append("")
    lines.append(f"**Generated:** {now}  ")
    lines.append(f"**Score:** {result.score}/100  ")
    lines.append(f"**Tier:** {tier}  ")
    lines.append(f"**Issues:** {result.total_issues}")
    lines.append("")

    if result.issues:
        lines.append("## By Severity")
        lines.append("")
        lines.append("| Severity | Count |")
        lines.append("|----------|------:|")
        for sev, c in result.by_severity.items():
            if c:
                lines.append(f"| {sev.upper()} | {c} |")
        lines.append("")

    top = _sorted_issues(result)[:top_n]
    if top:
        lines.append(f"## Top {len(top)} Issues")
        lines.append("")
        for i, issue in enumerate(top, 1):
            loc = f"{issue.file}:{issue.line}"
            lines.append(
                f"{i}. **[{issue.severity.value.upper()}]** `{loc}` — {issue.message}"
            )
        lines.append("")

    recs = recommendations(result)
    if recs:
        lines.append("## Recommendations")
        lines.append("")
        lines.extend(f"- {r}" for r in recs)
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by prodready {__version__}*")
    lines.append("")
    return "\n".join(lines)


# ════════════════════════════════════════════════════════════════════
# HTML exporter
# ════════════════════════════════════════════════════════════════════

_SEVERITY_COLOR = {
    "critical": "#dc3545",
    "high": "#fd7e14",
    "medium": "#ffc107",
    "low": "#17a2b8",
}

_TIER_COLOR = {
    "green": "#28a745",
    "yellow": "#ffc107",
    "red": "#dc3545",
}

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>ProdReady Report - Score: {score}/100</title>
<style>
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 2rem; color: #212529; }}
  h1 {{ color: #343a40; }}
  .summary {{ background: #f8f9fa; padding: 1rem; border-radius: 6px; margin-bottom: 1.5rem; }}
  .score {{ font-size: 3rem; font-weight: 700; color: {score_color}; }}
  .score-bar {{ width: 100%; height: 16px; background: #e0e0e0; border-radius: 8px; overflow: hidden; }}
  .score-fill {{ height: 100%; width: {score}%; background: {score_color}; }}
  .badge {{ display: inline-block; padding: 2px 8px; border-radius: 4px; color: #fff; font-size: 0.85em; font-weight: 600; }}
  table {{ border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }}
  th, td {{ text-align: left; padding: 6px 12px; border-bottom: 1px solid #dee2e6; }}
  th {{ background: #e9ecef; }}
  .issue {{ margin-bottom: 0.75rem; }}
  .impact {{ color: #6c757d; font-size: 0.9em; }}
  footer {{ margin-top: 2rem; color: #6c757d; font-size: 0.85em; }}
</style>
</head>
<body>
{body}
</body>
</html>
"""


def export_html(result: AnalysisResult, *, top_n: int = 50) -> str:
    """Export an ``AnalysisResult`` as a self-contained HTML document."""
    parts: list[str] = []
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    tier = tier_from_score(result.score).value

    parts.append("<h1>Production Readiness Report</h1>")
    parts.append('<div class="summary">')
    parts.append(f'<div class="score">{result.score}/100</div>')
    parts.append('<div class="score-bar"><div class="score-fill"></div></div>')
    parts.append(f"<p><strong>Tier:</strong> {tier.upper()}</p>")
    parts.append(f"<p><strong>Issues:</strong> {result.total_issues}</p>")
    parts.append(f"<p><strong>Files scanned:</strong> {len(result.files)}</p>")
    if result.context.framework:
        parts.append(
            f"<p><strong>Framework:</strong> {html_mod.escape(result.context.framework)}</p>"
        )
    parts.append("</div>")

    if result.issues:
        parts.append("<h2>Severity Breakdown</h2>")
        parts.append("<table><tr><th>Severity</th><th>Count</th></tr>")
        for sev, c in result.by_severity.items():
            if c:
                color = _SEVERITY_COLOR.get(sev, "#6c757d")
                parts.append(
                    f'<tr><td><span class="badge" style="background:{color}">'
                    f"{sev.upper()}</span></td><td>{c}</td></tr>"
                )
        parts.append("</table>")

        parts.append("<h2>Categories</h2>")
        parts.append("<table><tr><th>Category</th><th>Count</th></tr>")
        for cat, c in result.by_category.items():
            parts.append(f"<tr><td>{html_mod.escape(cat)}</td><td>{c}</td></tr>")
        parts.append("</table>")

    top = _sorted_issues(result)[:top_n]
    if top:
        parts.append(f"<h2>Top {len(top)} Issues</h2>")
        for issue in top:
            loc = f"{issue.file}:{issue.line}"
            color = _SEVERITY_COLOR.get(issue.severity.value, "#6c757d")
            parts.append(
                f'<div class="issue">'
                f'<span class="badge" style="background:{color}">'
                f"{issue.severity.value.upper()}</span> "
                f"<code>{html_mod.escape(loc)}</code> &mdash; {html_mod.escape(issue.message)}"
                + (
                    f'<div class="impact">{html_mod.escape(issue.impact)}</div>'
                    if issue.impact
                    else ""
                )
                + "</div>"
            )

    recs = recommendations(result)
    if recs:
        parts.append("<h2>Recommendations</h2>")
        parts.append("<ul>")
        parts.extend(f"<li>{html_mod.escape(r)}</li>" for r in recs)
        parts.append("</ul>")

    learn = education(result)
    if learn:
        parts.append("<h2>Learn More</h2>")
        parts.append("<dl>")
        for issue_type, text in sorted(learn.items()):
            parts.append(
                f"<dt><code>{html_mod.escape(issue_type)}</code></dt>"
                f"<dd>{html_mod.escape(text)}</dd>"
            )
        parts.append("</dl>")

    parts.append(f"<footer>Generated by prodready {__version__} &bull; {now}</footer>")

    return _HTML_TEMPLATE.format(
        score=result.score,
        score_color=_TIER_COLOR[tier],
        body="\n".join(parts),
    )


# ════════════════════════════════════════════════════════════════════
# Dispatcher
# ════════════════════════════════════════════════════════════════════


def export_result(
    result: AnalysisResult,
    fmt: str = "json",
    *,
    top_n: int = 20,
) -> str:
    """Export an ``AnalysisResult`` in the specified format.

    Raises
    ------
    ValueError
        If *fmt* is not recognised.
    """
    if fmt == "json":
        return export_json(result)
    if fmt in ("markdown", "md"):
        return export_markdown(result, top_n=top_n)
    if fmt == "html":
        return export_html(result)
    raise ValueError(f"Unknown export format: {fmt!r} (use json|markdown|html)")
