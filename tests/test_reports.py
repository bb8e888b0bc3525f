"""Tests for reports.exporters — JSON / Markdown / HTML renderings of a scan."""

from __future__ import annotations

import json

import pytest

from prodready.model import Category, Severity
from prodready.model.analysis_result import AnalysisResult
from prodready.model.context import Context
from prodready.model.issue import Issue, Location
from prodready.reports.exporters import (
    education,
    export_html,
    export_json,
    export_markdown,
    export_result,
    recommendations,
)


def make_issue(n: int, issue_type: str, severity: Severity, category: Category, **kw) -> Issue:
    return Issue(
        id=f"{issue_type}-{n}",
        type=issue_type,
        severity=severity,
        category=category,
        location=Location(file=kw.pop("file", "src/app.js"), line=n),
        message=kw.pop("message", f"{issue_type} found"),
        impact=kw.pop("impact", "bad things"),
        educational_content=kw.pop("educational_content", f"learn about {issue_type}"),
    )


def make_result(issues: list[Issue], score: int) -> AnalysisResult:
    return AnalysisResult(
        score=score,
        issues=tuple(issues),
        files=("src/app.js",),
        context=Context(project_type="node", framework="express"),
    )


@pytest.fixture
def result() -> AnalysisResult:
    return make_result(
        [
            make_issue(1, "sql-injection", Severity.CRITICAL, Category.SECURITY),
            make_issue(2, "no-error-handling", Severity.HIGH, Category.RELIABILITY),
        ],
        score=70,
    )


class TestRecommendations:

    def test_clean_result_has_none(self) -> None:
        assert recommendations(make_result([], 100)) == []

    def test_critical(self, result) -> None:
        assert recommendations(result) == ["Fix critical security issues immediately"]

    def test_many_security_issues(self) -> None:
        issues = [
            make_issue(n, "hardcoded-secret", Severity.HIGH, Category.SECURITY)
            for n in range(1, 7)
        ]
        recs = recommendations(make_result(issues, 40))
        assert recs == [
            "Consider a security audit",
            "Consider refactoring to improve code quality",
        ]

    def test_many_reliability_issues(self) -> None:
        issues = [
            make_issue(n, "unhandled-promise", Severity.LOW, Category.RELIABILITY)
            for n in range(1, 12)
        ]
        recs = recommendations(make_result(issues, 78))
        assert recs == ["Improve error handling across the application"]

    def test_education_one_per_type(self) -> None:
        issues = [
            make_issue(1, "sql-injection", Severity.CRITICAL, Category.SECURITY),
            make_issue(2, "sql-injection", Severity.CRITICAL, Category.SECURITY),
        ]
        assert education(make_result(issues, 60)) == {
            "sql-injection": "learn about sql-injection"
        }


class TestJson:

    def test_shape(self, result) -> None:
        data = json.loads(export_json(result))
        assert set(data) == {"summary", "issues", "files", "recommendations", "education"}
        assert data["summary"]["score"] == 70
        assert data["summary"]["tier"] == "yellow"
        assert data["summary"]["bySeverity"]["critical"] == 1
        assert data["issues"][0]["type"] == "sql-injection"

    def test_stable(self, result) -> None:
        assert export_json(result) == export_json(result)


class TestMarkdown:

    def test_sections(self, result) -> None:
        md = export_markdown(result)
        assert md.startswith("# Production Readiness Report")
        assert "**Score:** 70/100" in md
        assert "**Tier:** YELLOW" in md
        assert "| CRITICAL | 1 |" in md
        assert "## Recommendations" in md
        assert "`src/app.js:1`" in md

    def test_clean_project(self) -> None:
        md = export_markdown(make_result([], 100))
        assert "## Top" not in md
        assert "## Recommendations" not in md


class TestHtml:

    def test_title_and_sections(self, result) -> None:
        doc = export_html(result)
        assert "<title>ProdReady Report - Score: 70/100</title>" in doc
        assert "<h2>Severity Breakdown</h2>" in doc
        assert "<h2>Learn More</h2>" in doc
        assert "express" in doc

    def test_messages_are_escaped(self) -> None:
        issue = make_issue(
            1, "hardcoded-secret", Severity.HIGH, Category.SECURITY,
            message="<script>alert(1)</script>",
        )
        doc = export_html(make_result([issue], 90))
        assert "<script>alert(1)</script>" not in doc
        assert "&lt;script&gt;" in doc


class TestDispatch:

    @pytest.mark.parametrize("fmt", ["json", "markdown", "md", "html"])
    def test_known_formats(self, result, fmt) -> None:
        assert export_result(result, fmt)

    def test_unknown_format(self, result) -> None:
        with pytest.raises(ValueError, match="Unknown export format"):
            export_result(result, "pdf")
