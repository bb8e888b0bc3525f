"""Tests for the model layer — Issue invariants and result serialisation."""

from __future__ import annotations

import pytest

from prodready import rules
from prodready.model import Category, Severity
from prodready.model.analysis_result import AnalysisResult
from prodready.model.fix_result import AppliedFix, FixResult, TransformResult
from prodready.model.issue import FixRef, Issue, Location, make_fingerprint


def make_issue(**kw) -> Issue:
    defaults = dict(
        id="sql-injection-1",
        type="sql-injection",
        severity=Severity.CRITICAL,
        category=Category.SECURITY,
        location=Location(file="a.js", line=3, column=4),
        message="m",
    )
    defaults.update(kw)
    return Issue(**defaults)


class TestIssue:

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="neither fixable nor declared unfixable"):
            make_issue(type="xss")

    def test_raw_severity_rejected(self) -> None:
        with pytest.raises(ValueError, match="invalid severity"):
            make_issue(severity="critical")

    def test_negative_line_rejected(self) -> None:
        with pytest.raises(ValueError):
            Location(file="a.js", line=-1)

    def test_to_dict(self) -> None:
        d = make_issue(fix=FixRef("Use parameterized queries"), context={"x": 1}).to_dict()
        assert d["severity"] == "critical"
        assert d["line"] == 3
        assert d["column"] == 4
        assert d["fix"] == {"description": "Use parameterized queries"}
        assert "context" not in d

    def test_fingerprint_normalizes_separators(self) -> None:
        assert make_fingerprint("t", "src\\a.js", 1) == make_fingerprint("t", "src/a.js", 1)

    def test_type_registry_is_partitioned(self) -> None:
        assert not (rules.FIXABLE_TYPES & rules.UNFIXABLE_TYPES)
        assert rules.ALL_TYPES == rules.FIXABLE_TYPES | rules.UNFIXABLE_TYPES


class TestAnalysisResult:

    def test_counts(self) -> None:
        result = AnalysisResult(
            score=70,
            issues=(
                make_issue(),
                make_issue(id="no-error-handling-1", type="no-error-handling",
                           severity=Severity.HIGH, category=Category.RELIABILITY),
            ),
            files=("a.js",),
        )
        assert result.by_severity == {"critical": 1, "high": 1, "medium": 0, "low": 0}
        assert result.by_category == {"security": 1, "reliability": 1}
        assert result.to_dict()["tier"] == "yellow"
        assert len(result.issues_for("a.js")) == 2
        assert result.issues_for("b.js") == []


class TestFixResults:

    def test_summary(self) -> None:
        result = FixResult(
            applied_fixes=(
                AppliedFix("a-1", success=True),
                AppliedFix("b-1", success=False, error="nope"),
            ),
            transformed_files={"z.js": "", "a.js": ""},
        )
        d = result.to_dict()
        assert d["summary"] == {"total": 2, "successful": 1, "failed": 1}
        assert list(d["transformedFiles"]) == ["a.js", "z.js"]
        assert d["appliedFixes"][1] == {"issueId": "b-1", "success": False, "error": "nope"}

    def test_transform_changed(self) -> None:
        assert not TransformResult("x", (AppliedFix("a", success=False, error="e"),)).changed
        assert TransformResult("x", (AppliedFix("a", success=True),)).changed
