"""Outcome records of the transformation engine."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class AppliedFix:
    """Outcome of one fixer attempt against one issue."""

    issue_id: str
    success: bool
    error: str | None = None
    diff: str | None = None
    explanation: str = ""

    def to_dict(self) -> dict:
        d: dict = {"issueId": self.issue_id, "success": self.success}
        if self.error is not None:
            d["error"] = self.error
        if self.diff is not None:
            d["diff"] = self.diff
        if self.explanation:
            d["explanation"] = self.explanation
        return d


@dataclass(frozen=True, slots=True)
class PreviewResult:
    """Dry-run outcome for one issue; nothing is written."""

    issue_id: str
    can_fix: bool
    original: str = ""
    fixed: str = ""
    diff: str = ""
    explanation: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        d: dict = {
            "issueId": self.issue_id,
            "canFix": self.can_fix,
            "original": self.original,
            "fixed": self.fixed,
            "diff": self.diff,
            "explanation": self.explanation,
        }
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Single-file output of ``TransformationEngine.transform``."""

    transformed_code: str
    applied_fixes: tuple[AppliedFix, ...] = ()

    @property
    def changed(self) -> bool:
        return any(f.success for f in self.applied_fixes)


@dataclass(frozen=True)
class FixResult:
    """Project-level fix ledger; corresponds to ``fix_result.schema.json``."""

    applied_fixes: tuple[AppliedFix, ...] = ()
    transformed_files: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.applied_fixes)

    @property
    def successful(self) -> int:
        return sum(1 for f in self.applied_fixes if f.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    def to_dict(self) -> dict:
        return {
            "appliedFixes": [f.to_dict() for f in self.applied_fixes],
            "transformedFiles": dict(sorted(self.transformed_files.items())),
            "summary": {
                "total": self.total,
                "successful": self.successful,
                "failed": self.failed,
            },
        }
