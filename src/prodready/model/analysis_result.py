"""AnalysisResult — immutable aggregate of one scan."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from prodready.model import SEVERITY_ORDER, Category
from prodready.model.context import EMPTY_CONTEXT, Context
from prodready.model.issue import Issue
from prodready.policy.thresholds import tier_from_score


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Corresponds to ``analysis_result.schema.json``."""

    score: int
    issues: tuple[Issue, ...] = ()
    files: tuple[str, ...] = ()
    context: Context = field(default=EMPTY_CONTEXT)
    root: str = ""

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def by_category(self) -> dict[str, int]:
        counts = Counter(i.category.value for i in self.issues)
        return {c.value: counts[c.value] for c in Category if counts[c.value]}

    @property
    def by_severity(self) -> dict[str, int]:
        counts = Counter(i.severity for i in self.issues)
        return {s.value: counts.get(s, 0) for s in SEVERITY_ORDER}

    def issues_for(self, file: str) -> list[Issue]:
        return [i for i in self.issues if i.location.file == file]

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "tier": tier_from_score(self.score).value,
            "issues": [i.to_dict() for i in self.issues],
            "totalIssues": self.total_issues,
            "byCategory": self.by_category,
            "bySeverity": self.by_severity,
            "files": list(self.files),
            "context": self.context.to_dict(),
        }
