"""Issue — one detected defect instance."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

from prodready import rules
from prodready.model import Category, Severity


@dataclass(frozen=True, slots=True)
class Location:
    """Source location.  ``line`` is 1-based; 0 marks a file-level issue."""

    file: str
    line: int
    column: int | None = None

    def __post_init__(self) -> None:
        if self.line < 0:
            raise ValueError(f"line must be >= 0, got {self.line}")


@dataclass(frozen=True, slots=True)
class FixRef:
    """Points at the fixer able to resolve an issue; resolved by ``type``."""

    description: str
    fixer_id: str = ""


@dataclass(frozen=True, slots=True)
class Issue:
    """Immutable detector output.

    ``context`` carries detector facts a fixer may consult (binding names,
    payment markers, the kind of literal node).  It is never rendered.
    """

    id: str
    type: str
    severity: Severity
    category: Category
    location: Location
    message: str
    impact: str = ""
    educational_content: str = ""
    fix: FixRef | None = None
    context: dict[str, Any] = field(default_factory=dict)
    fingerprint: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.severity, Severity):
            raise ValueError(f"invalid severity: {self.severity!r}")
        if not isinstance(self.category, Category):
            raise ValueError(f"invalid category: {self.category!r}")
        if not rules.is_known_type(self.type):
            raise ValueError(
                f"issue type {self.type!r} is neither fixable nor declared unfixable"
            )

    @property
    def file(self) -> str:
        return self.location.file

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int | None:
        return self.location.column

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "severity": self.severity.value,
            "category": self.category.value,
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "message": self.message,
            "impact": self.impact,
            "educationalContent": self.educational_content,
            "fix": {"description": self.fix.description} if self.fix else None,
            "fingerprint": self.fingerprint,
        }


def make_fingerprint(issue_type: str, file: str, line: int, snippet: str = "") -> str:
    """Deterministic issue fingerprint: sha256(type|file|line|snippet)."""
    file = file.replace("\\", "/")
    payload = "|".join([issue_type, file, str(line), snippet.strip()])
    return "sha256:" + hashlib.sha256(payload.encode()).hexdigest()


def make_issue_id(issue_type: str, file: str, line: int, column: int | None) -> str:
    """Provisional id; the runner renumbers ids once per-file results merge."""
    return f"{issue_type}:{file}:{line}:{column if column is not None else 0}"
