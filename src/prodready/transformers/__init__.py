"""Fixers rewrite source to resolve one issue type each.

A fixer receives a fresh parse of the *current* text plus the issue, finds
its target by line (±1) and returns ``TextEdit`` objects.  The engine
splices the edits, re-parses the result and records the outcome; fixers
never touch files or shared state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from prodready.model.fix_result import PreviewResult
from prodready.model.issue import Issue
from prodready.source.edits import TextEdit, apply_edits, snippet, unified_diff
from prodready.source.parser import ParsedSource

LINE_TOLERANCE = 1


@dataclass(frozen=True, slots=True)
class FixOutcome:
    """What a fixer proposes for one issue."""

    edits: tuple[TextEdit, ...]
    explanation: str
    educational_content: str = ""


class Fixer(Protocol):
    id: str
    issue_types: frozenset[str]

    def can_fix(self, issue: Issue) -> bool:
        ...

    def fix(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        """Raise ``FixApplicationError`` when the target cannot be rewritten."""
        ...

    def preview(self, tree: ParsedSource, issue: Issue) -> PreviewResult:
        ...


class BaseFixer:
    """Shared ``can_fix``/``preview`` for concrete fixers."""

    id = ""
    issue_types: frozenset[str] = frozenset()

    def can_fix(self, issue: Issue) -> bool:
        return issue.type in self.issue_types

    def fix(self, tree: ParsedSource, issue: Issue) -> FixOutcome:
        raise NotImplementedError

    def preview(self, tree: ParsedSource, issue: Issue) -> PreviewResult:
        outcome = self.fix(tree, issue)
        after = apply_edits(tree.text, list(outcome.edits))
        return PreviewResult(
            issue_id=issue.id,
            can_fix=True,
            original=snippet(tree.text, issue.line),
            fixed=snippet(after, issue.line),
            diff=unified_diff(tree.text, after, file=issue.file),
            explanation=outcome.explanation,
        )


def default_fixers() -> list[BaseFixer]:
    from prodready.transformers.error_handling import ErrorHandlingFixer
    from prodready.transformers.secrets import HardcodedSecretsFixer
    from prodready.transformers.sql_injection import SQLInjectionFixer

    return [SQLInjectionFixer(), ErrorHandlingFixer(), HardcodedSecretsFixer()]
