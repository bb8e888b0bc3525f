"""Transformation engine — applies fixers to one file's text, one issue at a time.

Issues are processed bottom-up (line, then column, descending).  Before each
fix the current text is parsed afresh; the fixer's edits are spliced in and
the result must parse again or the fix is discarded.  Failures are recorded
on the ``AppliedFix`` ledger and never raised to the caller.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from prodready.errors import (
    EngineConfigurationError,
    FixApplicationError,
    FixerNotAvailable,
    ParseFailure,
)
from prodready.model.fix_result import AppliedFix, PreviewResult, TransformResult
from prodready.model.issue import Issue
from prodready.source.edits import apply_edits, line_shifts, shift_line, unified_diff
from prodready.source.parser import parse, try_parse
from prodready.transformers import Fixer

_logger = logging.getLogger(__name__)

NO_FIXER = str(FixerNotAvailable())


def _processing_order(issues: Iterable[Issue]) -> list[Issue]:
    return sorted(
        issues,
        key=lambda i: (i.location.line, i.location.column or 0),
        reverse=True,
    )


class TransformationEngine:
    """Registry of fixers keyed by issue type, plus the per-file fix loop."""

    def __init__(self, fixers: Iterable[Fixer] | None = None):
        self._fixers: dict[str, Fixer] = {}
        for fixer in fixers or ():
            for issue_type in sorted(fixer.issue_types):
                self.register_fixer(issue_type, fixer)

    @classmethod
    def with_default_fixers(cls) -> "TransformationEngine":
        from prodready.transformers import default_fixers

        return cls(default_fixers())

    def register_fixer(self, issue_type: str, fixer: Fixer) -> None:
        self._fixers[issue_type] = fixer

    def fixer_for(self, issue: Issue) -> Fixer | None:
        fixer = self._fixers.get(issue.type)
        if fixer is None or not fixer.can_fix(issue):
            return None
        return fixer

    @property
    def registered_types(self) -> frozenset[str]:
        return frozenset(self._fixers)

    def _require_fixers(self) -> None:
        if not self._fixers:
            raise EngineConfigurationError("no fixers registered with the transformation engine")

    # ── transform ───────────────────────────────────────────────────

    def transform(self, source: str, issues: Iterable[Issue], *, file: str = "") -> TransformResult:
        """Apply every fixable issue to *source*; returns the new text and the ledger."""
        self._require_fixers()
        pending = _processing_order(issues)

        try:
            parse(source, file=file)
        except ParseFailure as exc:
            _logger.warning("%s: cannot fix, source does not parse: %s", file or "<source>", exc.reason)
            return TransformResult(
                transformed_code=source,
                applied_fixes=tuple(
                    AppliedFix(i.id, success=False, error=f"Failed to parse code: {exc.reason}")
                    for i in pending
                ),
            )

        current = source
        ledger: list[AppliedFix] = []
        while pending:
            issue = pending.pop(0)
            fixer = self.fixer_for(issue)
            if fixer is None:
                ledger.append(AppliedFix(issue.id, success=False, error=NO_FIXER))
                continue

            try:
                tree = parse(current, file=file)
                outcome = fixer.fix(tree, issue)
                edits = list(outcome.edits)
                updated = apply_edits(current, edits)
                if edits:
                    reparsed = try_parse(updated)
                    if reparsed is None or len(reparsed.errors) > len(tree.errors):
                        raise FixApplicationError("fix produced code that does not parse")
            except Exception as exc:
                _logger.warning(
                    "%s:%d: %s fix failed: %s",
                    file or "<source>", issue.line, issue.type, exc,
                )
                ledger.append(AppliedFix(issue.id, success=False, error=str(exc) or type(exc).__name__))
                continue

            diff = None
            if updated != current:
                diff = unified_diff(current, updated, file=file or issue.file or "file")
            ledger.append(
                AppliedFix(issue.id, success=True, diff=diff, explanation=outcome.explanation)
            )
            shifts = line_shifts(current, edits)
            if shifts:
                pending = [_shifted(i, shifts) for i in pending]
            current = updated

        return TransformResult(transformed_code=current, applied_fixes=tuple(ledger))

    # ── preview ─────────────────────────────────────────────────────

    def preview(self, source: str, issues: Iterable[Issue], *, file: str = "") -> list[PreviewResult]:
        """Dry run: each issue is previewed against the unmodified *source*."""
        self._require_fixers()
        ordered = _processing_order(issues)
        try:
            tree = parse(source, file=file)
        except ParseFailure as exc:
            return [
                PreviewResult(i.id, can_fix=False, error=f"Failed to parse code: {exc.reason}")
                for i in ordered
            ]

        previews: list[PreviewResult] = []
        for issue in ordered:
            fixer = self.fixer_for(issue)
            if fixer is None:
                previews.append(PreviewResult(issue.id, can_fix=False, error=NO_FIXER))
                continue
            try:
                previews.append(fixer.preview(tree, issue))
            except Exception as exc:
                _logger.debug("%s:%d: preview failed: %s", file or "<source>", issue.line, exc)
                previews.append(
                    PreviewResult(
                        issue.id,
                        can_fix=False,
                        error=f"Failed to generate preview: {exc}",
                    )
                )
        return previews


def _shifted(issue: Issue, shifts: list) -> Issue:
    line = shift_line(issue.location.line, shifts)
    if line == issue.location.line:
        return issue
    return dataclasses.replace(issue, location=dataclasses.replace(issue.location, line=line))
