"""Runner — orchestrates parsing, analyzers and fixers over a project tree."""

from __future__ import annotations

import dataclasses
import logging
import shutil
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from prodready import rules
from prodready.core.config import ScanConfig
from prodready.core.context import build_project_context, extract_routes, file_context
from prodready.core.discover import DiscoverConfig, discover_js_files
from prodready.errors import ParseFailure
from prodready.insights.score import compute_score
from prodready.model import Category, Severity
from prodready.model.analysis_result import AnalysisResult
from prodready.model.context import Context
from prodready.model.fix_result import AppliedFix, FixResult
from prodready.model.issue import Issue, Location, make_fingerprint
from prodready.source.parser import ParsedSource, parse

if TYPE_CHECKING:
    from prodready.analyzers import Analyzer
    from prodready.transformers.engine import TransformationEngine

_logger = logging.getLogger(__name__)


@dataclass
class _FileUnit:
    """One discovered file between the parse and analyze phases."""

    path: Path
    file_id: str
    tree: ParsedSource | None = None
    failure: str | None = None
    issues: list[Issue] = field(default_factory=list)


def parse_error_issue(file_id: str, reason: str) -> Issue:
    return Issue(
        id=f"{rules.PARSE_ERROR}:{file_id}",
        type=rules.PARSE_ERROR,
        severity=Severity.HIGH,
        category=Category.RELIABILITY,
        location=Location(file=file_id, line=0),
        message=f"Failed to parse file: {reason}",
        impact="The file could not be analyzed, so issues in it are not reported",
        fingerprint=make_fingerprint(rules.PARSE_ERROR, file_id, 0, reason),
    )


def _load(unit: _FileUnit) -> _FileUnit:
    try:
        text = unit.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        unit.failure = f"cannot read file: {exc}"
        _logger.warning("%s: %s", unit.file_id, unit.failure)
        return unit
    try:
        unit.tree = parse(text, file=unit.file_id)
    except ParseFailure as exc:
        unit.failure = exc.reason
        _logger.warning("%s:%d: parse failed: %s", unit.file_id, exc.line, exc.reason)
    return unit


def analyze_tree(
    tree: ParsedSource,
    context: Context,
    file_id: str,
    analyzers: Iterable[Analyzer],
    *,
    category: Category | None = None,
) -> list[Issue]:
    """Run every applicable analyzer over one tree.  A crashing analyzer is skipped."""
    issues: list[Issue] = []
    for analyzer in analyzers:
        if category is not None and analyzer.category != category:
            continue
        if not analyzer.should_run(file_id, context):
            continue
        try:
            issues.extend(analyzer.analyze(tree, context, file_id))
        except Exception:
            _logger.exception(
                "Analyzer '%s' raised an exception on %s — skipped",
                getattr(analyzer, "id", type(analyzer).__name__),
                file_id,
            )
    return issues


def assign_ids(issues: list[Issue]) -> list[Issue]:
    """Renumber issue ids as ``<type>-<n>`` in the given order."""
    counters: dict[str, int] = defaultdict(int)
    out: list[Issue] = []
    for issue in issues:
        counters[issue.type] += 1
        out.append(dataclasses.replace(issue, id=f"{issue.type}-{counters[issue.type]}"))
    return out


def _issue_order(issue: Issue) -> tuple:
    return (issue.location.line, issue.location.column or 0, issue.type)


def run_scan(
    cfg: ScanConfig,
    analyzers: list[Analyzer] | None = None,
    *,
    category: Category | None = None,
) -> AnalysisResult:
    """Scan every source file under ``cfg.root`` and assemble an ``AnalysisResult``.

    Parsing and analysis run in a thread pool; results are merged in
    sorted-file order so the output does not depend on completion order.
    """
    from prodready.analyzers import default_analyzers

    root = cfg.root
    active = analyzers if analyzers is not None else default_analyzers(
        async_wrappers=cfg.async_wrappers
    )
    paths = discover_js_files(root, DiscoverConfig.from_scan_config(cfg))
    units = [_FileUnit(path=p, file_id=p.relative_to(root).as_posix()) for p in paths]
    _logger.debug("scanning %d file(s) under %s", len(units), root)

    project = build_project_context(root)

    with ThreadPoolExecutor(max_workers=cfg.effective_workers) as pool:
        # ── 1. read + parse ─────────────────────────────────────────
        units = list(pool.map(_load, units))

        # ── 2. routes feed every file's context ────────────────────
        routes = [r for u in units if u.tree is not None for r in extract_routes(u.tree, u.file_id)]
        project = dataclasses.replace(project, routes=tuple(routes))

        # ── 3. analyze ──────────────────────────────────────────────
        def _analyze(unit: _FileUnit) -> _FileUnit:
            if unit.tree is None:
                unit.issues = [parse_error_issue(unit.file_id, unit.failure or "unknown error")]
                return unit
            ctx = file_context(project, unit.tree, unit.file_id)
            found = analyze_tree(unit.tree, ctx, unit.file_id, active, category=category)
            unit.issues = sorted(found, key=_issue_order)
            unit.tree = None  # release the AST
            return unit

        units = list(pool.map(_analyze, units))

    issues = assign_ids([i for u in units for i in u.issues])
    return AnalysisResult(
        score=compute_score(issues),
        issues=tuple(issues),
        files=tuple(u.file_id for u in units),
        context=project,
        root=str(root),
    )


# ── fix ─────────────────────────────────────────────────────────────


def _write_with_backup(path: Path, text: str, *, create_backup: bool) -> None:
    if create_backup:
        backup_path = path.with_suffix(path.suffix + ".bak")
        shutil.copy2(path, backup_path)
    path.write_text(text, encoding="utf-8")


def run_fix(
    result: AnalysisResult,
    engine: TransformationEngine,
    *,
    issue_types: Iterable[str] | None = None,
    write: bool = True,
    create_backups: bool = True,
    workers: int = 4,
) -> FixResult:
    """Apply fixes for *result*'s issues, one transform per file.

    With ``write=False`` nothing touches disk; ``transformed_files`` still
    carries the new text.
    """
    root = Path(result.root)
    wanted = set(issue_types) if issue_types else None
    by_file: dict[str, list[Issue]] = defaultdict(list)
    for issue in result.issues:
        if wanted is None or issue.type in wanted:
            by_file[issue.file].append(issue)

    def _fix_file(file_id: str) -> tuple[str, str | None, list[AppliedFix]]:
        issues = by_file[file_id]
        path = root / file_id
        try:
            text = path.read_text(encoding="utf-8")
            outcome = engine.transform(text, issues, file=file_id)
            if write and outcome.transformed_code != text:
                _write_with_backup(path, outcome.transformed_code, create_backup=create_backups)
        except (OSError, UnicodeDecodeError) as exc:
            _logger.warning("%s: cannot fix: %s", file_id, exc)
            return file_id, None, [AppliedFix(i.id, success=False, error=str(exc)) for i in issues]
        return file_id, outcome.transformed_code, list(outcome.applied_fixes)

    applied: list[AppliedFix] = []
    transformed: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        for file_id, code, fixes in pool.map(_fix_file, sorted(by_file)):
            applied.extend(fixes)
            if code is not None:
                transformed[file_id] = code
    return FixResult(applied_fixes=tuple(applied), transformed_files=transformed)
