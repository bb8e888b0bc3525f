"""
prodready.api
=============

Programmatic entrypoints for using prodready as a backend engine.

Goals:
  - No argparse / CLI dependencies
  - Stable, JSON-friendly outputs that match the bundled schemas

Non-goals:
  - Owning presentation (colours, prompts) — callers render results

Usage::

    from prodready.api import scan_project, fix_project

    result, result_dict = scan_project(".")
    fixes, fixes_dict = fix_project(".", issue_types=["sql-injection"])
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from prodready.contracts.load import validate_instance
from prodready.core.config import ScanConfig, build_config
from prodready.core.context import extract_routes, file_context
from prodready.core.runner import analyze_tree, assign_ids, parse_error_issue, run_fix, run_scan
from prodready.errors import ParseFailure
from prodready.insights.score import compute_score
from prodready.model import Category
from prodready.model.analysis_result import AnalysisResult
from prodready.model.context import Context
from prodready.model.fix_result import FixResult, PreviewResult, TransformResult
from prodready.source.parser import parse
from prodready.transformers.engine import TransformationEngine

__all__ = [
    "scan_project",
    "scan_source",
    "fix_project",
    "fix_source",
    "preview_project",
    "build_report",
    "validate_instance",
]


def _config(root: str | Path, **overrides: Any) -> ScanConfig:
    root_p = Path(root).resolve()
    if not root_p.exists():
        raise FileNotFoundError(f"root does not exist: {root_p}")
    if not root_p.is_dir():
        raise NotADirectoryError(f"root is not a directory: {root_p}")
    return build_config(root_p, **overrides)


def _category(value: str | Category | None) -> Category | None:
    if value is None or isinstance(value, Category):
        return value
    return Category(value)


# ── scan ────────────────────────────────────────────────────────────


def scan_project(
    root: str | Path,
    *,
    category: str | Category | None = None,
    analyzers: Optional[list[Any]] = None,
    workers: int | None = None,
) -> tuple[AnalysisResult, dict[str, Any]]:
    """Run the standard scan pipeline programmatically.

    Returns
    -------
    ``(AnalysisResult, analysis_result_dict)``
        The dataclass and the schema-aligned JSON dict.

    Raises
    ------
    FileNotFoundError
        If *root* does not exist.
    """
    cfg = _config(root, workers=workers)
    result = run_scan(cfg, analyzers, category=_category(category))
    result_dict = result.to_dict()
    validate_instance(result_dict, "analysis_result.schema.json")
    return result, result_dict


def scan_source(
    source: str,
    *,
    filename: str = "input.js",
    category: str | Category | None = None,
    analyzers: Optional[list[Any]] = None,
) -> AnalysisResult:
    """Analyze one in-memory file; nothing is read from disk."""
    from prodready.analyzers import default_analyzers

    active = analyzers if analyzers is not None else default_analyzers()
    project = Context()
    try:
        tree = parse(source, file=filename)
    except ParseFailure as exc:
        issues = [parse_error_issue(filename, exc.reason)]
    else:
        project = Context(routes=tuple(extract_routes(tree, filename)))
        ctx = file_context(project, tree, filename)
        found = analyze_tree(tree, ctx, filename, active, category=_category(category))
        issues = sorted(found, key=lambda i: (i.line, i.column or 0, i.type))
    issues = assign_ids(issues)
    return AnalysisResult(
        score=compute_score(issues),
        issues=tuple(issues),
        files=(filename,),
        context=project,
    )


# ── fix ─────────────────────────────────────────────────────────────


def fix_project(
    root: str | Path,
    *,
    issue_types: Iterable[str] | None = None,
    create_backups: bool | None = None,
    write: bool = True,
    analysis: AnalysisResult | None = None,
    engine: TransformationEngine | None = None,
) -> tuple[FixResult, dict[str, Any]]:
    """Scan *root* (unless *analysis* is given) and apply every available fix.

    Files are rewritten in place unless ``write=False``; backups follow
    ``create_backups`` or the project's ``backups`` setting.
    """
    cfg = _config(root, create_backups=create_backups)
    if analysis is None:
        analysis = run_scan(cfg)
    result = run_fix(
        analysis,
        engine or TransformationEngine.with_default_fixers(),
        issue_types=issue_types,
        write=write,
        create_backups=cfg.create_backups,
        workers=cfg.effective_workers,
    )
    result_dict = result.to_dict()
    validate_instance(result_dict, "fix_result.schema.json")
    return result, result_dict


def fix_source(
    source: str,
    *,
    filename: str = "input.js",
    issue_types: Iterable[str] | None = None,
) -> tuple[AnalysisResult, TransformResult, list[PreviewResult]]:
    """Analyze and transform one in-memory file; returns previews too."""
    analysis = scan_source(source, filename=filename)
    wanted = set(issue_types) if issue_types else None
    issues = [i for i in analysis.issues if wanted is None or i.type in wanted]
    engine = TransformationEngine.with_default_fixers()
    previews = engine.preview(source, issues, file=filename)
    transformed = engine.transform(source, issues, file=filename)
    return analysis, transformed, previews


def preview_project(
    root: str | Path,
    *,
    issue_types: Iterable[str] | None = None,
    analysis: AnalysisResult | None = None,
) -> dict[str, list[PreviewResult]]:
    """Dry-run every fix; ``{file: [PreviewResult, ...]}``, nothing written."""
    cfg = _config(root)
    if analysis is None:
        analysis = run_scan(cfg)
    wanted = set(issue_types) if issue_types else None
    engine = TransformationEngine.with_default_fixers()

    previews: dict[str, list[PreviewResult]] = {}
    for file_id in sorted({i.file for i in analysis.issues}):
        issues = [
            i for i in analysis.issues_for(file_id) if wanted is None or i.type in wanted
        ]
        if not issues:
            continue
        text = (cfg.root / file_id).read_text(encoding="utf-8")
        previews[file_id] = engine.preview(text, issues, file=file_id)
    return previews


# ── report ──────────────────────────────────────────────────────────


def build_report(
    root: str | Path | None = None,
    *,
    fmt: str = "html",
    analysis: AnalysisResult | None = None,
) -> str:
    """Render a report for *root* (or an existing *analysis*) as a string."""
    from prodready.reports.exporters import export_result

    if analysis is None:
        if root is None:
            raise ValueError("build_report needs a root or an analysis")
        analysis, _ = scan_project(root)
    return export_result(analysis, fmt)
