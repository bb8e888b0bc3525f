"""CLI entry-point for prodready.

Usage:
    prodready <path>
    prodready scan [PATH] [--format pretty|json] [--category C] [--quiet]
    prodready fix [PATH] [--preview] [--type T ...] [--no-backup]
    prodready report [PATH] [--format html|json|markdown] [--output FILE]
    prodready validate <instance.json> <schema_name>
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from prodready import __version__, rules
from prodready.model import Category
from prodready.policy.thresholds import exit_code_from_score, tier_from_score
from prodready.utils.exit_codes import ExitCode
from prodready.utils.json_norm import stable_json_dump

_TIER_EMOJI = {"green": "🟢", "yellow": "🟡", "red": "🔴"}
_SEVERITY_MARK = {"critical": "✖", "high": "!", "medium": "~", "low": "·"}
_MAX_LISTED = 50


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_human(result_dict: dict, *, quiet: bool = False) -> None:
    """Pretty-print a human-readable summary to stderr."""
    score = result_dict.get("score", 0)
    tier = result_dict.get("tier") or tier_from_score(score).value
    emoji = _TIER_EMOJI.get(tier, "⚪")
    total = result_dict.get("totalIssues", 0)

    print(f"\n{emoji}  Production readiness: {score}/100  ({tier.upper()})", file=sys.stderr)
    print(f"   Issues   : {total} in {len(result_dict.get('files', []))} file(s)", file=sys.stderr)

    by_sev = result_dict.get("bySeverity", {})
    parts = [f"{k}={v}" for k, v in by_sev.items() if v]
    if parts:
        print(f"   Severity : {', '.join(parts)}", file=sys.stderr)

    if quiet:
        print("", file=sys.stderr)
        return

    issues = result_dict.get("issues", [])
    if issues:
        print("", file=sys.stderr)
    for issue in issues[:_MAX_LISTED]:
        mark = _SEVERITY_MARK.get(issue["severity"], "?")
        loc = f"{issue['file']}:{issue['line']}"
        print(f"   {mark} [{issue['severity'].upper()}] {loc} — {issue['message']}", file=sys.stderr)
    if len(issues) > _MAX_LISTED:
        print(f"   … and {len(issues) - _MAX_LISTED} more", file=sys.stderr)
    print("", file=sys.stderr)


def _add_common(p: argparse.ArgumentParser, *, top_level: bool = False) -> None:
    # Subcommands must not reset a -v given before the command name.
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False if top_level else argparse.SUPPRESS,
        help="Log debug output to stderr.",
    )


def _add_scan_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--format",
        dest="scan_format",
        choices=("pretty", "json"),
        default="pretty",
        help="pretty: summary on stderr; json: full AnalysisResult on stdout.",
    )
    p.add_argument(
        "--category",
        choices=[c.value for c in Category],
        default=None,
        help="Only run detectors of this category.",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        default=False,
        help="Print the summary only, not each issue.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prodready",
        description="Detect and auto-fix production-readiness defects in JavaScript.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    _add_common(p, top_level=True)
    sub = p.add_subparsers(dest="command")

    # ── scan ────────────────────────────────────────────────────────
    scan_p = sub.add_parser("scan", help="Analyze a project and print its score.")
    scan_p.add_argument("path", nargs="?", type=Path, default=Path("."))
    _add_scan_options(scan_p)
    _add_common(scan_p)

    # ── fix ─────────────────────────────────────────────────────────
    fix_p = sub.add_parser("fix", help="Apply automatic fixes in place.")
    fix_p.add_argument("path", nargs="?", type=Path, default=Path("."))
    fix_p.add_argument(
        "--preview",
        action="store_true",
        default=False,
        help="Show the diffs without writing any file.",
    )
    fix_p.add_argument(
        "--type",
        dest="types",
        nargs="+",
        choices=sorted(rules.FIXABLE_TYPES),
        default=None,
        help="Only fix issues of these types.",
    )
    fix_p.add_argument(
        "--no-backup",
        dest="backup",
        action="store_false",
        default=None,
        help="Do not write <file>.bak before rewriting a file.",
    )
    _add_common(fix_p)

    # ── report ──────────────────────────────────────────────────────
    report_p = sub.add_parser("report", help="Render a report file.")
    report_p.add_argument("path", nargs="?", type=Path, default=Path("."))
    report_p.add_argument(
        "--format",
        dest="report_format",
        choices=("html", "json", "markdown"),
        default="html",
    )
    report_p.add_argument(
        "--output",
        "-o",
        dest="report_output",
        type=Path,
        default=None,
        help="Write the report here (default: stdout).",
    )
    _add_common(report_p)

    # ── validate ────────────────────────────────────────────────────
    val_p = sub.add_parser("validate", help="Validate a JSON file against a bundled schema.")
    val_p.add_argument("instance", help="Path to the JSON instance file.")
    val_p.add_argument("schema_name", help="Schema filename, e.g. analysis_result.schema.json.")
    _add_common(val_p)

    return p


def _build_default_parser() -> argparse.ArgumentParser:
    """Parser for ``prodready <path> [scan options]``.

    Used when the first positional token is not a known subcommand, so that
    the path is not mistaken for a command name.
    """
    p = argparse.ArgumentParser(
        prog="prodready",
        description="Detect and auto-fix production-readiness defects in JavaScript.",
    )
    p.add_argument("path", type=Path, help="Project directory to scan.")
    _add_scan_options(p)
    _add_common(p, top_level=True)
    p.set_defaults(command="scan")
    return p


def _resolve_root(path: Path) -> Path | None:
    target = path.resolve()
    if not target.exists():
        print(f"error: path does not exist: {target}", file=sys.stderr)
        return None
    return target if target.is_dir() else target.parent


# ── handlers ────────────────────────────────────────────────────────


def _handle_scan(args: argparse.Namespace) -> int:
    from prodready.api import scan_project

    root = _resolve_root(args.path)
    if root is None:
        return ExitCode.ERROR
    _, result_dict = scan_project(root, category=args.category)

    if args.scan_format == "json":
        stable_json_dump(result_dict, sys.stdout)
    else:
        _print_human(result_dict, quiet=args.quiet)
    return exit_code_from_score(result_dict["score"])


def _handle_fix(args: argparse.Namespace) -> int:
    from prodready.api import fix_project, preview_project, scan_project

    root = _resolve_root(args.path)
    if root is None:
        return ExitCode.ERROR

    before, _ = scan_project(root)
    if args.preview:
        previews = preview_project(root, issue_types=args.types, analysis=before)
        shown = 0
        for file_id, items in previews.items():
            for item in items:
                if item.can_fix and item.diff:
                    shown += 1
                    print(f"# {item.issue_id}: {item.explanation}")
                    sys.stdout.write(item.diff)
                else:
                    print(f"{file_id}: {item.issue_id}: {item.error}", file=sys.stderr)
        print(f"\n{shown} fix(es) available; nothing was written.", file=sys.stderr)
        return ExitCode.SUCCESS

    result, _ = fix_project(
        root,
        issue_types=args.types,
        create_backups=args.backup,
        analysis=before,
    )
    for fix in result.applied_fixes:
        if not fix.success:
            print(f"   ✖ {fix.issue_id}: {fix.error}", file=sys.stderr)

    after, _ = scan_project(root)
    print(
        f"\nFixed {result.successful}/{result.total} issue(s) "
        f"in {len(result.transformed_files)} file(s).",
        file=sys.stderr,
    )
    print(f"Score: {before.score} → {after.score}", file=sys.stderr)
    return ExitCode.SUCCESS if result.failed == 0 else ExitCode.VIOLATION


def _handle_report(args: argparse.Namespace) -> int:
    from prodready.api import scan_project
    from prodready.reports.exporters import export_result

    root = _resolve_root(args.path)
    if root is None:
        return ExitCode.ERROR
    result, _ = scan_project(root)
    output = export_result(result, fmt=args.report_format)

    if args.report_output:
        out: Path = args.report_output
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(output, encoding="utf-8")
        print(f"Report written to {out}", file=sys.stderr)
    else:
        sys.stdout.write(output)
    return ExitCode.SUCCESS


def _handle_validate(args: argparse.Namespace) -> int:
    import json

    import jsonschema

    from prodready.contracts.load import validate_instance

    try:
        instance = json.loads(Path(args.instance).read_text(encoding="utf-8"))
        validate_instance(instance, args.schema_name)
    except jsonschema.exceptions.ValidationError as e:
        # 1 = schema violation; 2 = missing file / unknown schema / bad JSON
        print(f"FAIL: {e.message}", file=sys.stderr)
        return ExitCode.VIOLATION
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return ExitCode.ERROR
    print("OK")
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Entry-point — scan exits 0 = green, 1 = yellow, 2 = red."""
    from prodready.errors import ProdReadyError

    effective_argv = list(argv) if argv is not None else sys.argv[1:]

    known_commands = {"scan", "fix", "report", "validate"}
    first_positional = next((a for a in effective_argv if not a.startswith("-")), None)
    if first_positional and first_positional not in known_commands:
        args = _build_default_parser().parse_args(effective_argv)
    else:
        args = _build_parser().parse_args(effective_argv)

    _configure_logging(bool(getattr(args, "verbose", False)))

    if args.command is None:
        args = _build_parser().parse_args(["scan", *effective_argv])

    handlers = {
        "scan": _handle_scan,
        "fix": _handle_fix,
        "report": _handle_report,
        "validate": _handle_validate,
    }
    try:
        return handlers[args.command](args)
    except ProdReadyError as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR


if __name__ == "__main__":
    raise SystemExit(main())
