"""CLI entry point: ``agentlint analyze``, ``fix``, ``restore`` and friends."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from agentlint import __version__
from agentlint.config import Settings
from agentlint.fixer import apply_fixes, cleanup_backups, preview_fixes, restore_from_backup
from agentlint.fixer.schemas import FixResult
from agentlint.logger import AuditLogger
from agentlint.logging_config import setup_logging
from agentlint.report import generate_fix_report, generate_report
from agentlint.services.lint_service import LintRun, project_root_for, run_lint
from agentlint.suppression import (
    clear_auto_suppressions,
    export_auto_suppressions,
    generate_suppression_summary,
    get_project_id,
    import_auto_suppressions,
)
from agentlint.suppression.schemas import SuppressionExport


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"agentlint {__version__}")
        return 0

    settings = Settings()
    setup_logging("DEBUG" if getattr(args, "verbose", False) else settings.log_level)

    if args.command == "analyze":
        return _run_analyze(args, settings)
    if args.command == "fix":
        return _run_fix(args, settings)
    if args.command == "restore":
        return _run_restore(args, settings)
    if args.command == "clean-backups":
        return _run_clean_backups(args, settings)
    if args.command == "suppressions":
        return _run_suppressions(args, settings)
    parser.print_help()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="agentlint",
        description=(
            "Static analysis for agent, prompt, skill, manifest "
            "and project-memory files."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser("analyze", help="Analyze a directory or file")
    analyze.add_argument("path", type=str, help="Directory or file to analyze")
    analyze.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Include LOW certainty findings and debug logging",
    )
    analyze.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable results instead of markdown",
    )
    analyze.add_argument(
        "--config",
        "-c",
        default=None,
        help="Suppression config (default: <project>/.agentlint.yaml)",
    )
    analyze.add_argument(
        "--no-learn",
        action="store_true",
        help="Do not record new learned suppressions",
    )

    fix = sub.add_parser("fix", help="Apply HIGH certainty auto-fixes")
    fix.add_argument("path", type=str, help="Directory or file to fix")
    fix.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    fix.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff of the pending changes",
    )
    fix.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not write backup files before modifying",
    )
    fix.add_argument(
        "--config",
        "-c",
        default=None,
        help="Suppression config (default: <project>/.agentlint.yaml)",
    )

    restore = sub.add_parser("restore", help="Restore a file from its backup")
    restore.add_argument("file", type=str, help="File to restore")

    clean = sub.add_parser("clean-backups", help="Delete backup files")
    clean.add_argument("directory", type=str, help="Directory to clean")

    supp = sub.add_parser(
        "suppressions", help="Manage learned suppressions"
    )
    supp.add_argument(
        "action",
        choices=["clear", "export", "import"],
        help="Operation on the current project's learned suppressions",
    )
    supp.add_argument(
        "--project",
        "-p",
        default=".",
        help="Project directory (default: current directory)",
    )
    supp.add_argument(
        "--file",
        "-f",
        default=None,
        help="Export destination or import source (default: stdout/stdin)",
    )

    return parser


def _require_path(raw: str) -> Path | None:
    path = Path(raw).resolve()
    if not path.exists():
        print(f"Error: {path} does not exist", file=sys.stderr)
        return None
    return path


def _log_stages(audit: AuditLogger, run: LintRun) -> None:
    for stage in run.stages:
        if stage.error:
            audit.log_error(run.run_id, stage.name, stage.error)
    audit.log_run(
        run.run_id,
        str(run.target),
        len(run.artifacts),
        len(run.results.findings),
        len(run.filtered.suppressed),
        run.total_duration_ms,
    )


def _run_analyze(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the analyze command."""
    target = _require_path(args.path)
    if target is None:
        return 1

    run = run_lint(target, settings, config_path=args.config, no_learn=args.no_learn)
    audit = AuditLogger(settings.log_dir, settings.log_level)
    try:
        _log_stages(audit, run)
    finally:
        audit.close()

    summary = generate_suppression_summary(run.filtered)
    if args.json:
        payload = run.results.to_dict()
        payload["suppressed"] = summary.model_dump()
        payload["learned"] = [c.model_dump() for c in run.learned]
        payload["artifacts"] = len(run.artifacts)
        print(json.dumps(payload, indent=2))
    else:
        print(
            generate_report(
                run.results,
                target_path=args.path,
                verbose=args.verbose,
                auto_learned=run.learned,
                artifacts_found=len(run.artifacts),
                suppression=summary,
            )
        )
    return 0 if run.ok else 1


def _run_fix(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the fix command against current active findings."""
    target = _require_path(args.path)
    if target is None:
        return 1

    run = run_lint(target, settings, config_path=args.config, no_learn=True)
    findings = run.results.findings

    if args.diff:
        for preview in preview_fixes(findings):
            print(preview.diff)

    result = apply_fixes(
        findings,
        dry_run=args.dry_run,
        backup=not args.no_backup,
        backup_suffix=settings.backup_suffix,
    )

    audit = AuditLogger(settings.log_dir, settings.log_level)
    try:
        _log_fixes(audit, run.run_id, result)
    finally:
        audit.close()

    print(generate_fix_report(result))
    return 1 if result.errors else 0


def _log_fixes(audit: AuditLogger, run_id: str, result: FixResult) -> None:
    for entry in result.applied:
        audit.log_fix(run_id, entry.file, entry.pattern_id, "applied", result.dry_run)
    for skipped in result.skipped:
        audit.log_fix(run_id, skipped.file, skipped.pattern_id, "skipped", result.dry_run)
    for error in result.errors:
        audit.log_fix(run_id, error.file, error.pattern_id, "error", result.dry_run)
        audit.log_error(run_id, "fixer", f"{error.file}: {error.error}")


def _run_restore(args: argparse.Namespace, settings: Settings) -> int:
    if restore_from_backup(args.file, settings.backup_suffix):
        print(f"Restored {args.file}")
        return 0
    print(f"Error: no backup found for {args.file}", file=sys.stderr)
    return 1


def _run_clean_backups(args: argparse.Namespace, settings: Settings) -> int:
    removed = cleanup_backups(args.directory, settings.backup_suffix)
    print(f"Removed {removed} backup file(s)")
    return 0


def _run_suppressions(args: argparse.Namespace, settings: Settings) -> int:
    """Clear, export or import the learned table for one project."""
    project = Path(args.project).resolve()
    project_id = get_project_id(project_root_for(project))
    store = settings.suppression_path

    if args.action == "clear":
        clear_auto_suppressions(store, project_id)
        print(f"Cleared learned suppressions for {project_id}")
        return 0

    if args.action == "export":
        exported = export_auto_suppressions(store, project_id).model_dump_json(indent=2)
        if args.file:
            Path(args.file).write_text(exported, encoding="utf-8")
        else:
            print(exported)
        return 0

    raw = Path(args.file).read_text(encoding="utf-8") if args.file else sys.stdin.read()
    try:
        data = SuppressionExport.model_validate_json(raw)
    except ValidationError as exc:
        print(f"Error: invalid suppression export: {exc}", file=sys.stderr)
        return 1
    import_auto_suppressions(store, project_id, data)
    print(f"Imported {len(data.suppressions)} pattern(s) into {project_id}")
    return 0


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    run()
