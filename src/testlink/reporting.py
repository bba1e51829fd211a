"""
testlink.reporting - Console and JSON renderings of scan and sync results.

Functions here build text or plain dicts; the commands decide where to
print them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from testlink.pairing.models import PairResult, PlaceholderResult
from testlink.registry import TestLinkRegistry
from testlink.scanner import FileError, ProductionScanResult, ScanResult
from testlink.sync.models import SyncResult, ValidationReport

RULE = "─" * 60


def _display_path(path: Path, root: Path | None) -> str:
    if root is None:
        return str(path)
    try:
        return str(Path(path).resolve().relative_to(root))
    except ValueError:
        return str(path)


def format_errors(errors: list[FileError], root: Path | None = None) -> list[str]:
    """One line per failed file, parse errors first."""
    lines = []
    for error in sorted(errors, key=lambda e: (e.kind != "parse", str(e.file_path))):
        lines.append(f"❌ {error.kind} error: {_display_path(error.file_path, root)}: {error.reason}")
    return lines


def format_findings(report: ValidationReport) -> list[str]:
    return [str(finding) for finding in report.findings]


def format_see_issues(report: ValidationReport) -> list[str]:
    """@see references that are not fully qualified, with the fix when one is known."""
    return [f"⚠️  {issue.message}" for issue in report.see_issues]


def format_summary(
    scan: ScanResult,
    production: ProductionScanResult,
    report: ValidationReport,
) -> list[str]:
    """Closing summary of a scan: counts, then finding totals."""
    lines = [
        RULE,
        f"Scanned {scan.files_scanned} test files ({scan.tests_found} tests), "
        f"{production.files_scanned} production files",
    ]
    if scan.skipped:
        lines.append(f"Skipped {scan.skipped} files not owned by any framework")
    errors = scan.errors + production.errors
    if errors:
        lines.append(f"❌ {len(errors)} files could not be processed")
    if report.findings:
        counts: dict[str, int] = {}
        for finding in report.findings:
            counts[finding.kind.value] = counts.get(finding.kind.value, 0) + 1
        for kind, count in sorted(counts.items()):
            lines.append(f"⚠️  {count} {kind}")
    else:
        lines.append(f"✓ {report.consistent} links in sync")
    if report.see_issues:
        fixable = sum(1 for issue in report.see_issues if issue.fixable)
        lines.append(
            f"⚠️  {len(report.see_issues)} @see references not fully qualified "
            f"({fixable} fixable with sync --see-tags)"
        )
    return lines


def scan_to_dict(
    scan: ScanResult,
    production: ProductionScanResult,
    report: ValidationReport,
) -> dict[str, Any]:
    return {
        "files_scanned": scan.files_scanned,
        "tests_found": scan.tests_found,
        "skipped": scan.skipped,
        "production_files_scanned": production.files_scanned,
        "consistent": report.consistent,
        "findings": [finding.to_dict() for finding in report.findings],
        "see_issues": [issue.to_dict() for issue in report.see_issues],
        "errors": [_error_to_dict(e) for e in scan.errors + production.errors],
    }


def sync_to_dict(result: SyncResult) -> dict[str, Any]:
    return {
        "dry_run": result.dry_run,
        "applied": [action.to_dict() for action in result.applied],
        "skipped": [action.to_dict() for action in result.skipped],
        "failed": [action.to_dict() for action in result.failed],
        "files_modified": [str(path) for path in result.files_modified],
        "errors": [_error_to_dict(e) for e in result.errors],
    }


def format_sync_result(result: SyncResult, root: Path | None = None) -> list[str]:
    verb = "Would" if result.dry_run else "Did"
    lines = []
    for action in result.applied:
        lines.append(f"  {action.describe()}")
    for action in result.skipped:
        lines.append(f"  skipped (needs --force): {action.describe()}")
    for action in result.failed:
        lines.append(f"  failed: {action.describe()}")
    lines.append(RULE)
    if result.files_modified:
        lines.append(f"{verb} modify {len(result.files_modified)} files:")
        lines.extend(f"  {_display_path(path, root)}" for path in result.files_modified)
    else:
        lines.append("✓ Nothing to change")
    return lines


def format_link_report(registry: TestLinkRegistry) -> list[str]:
    """Links grouped by production method, tests indented beneath each."""
    lines = []
    for target in registry.production_methods():
        lines.append(target.canonical)
        for test in registry.get_tests_for_method(target):
            marker = "covers" if registry.has_link_coverage(test, target) else "links"
            lines.append(f"  {marker}: {test}")
    return lines


def _error_to_dict(error: FileError) -> dict[str, str]:
    return {"file": str(error.file_path), "kind": error.kind, "reason": error.reason}


def format_placeholder_summary(summary: dict[str, dict[str, int]]) -> list[str]:
    """One line per marker: how many links pairing it would write."""
    lines = []
    for placeholder, counts in summary.items():
        production, tests = counts["production"], counts["tests"]
        status = "✓" if production and tests else "❌"
        lines.append(
            f"  {status} {placeholder}  {production} production × {tests} tests = {production * tests} links"
        )
    return lines


def _short_name(identifier: str) -> str:
    """Drop the namespace: Tests\\Unit\\FooTest::test_a -> FooTest::test_a."""
    class_part, sep, rest = identifier.partition("::")
    return class_part.rsplit("\\", 1)[-1] + sep + rest


def format_pending_pairs(result: PlaceholderResult, root: Path | None = None) -> list[str]:
    """Files a pairing plan touches, each with the replacements it gets."""
    lines = []
    if result.production_files:
        lines.append("Production files:")
        for path in result.production_files:
            lines.append(f"  {_display_path(path, root)}")
            for action in result.actions_for_production_file(path):
                lines.append(f"    {action.placeholder} → {_short_name(action.test_reference.qualified)}")
    if result.test_files:
        lines.append("Test files:")
        for path in result.test_files:
            lines.append(f"  {_display_path(path, root)}")
            for action in result.actions_for_test_file(path):
                lines.append(f"    {action.placeholder} → {_short_name(str(action.production_method))}")
    return lines


def format_pair_result(result: PairResult) -> list[str]:
    files, changes = len(result.files_modified), result.changes
    if result.dry_run:
        return [
            RULE,
            f"Dry run complete. Would modify {files} file(s) with {changes} change(s).",
            "Run without --dry-run to apply changes: testlink pair",
        ]
    return [RULE, f"✓ Pairing complete. Modified {files} file(s) with {changes} change(s)."]


def pair_to_dict(
    summary: dict[str, dict[str, int]],
    plan: PlaceholderResult,
    result: PairResult | None,
) -> dict[str, Any]:
    return {
        "placeholders": summary,
        "actions": [action.to_dict() for action in plan.actions],
        "errors": plan.errors,
        "warnings": plan.warnings,
        "dry_run": result.dry_run if result else False,
        "files_modified": [str(path) for path in result.files_modified] if result else [],
        "changes": result.changes if result else 0,
        "file_errors": [_error_to_dict(e) for e in result.errors] if result else [],
    }
