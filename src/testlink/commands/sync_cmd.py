"""
testlink.commands.sync_cmd - Sync command.

Adds missing #[TestedBy] back-references and missing test links, and with
--prune --force removes back-references to tests that no longer exist.
"""

import argparse
import json
import sys

from testlink.commands.project import EXIT_FATAL, EXIT_FINDINGS, EXIT_OK, scan_project
from testlink.exceptions import ConfigError
from testlink.modifiers.phpunit import DEFAULT_ATTRIBUTE_NAMESPACE
from testlink.modifiers.production import ProductionModifier
from testlink.reporting import format_errors, format_sync_result, sync_to_dict
from testlink.sync import (
    Finding,
    FindingKind,
    SyncApplier,
    SyncEngine,
    SyncOptions,
    ValidationReport,
)


def options_from_args(args: argparse.Namespace, config: dict) -> SyncOptions:
    """Command-line switches, falling back to the [sync] config table."""
    sync_config = config.get("sync", {})
    return SyncOptions(
        dry_run=args.dry_run,
        link_only=args.link_only or bool(sync_config.get("link_only", False)),
        prune=args.prune or bool(sync_config.get("prune", False)),
        force=args.force,
        see_tags=getattr(args, "see_tags", False) or bool(sync_config.get("see_tags", False)),
    )


def _class_level_missing(report: ValidationReport) -> list[Finding]:
    """missing-tested-by findings on class-level links, which sync cannot fix."""
    return [
        finding
        for finding in report.of_kind(FindingKind.MISSING_TESTED_BY)
        if finding.target.is_class_level
    ]


def run(args: argparse.Namespace) -> int:
    """
    Run the sync command.

    Returns:
        0 when the project ends up in sync, 1 when findings remain (dangling
        links, skipped prunes) or files failed, 2 for configuration errors
    """
    try:
        project = scan_project(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    options = options_from_args(args, project.config)
    engine = SyncEngine(project.registry, project.production.index)
    report = engine.validate()
    actions = engine.plan(report, options)

    namespace = project.config.get("attributes", {}).get("namespace", DEFAULT_ATTRIBUTE_NAMESPACE)
    applier = SyncApplier(project.adapter, ProductionModifier(namespace))
    result = applier.apply(actions, options)

    if args.json:
        output = sync_to_dict(result)
        output["findings"] = [finding.to_dict() for finding in report.findings]
        print(json.dumps(output, indent=2))
    else:
        for line in format_errors(project.errors + result.errors, project.root):
            print(line, file=sys.stderr)
        if not args.quiet:
            for finding in report.of_kind(FindingKind.DANGLING_LINK) + _class_level_missing(report):
                print(f"{finding} (not fixed)")
            if options.see_tags:
                for issue in report.see_issues:
                    if not issue.fixable:
                        print(f"⚠️  {issue.message} (not fixed)")
            if not options.prune:
                for finding in report.of_kind(FindingKind.ORPHANED_BACK_REFERENCE):
                    print(f"{finding} (use --prune --force to remove)")
            for line in format_sync_result(result, project.root):
                print(line)

    unresolved = (
        report.of_kind(FindingKind.DANGLING_LINK)
        or _class_level_missing(report)
        or (report.of_kind(FindingKind.ORPHANED_BACK_REFERENCE) and not (options.prune and options.force))
        or result.failed
        or result.skipped
        or (options.dry_run and result.applied)
    )
    if unresolved or project.errors or result.errors:
        return EXIT_FINDINGS
    return EXIT_OK
