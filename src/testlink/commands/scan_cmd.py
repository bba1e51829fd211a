"""
testlink.commands.scan_cmd - Scan and validate command.

Scans tests and production code and reports every link that is out of
sync. Also serves the ``validate`` alias.
"""

import argparse
import json
import sys

from testlink.commands.project import EXIT_FATAL, EXIT_FINDINGS, EXIT_OK, scan_project
from testlink.exceptions import ConfigError
from testlink.reporting import (
    format_errors,
    format_findings,
    format_see_issues,
    format_summary,
    scan_to_dict,
)
from testlink.sync import SyncEngine


def run(args: argparse.Namespace) -> int:
    """
    Run the scan command.

    Args:
        args: Parsed command line arguments

    Returns:
        0 when everything is in sync, 1 when findings or per-file errors
        exist, 2 when the configuration is unusable
    """
    try:
        project = scan_project(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    if not args.quiet and not args.json:
        print(f"Scanning {project.root} ({', '.join(project.adapter.names)})")

    report = SyncEngine(project.registry, project.production.index).validate()

    if args.json:
        print(json.dumps(scan_to_dict(project.scan, project.production, report), indent=2))
    else:
        for line in format_errors(project.errors, project.root):
            print(line, file=sys.stderr)
        if not args.quiet:
            for line in format_findings(report) + format_see_issues(report):
                print(line)
            if args.verbose:
                for identifier in project.registry.duplicate_identifiers():
                    print(f"⚠️  duplicate test identifier: {identifier}")
            for line in format_summary(project.scan, project.production, report):
                print(line)

    if report.has_findings or project.errors:
        return EXIT_FINDINGS
    return EXIT_OK
