"""
testlink.commands.report_cmd - List declared links by production method.
"""

import argparse
import json
import sys

from testlink.commands.project import EXIT_FATAL, EXIT_OK, scan_project
from testlink.exceptions import ConfigError
from testlink.reporting import format_errors, format_link_report


def run(args: argparse.Namespace) -> int:
    """Run the report command."""
    try:
        project = scan_project(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    registry = project.registry
    if args.json:
        output = {
            "methods": registry.to_dict(),
            "tests": registry.test_count,
            "links": registry.link_count,
        }
        print(json.dumps(output, indent=2))
        return EXIT_OK

    for line in format_errors(project.errors, project.root):
        print(line, file=sys.stderr)
    lines = format_link_report(registry)
    if not lines:
        if not args.quiet:
            print("No links declared.")
        return EXIT_OK
    for line in lines:
        print(line)
    if not args.quiet:
        print(f"\n{registry.link_count} links from {registry.test_count} tests")
    return EXIT_OK
