"""
testlink.commands.pair_cmd - Pair command.

Resolves @placeholder markers into real links: every production method
marked #[TestedBy('@A')] is linked with every test marked '@A'.
"""

import argparse
import json
import sys

from testlink.commands.project import EXIT_FATAL, EXIT_FINDINGS, EXIT_OK, scan_project
from testlink.exceptions import ConfigError
from testlink.modifiers.phpunit import DEFAULT_ATTRIBUTE_NAMESPACE
from testlink.modifiers.production import ProductionModifier
from testlink.pairing import PlaceholderApplier, PlaceholderRegistry, PlaceholderResolver
from testlink.reporting import (
    RULE,
    format_errors,
    format_pair_result,
    format_pending_pairs,
    format_placeholder_summary,
    pair_to_dict,
)

MARKER_HELP = [
    "Placeholders use @syntax, for example:",
    "  Production: #[TestedBy('@A')]",
    "  Test (Pest): ->linksAndCovers('@A')",
    "  Test (PHPUnit): #[LinksAndCovers('@A')]",
]


def run(args: argparse.Namespace) -> int:
    """
    Run the pair command.

    Returns:
        0 when every requested marker was paired (or none exist), 1 when a
        marker cannot be paired or a file failed, 2 for configuration errors
    """
    try:
        project = scan_project(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    placeholders = PlaceholderRegistry.from_project(project.registry, project.production.index)
    resolver = PlaceholderResolver(placeholders)
    summary = resolver.summary()

    if not summary:
        if args.json:
            print(json.dumps(pair_to_dict(summary, resolver.resolve(), None), indent=2))
        elif not args.quiet:
            print("⚠️  No placeholders found.")
            for line in MARKER_HELP:
                print(line)
        return EXIT_OK

    if args.placeholder:
        plan = resolver.resolve_placeholder(args.placeholder)
    else:
        plan = resolver.resolve()

    result = None
    if not plan.has_errors and plan.actions:
        namespace = project.config.get("attributes", {}).get("namespace", DEFAULT_ATTRIBUTE_NAMESPACE)
        applier = PlaceholderApplier(project.adapter, ProductionModifier(namespace))
        result = applier.apply(plan.actions, dry_run=args.dry_run)

    if args.json:
        print(json.dumps(pair_to_dict(summary, plan, result), indent=2))
    else:
        for line in format_errors(project.errors + (result.errors if result else []), project.root):
            print(line, file=sys.stderr)
        for error in plan.errors:
            print(f"❌ {error}", file=sys.stderr)
        if not args.quiet:
            print("Found placeholders:")
            for line in format_placeholder_summary(summary):
                print(line)
            for warning in plan.warnings:
                print(f"⚠️  {warning}")
            if result is not None:
                for line in format_pending_pairs(plan, project.root):
                    print(line)
                for line in format_pair_result(result):
                    print(line)
            elif not plan.has_errors:
                print(RULE)
                print("✓ No actions to perform.")

    if plan.has_errors or project.errors or (result is not None and result.errors):
        return EXIT_FINDINGS
    return EXIT_OK
