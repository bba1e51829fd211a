"""
testlink.cli - Command-line interface.

Main entry point for the testlink CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from testlink import __version__
from testlink.commands import pair_cmd, report_cmd, scan_cmd, sync_cmd


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path",
        type=Path,
        help="Project root (default: from config, else current directory)",
        metavar="PATH",
    )
    parser.add_argument(
        "--framework",
        help="auto, pest, phpunit, or a comma-separated list (default: auto)",
        metavar="NAME",
    )
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="testlink",
        description="Keep PHP test links and #[TestedBy] back-references in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  testlink scan                    # Report links out of sync
  testlink sync                    # Add missing #[TestedBy] and test links
  testlink sync --dry-run          # Show what sync would change
  testlink sync --prune --force    # Also remove orphaned #[TestedBy]
  testlink pair --dry-run          # Preview resolving @placeholder markers
  testlink report -j               # Links by production method, as JSON

For detailed command help: testlink <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"testlink {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scan command
    scan_parser = subparsers.add_parser(
        "scan",
        aliases=["validate"],
        help="Report links and back-references that are out of sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Findings:
  missing-tested-by         Test links to a method that does not name it
  dangling-link             Test links to a class or method that does not exist
  orphaned-back-reference   #[TestedBy] names a test that does not exist
  missing-link              #[TestedBy] names a test that does not link back

Exit codes: 0 in sync, 1 findings or unreadable files, 2 configuration error
""",
    )
    _add_project_options(scan_parser)

    # sync command
    sync_parser = subparsers.add_parser(
        "sync",
        help="Rewrite sources so links and back-references agree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  testlink sync                    # Add missing #[TestedBy] and links
  testlink sync --link-only        # Add links() instead of linksAndCovers()
  testlink sync --prune --force    # Remove #[TestedBy] naming missing tests

Dangling links are reported but never removed.
""",
    )
    _add_project_options(sync_parser)
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show planned changes without writing files",
    )
    sync_parser.add_argument(
        "--link-only",
        action="store_true",
        help="Add links without coverage",
    )
    sync_parser.add_argument(
        "--prune",
        action="store_true",
        help="Plan removal of #[TestedBy] naming tests that no longer exist",
    )
    sync_parser.add_argument(
        "--force",
        action="store_true",
        help="Required with --prune to actually remove back-references",
    )
    sync_parser.add_argument(
        "--see-tags",
        action="store_true",
        help="Also write @see tags for back-references and qualify existing ones",
    )

    # pair command
    pair_parser = subparsers.add_parser(
        "pair",
        help="Replace @placeholder markers with real links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  testlink pair                        # Resolve every placeholder
  testlink pair --placeholder=@A       # Resolve one placeholder
  testlink pair --dry-run              # Show what would change

Markers:
  #[TestedBy('@A')]                  # Production method
  ->linksAndCovers('@A')             # Pest test
  #[LinksAndCovers('@A')]            # PHPUnit test
  @@A                                 # Write @see tags instead (PHPUnit only)
""",
    )
    _add_project_options(pair_parser)
    pair_parser.add_argument(
        "--placeholder",
        help="Resolve only this marker (e.g. @user-create)",
        metavar="ID",
    )
    pair_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show planned changes without writing files",
    )

    # report command
    report_parser = subparsers.add_parser(
        "report",
        help="List declared links grouped by production method",
    )
    _add_project_options(report_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 in sync, 1 findings, 2 fatal error)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install testlink[completion]
    # Then activate: eval "$(register-python-argcomplete testlink)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command in ("scan", "validate"):
            return scan_cmd.run(args)
        elif args.command == "sync":
            return sync_cmd.run(args)
        elif args.command == "pair":
            return pair_cmd.run(args)
        elif args.command == "report":
            return report_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
