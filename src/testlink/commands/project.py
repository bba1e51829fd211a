"""
testlink.commands.project - Shared project loading for the commands.

Loads configuration, builds the adapters and runs both scanners so every
command starts from the same registry and production index.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from testlink import runtime
from testlink.adapters import CompositeAdapter
from testlink.config import load_config
from testlink.exceptions import ConfigError
from testlink.modifiers.phpunit import DEFAULT_ATTRIBUTE_NAMESPACE
from testlink.registry import TestLinkRegistry
from testlink.scanner import (
    FileError,
    ProductionScanner,
    ProductionScanResult,
    ScanResult,
    TestScanner,
)

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FATAL = 2


@dataclass
class ProjectScan:
    """
    Everything a command needs after scanning a project.

    Attributes:
        config: Merged configuration
        root: Absolute project root
        adapter: Adapters in use
        registry: Tests and their declared links
        scan: Test scan counts and errors
        production: Production index, counts and errors
    """

    config: dict[str, Any]
    root: Path
    adapter: CompositeAdapter
    registry: TestLinkRegistry
    scan: ScanResult
    production: ProductionScanResult

    @property
    def errors(self) -> list[FileError]:
        return self.scan.errors + self.production.errors


def load_configuration(args: argparse.Namespace) -> dict[str, Any]:
    """
    Load configuration for args.

    Raises:
        ConfigError: If the config file is unreadable or invalid
    """
    start = Path(args.path) if getattr(args, "path", None) else Path.cwd()
    return load_config(getattr(args, "config", None), start_path=start)


def project_root(args: argparse.Namespace, config: dict[str, Any]) -> Path:
    if getattr(args, "path", None):
        return Path(args.path).resolve()
    return Path(config["project"]["root"])


def framework_setting(args: argparse.Namespace, config: dict[str, Any]) -> str:
    """--framework wins over [frameworks] enabled, which may be a list."""
    framework = getattr(args, "framework", None)
    if framework:
        return framework
    enabled = config.get("frameworks", {}).get("enabled", "auto")
    if isinstance(enabled, list):
        return ",".join(enabled) or "auto"
    return enabled


def build_adapter(args: argparse.Namespace, config: dict[str, Any], root: Path) -> CompositeAdapter:
    """
    Adapters for the project, registered with the runtime on first use.

    Raises:
        ConfigError: If an unknown framework is requested
    """
    try:
        adapter = CompositeAdapter.for_project(
            root,
            framework_setting(args, config),
            config.get("attributes", {}).get("namespace", DEFAULT_ATTRIBUTE_NAMESPACE),
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e
    runtime.bootstrap(adapter.adapters)
    return adapter


def scan_project(args: argparse.Namespace) -> ProjectScan:
    """
    Load config and scan tests and production code.

    Raises:
        ConfigError: If configuration or composer.json is unusable
    """
    config = load_configuration(args)
    root = project_root(args, config)
    adapter = build_adapter(args, config, root)

    scanner = TestScanner(adapter, config)
    scanner.set_project_root(root)
    registry = TestLinkRegistry()
    scan = scanner.scan(registry)

    production_scanner = ProductionScanner(config)
    production_scanner.set_project_root(root)
    production = production_scanner.scan()

    return ProjectScan(config, root, adapter, registry, scan, production)
