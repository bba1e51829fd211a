"""
testlink.scanner - Discover test and production files and parse them.

TestScanner walks the test tree with the adapters' glob patterns, hands
each owned file to its adapter's parser and fills a TestLinkRegistry.
ProductionScanner does the same for production code and builds a
ProductionIndex. Both collect per-file failures instead of raising.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from testlink.adapters import CompositeAdapter
from testlink.config.autoload import (
    AutoloadMapping,
    NamespaceResolver,
    composer_mappings,
    load_autoload_mappings,
    read_composer,
)
from testlink.core.models import CANONICAL_SEPARATOR, ParsedTestCase
from testlink.exceptions import ParseError, SourceReadError
from testlink.parsers.production import ProductionIndex, ProductionParser
from testlink.registry import TestLinkRegistry

ERROR_PARSE = "parse"
ERROR_IO = "io"
ERROR_TARGET = "target"

DEFAULT_PRODUCTION_DIRS = ["src", "app"]


@dataclass
class FileError:
    """
    A file that could not be processed.

    Attributes:
        file_path: The offending file
        reason: Why it failed
        kind: ERROR_PARSE for malformed source, ERROR_IO for read/write
            failures, ERROR_TARGET when an edit names a test or method the
            file does not contain
    """

    file_path: Path
    reason: str
    kind: str = ERROR_PARSE

    def __str__(self) -> str:
        return f"{self.file_path}: {self.reason}"


@dataclass
class ScanResult:
    """
    Outcome of a test scan.

    Attributes:
        files_scanned: Files parsed successfully
        tests_found: Tests added to the registry
        skipped: Files matched by a pattern but owned by no adapter
        errors: Files that failed to parse or read
        frameworks: Relative file path -> adapter name, for parsed files
    """

    files_scanned: int = 0
    tests_found: int = 0
    skipped: int = 0
    errors: list[FileError] = field(default_factory=list)
    frameworks: dict[str, str] = field(default_factory=dict)

    @property
    def parse_errors(self) -> list[FileError]:
        return [e for e in self.errors if e.kind == ERROR_PARSE]

    @property
    def io_errors(self) -> list[FileError]:
        return [e for e in self.errors if e.kind == ERROR_IO]


def _relative(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _excluded(relative: str, exclude: list[str]) -> bool:
    return any(fnmatch.fnmatch(relative, pattern) for pattern in exclude)


def glob_files(root: Path, patterns: list[str], exclude: list[str] | None = None) -> list[Path]:
    """Files under root matching any pattern, sorted, without duplicates."""
    exclude = exclude or []
    seen: set[Path] = set()
    for pattern in patterns:
        for path in root.glob(pattern):
            if path in seen or not path.is_file():
                continue
            if _excluded(_relative(path, root), exclude):
                continue
            seen.add(path)
    return sorted(seen)


def qualify_identifier(test_case: ParsedTestCase, namespace: str) -> ParsedTestCase:
    """
    Prefix an unqualified class part with namespace.

    Identifiers whose class part already carries a namespace (PHPUnit
    classes with a namespace declaration) are returned unchanged.
    """
    class_part, sep, rest = test_case.qualified_identifier.partition(CANONICAL_SEPARATOR)
    if not sep or not namespace or "\\" in class_part:
        return test_case
    return test_case.with_identifier(f"{namespace}\\{class_part}{CANONICAL_SEPARATOR}{rest}")


class TestScanner:
    """
    Scans a project's test files into a TestLinkRegistry.

    Files are parsed one at a time and their tests collected; the
    registry is only written once every file has been parsed.
    """

    __test__ = False

    def __init__(
        self,
        adapter: CompositeAdapter,
        config: dict[str, Any] | None = None,
        mappings: list[AutoloadMapping] | None = None,
    ):
        self.adapter = adapter
        self.config = config or {}
        self._mappings = mappings
        self._resolver: NamespaceResolver | None = None
        self.project_root = Path.cwd().resolve()

    def set_project_root(self, path: Path | str) -> None:
        self.project_root = Path(path).resolve()
        self._resolver = None

    @property
    def resolver(self) -> NamespaceResolver:
        """
        Namespace resolver for the project.

        Raises:
            ConfigError: If composer.json is malformed
        """
        if self._resolver is None:
            mappings = self._mappings
            if mappings is None:
                mappings = load_autoload_mappings(self.project_root, self.config)
            namespaces = self.config.get("namespaces", {})
            self._resolver = NamespaceResolver(
                mappings,
                default_namespace=namespaces.get("default_namespace", "Tests"),
                default_directory=namespaces.get("default_directory", "tests"),
            )
        return self._resolver

    def discover_files(self) -> list[Path]:
        tests_config = self.config.get("tests", {})
        patterns = self.adapter.get_test_file_patterns() + list(tests_config.get("patterns", []))
        return glob_files(self.project_root, patterns, list(tests_config.get("exclude", [])))

    def resolve_namespace(self, file_path: Path) -> str:
        return self.resolver.resolve(_relative(file_path, self.project_root))

    def scan(self, registry: TestLinkRegistry) -> ScanResult:
        """
        Parse every owned test file and add its tests to registry.

        Returns:
            ScanResult with counts and the collected per-file errors

        Raises:
            ConfigError: If the namespace configuration cannot be loaded
        """
        result = ScanResult()
        resolver = self.resolver
        collected: list[list[ParsedTestCase]] = []

        for path in self.discover_files():
            adapter = self.adapter.adapter_for_file(path)
            if adapter is None:
                result.skipped += 1
                continue
            parser = adapter.get_parser()
            if not parser.supports(path):
                result.skipped += 1
                continue
            try:
                tests = parser.parse_file(path)
            except SourceReadError as e:
                result.errors.append(FileError(path, e.reason, ERROR_IO))
                continue
            except ParseError as e:
                result.errors.append(FileError(path, e.reason, ERROR_PARSE))
                continue

            relative = _relative(path, self.project_root)
            namespace = resolver.resolve(relative)
            collected.append([qualify_identifier(test, namespace) for test in tests])
            result.files_scanned += 1
            result.frameworks[relative] = adapter.name

        for tests in collected:
            registry.add_all(tests)
            result.tests_found += len(tests)
        return result


@dataclass
class ProductionScanResult:
    """
    Outcome of a production scan.

    Attributes:
        index: Classes, methods and back-references found
        files_scanned: Files parsed successfully
        errors: Files that failed to parse or read
    """

    index: ProductionIndex = field(default_factory=ProductionIndex)
    files_scanned: int = 0
    errors: list[FileError] = field(default_factory=list)


class ProductionScanner:
    """Scans production code for classes, methods and #[TestedBy] attributes."""

    def __init__(self, config: dict[str, Any] | None = None, parser: ProductionParser | None = None):
        self.config = config or {}
        self.parser = parser or ProductionParser()
        self.project_root = Path.cwd().resolve()

    def set_project_root(self, path: Path | str) -> None:
        self.project_root = Path(path).resolve()

    def production_dirs(self) -> list[Path]:
        """
        Directories holding production code.

        Configured [production] dirs win, then composer.json ``autoload``
        PSR-4 directories, then whichever of src/ and app/ exist.

        Raises:
            ConfigError: If composer.json is malformed
        """
        configured = self.config.get("production", {}).get("dirs") or []
        if configured:
            return [self.project_root / d for d in configured]
        autoload = [
            m.directory
            for m in composer_mappings(read_composer(self.project_root))
            if not m.dev
        ]
        if autoload:
            return [self.project_root / d for d in dict.fromkeys(autoload)]
        return [self.project_root / d for d in DEFAULT_PRODUCTION_DIRS if (self.project_root / d).is_dir()]

    def discover_files(self) -> list[Path]:
        production = self.config.get("production", {})
        patterns = list(production.get("patterns", ["**/*.php"]))
        exclude = list(production.get("exclude", []))
        files: set[Path] = set()
        for directory in self.production_dirs():
            if not directory.is_dir():
                continue
            for path in glob_files(directory, patterns):
                if not _excluded(_relative(path, self.project_root), exclude):
                    files.add(path)
        return sorted(files)

    def scan(self) -> ProductionScanResult:
        """Parse every production file into a ProductionIndex."""
        result = ProductionScanResult()
        for path in self.discover_files():
            if not self.parser.supports(path):
                continue
            try:
                parsed = self.parser.parse_file(path)
            except SourceReadError as e:
                result.errors.append(FileError(path, e.reason, ERROR_IO))
                continue
            except ParseError as e:
                result.errors.append(FileError(path, e.reason, ERROR_PARSE))
                continue
            result.index.add(parsed)
            result.files_scanned += 1
        return result
