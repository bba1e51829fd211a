"""
testlink.pairing.models - Placeholder markers and the pairing plan.

A placeholder such as ``@user-create`` is written on both sides while the
real names are not settled yet::

    #[TestedBy('@user-create')]
    public function create(): User

    test('creates a user')->linksAndCovers('@user-create');

Pairing replaces every marker with real links between every production
method and every test carrying the same marker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from testlink.core.models import (
    LinkIdentifier,
    ParsedTestCase,
    PlaceholderEntry,
    SyntaxKind,
    TestReference,
)
from testlink.parsers.production import ProductionIndex
from testlink.registry import TestLinkRegistry
from testlink.scanner import FileError

SIDE_PRODUCTION = "production"
SIDE_TEST = "test"

FRAMEWORKS = {
    SyntaxKind.FLUENT_CHAIN: "pest",
    SyntaxKind.ATTRIBUTE_LIST: "phpunit",
}


class PlaceholderRegistry:
    """Placeholder markers of one scan, by marker."""

    def __init__(self) -> None:
        self._production: dict[str, list[PlaceholderEntry]] = {}
        self._tests: dict[str, list[PlaceholderEntry]] = {}

    @classmethod
    def from_project(cls, registry: TestLinkRegistry, index: ProductionIndex) -> PlaceholderRegistry:
        """Collect the markers found by a test scan and a production scan."""
        placeholders = cls()
        for entry in index.placeholders():
            placeholders.register(entry)
        for test in registry:
            for marker in test.placeholders():
                placeholders.register(
                    PlaceholderEntry(
                        placeholder=marker,
                        identifier=test.qualified_identifier,
                        file_path=test.file_path,
                        line=test.line,
                        side=SIDE_TEST,
                        framework=FRAMEWORKS.get(test.syntax_kind),
                        test_case=test,
                    )
                )
        return placeholders

    def register(self, entry: PlaceholderEntry) -> None:
        side = self._tests if entry.side == SIDE_TEST else self._production
        side.setdefault(entry.placeholder, []).append(entry)

    def production_entries(self, placeholder: str) -> list[PlaceholderEntry]:
        return list(self._production.get(placeholder, []))

    def test_entries(self, placeholder: str) -> list[PlaceholderEntry]:
        return list(self._tests.get(placeholder, []))

    def all_ids(self) -> list[str]:
        return sorted(set(self._production) | set(self._tests))

    def summary(self) -> dict[str, dict[str, int]]:
        """Marker -> number of production methods and tests carrying it."""
        return {
            placeholder: {
                "production": len(self._production.get(placeholder, [])),
                "tests": len(self._tests.get(placeholder, [])),
            }
            for placeholder in self.all_ids()
        }

    def __len__(self) -> int:
        return len(self.all_ids())


@dataclass
class PlaceholderAction:
    """
    One production method and one test to link in place of a marker.

    Attributes:
        placeholder: The marker being replaced
        production_method: Production method carrying the marker
        test_reference: Test carrying the marker, as a back-reference
        production_file: File declaring the production method
        test_file: File declaring the test
        test_case: The parsed test
    """

    placeholder: str
    production_method: LinkIdentifier
    test_reference: TestReference
    production_file: Path | None = None
    test_file: Path | None = None
    test_case: ParsedTestCase | None = None

    @property
    def use_see_tag(self) -> bool:
        return self.placeholder.startswith("@@")

    def describe(self) -> str:
        return f"{self.placeholder}: {self.production_method} <-> {self.test_reference.qualified}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "placeholder": self.placeholder,
            "production": str(self.production_method),
            "test": self.test_reference.qualified,
            "production_file": str(self.production_file) if self.production_file else None,
            "test_file": str(self.test_file) if self.test_file else None,
            "see_tag": self.use_see_tag,
        }


def _unique_paths(paths: list[Path | None]) -> list[Path]:
    seen: list[Path] = []
    for path in paths:
        if path is not None and path not in seen:
            seen.append(path)
    return seen


@dataclass
class PlaceholderResult:
    """
    Pairing plan for one or more markers.

    Attributes:
        actions: Links to write, grouped by marker in marker order
        errors: Markers that cannot be paired
        warnings: Markers that can be paired but look suspicious
    """

    actions: list[PlaceholderAction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def production_files(self) -> list[Path]:
        return _unique_paths([action.production_file for action in self.actions])

    @property
    def test_files(self) -> list[Path]:
        return _unique_paths([action.test_file for action in self.actions])

    def actions_for_production_file(self, file_path: Path) -> list[PlaceholderAction]:
        return [action for action in self.actions if action.production_file == file_path]

    def actions_for_test_file(self, file_path: Path) -> list[PlaceholderAction]:
        return [action for action in self.actions if action.test_file == file_path]

    def by_placeholder(self) -> dict[str, list[PlaceholderAction]]:
        grouped: dict[str, list[PlaceholderAction]] = {}
        for action in self.actions:
            grouped.setdefault(action.placeholder, []).append(action)
        return grouped

    def summary(self) -> dict[str, int]:
        return {
            "placeholders": len(self.by_placeholder()),
            "actions": len(self.actions),
            "production_files": len(self.production_files),
            "test_files": len(self.test_files),
            "errors": len(self.errors),
            "warnings": len(self.warnings),
        }


@dataclass
class PairResult:
    """
    Outcome of writing a pairing plan.

    Attributes:
        files_modified: Files rewritten (or that would be), in order
        changes: Declarations written, counting both sides
        errors: Per-file failures
        dry_run: Whether files were left untouched
    """

    files_modified: list[Path] = field(default_factory=list)
    changes: int = 0
    errors: list[FileError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors
