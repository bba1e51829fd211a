"""
testlink.parsers.base - Parser protocol and shared parser behaviour.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from testlink.core.models import ParsedTestCase, SyntaxKind
from testlink.exceptions import SourceReadError


@runtime_checkable
class TestParser(Protocol):
    """Protocol for test syntax parsers."""

    syntax_kind: SyntaxKind

    def supports(self, file_path: Path | str) -> bool:
        """Cheap check on the path alone; must not open the file."""
        ...

    def parse_file(self, file_path: Path | str) -> list[ParsedTestCase]:
        """Parse every test in a file.

        Raises:
            ParseError: If the file is unreadable or malformed.
        """
        ...

    def find_all_tests(
        self, source_text: str, file_path: Path | None = None
    ) -> list[ParsedTestCase]:
        """Parse every test in in-memory source text."""
        ...

    def find_test_by_name(self, source_text: str, name: str) -> ParsedTestCase | None:
        """Find one test by leaf name or full name."""
        ...


class BaseTestParser:
    """Shared behaviour for the concrete parsers."""

    syntax_kind: SyntaxKind
    extensions: tuple[str, ...] = (".php",)

    def supports(self, file_path: Path | str) -> bool:
        return Path(file_path).suffix.lower() in self.extensions

    def parse_file(self, file_path: Path | str) -> list[ParsedTestCase]:
        file_path = Path(file_path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(file_path, f"cannot read file: {e}") from e
        tests = self.find_all_tests(text, file_path)
        for test in tests:
            test.file_path = file_path
        return tests

    def find_all_tests(
        self, source_text: str, file_path: Path | None = None
    ) -> list[ParsedTestCase]:
        raise NotImplementedError

    def find_test_by_name(self, source_text: str, name: str) -> ParsedTestCase | None:
        """
        Find a test by name.

        An exact match on the full name (describe path included) wins over
        a match on the leaf name alone.

        Args:
            source_text: Source to search
            name: Leaf name, full name, or qualified identifier

        Returns:
            The first matching test, or None
        """
        tests = self.find_all_tests(source_text)
        for test in tests:
            if test.full_name == name or test.qualified_identifier == name:
                return test
        for test in tests:
            if test.name == name:
                return test
        return None
