"""
testlink.registry - In-memory bidirectional index of declared test links.

The registry owns the ParsedTestCase records of one scan. The two lookup
indices are derived from those records on first use and dropped whenever
the records change, so they can never drift apart.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from testlink.core.models import (
    DeclaredLink,
    LinkIdentifier,
    ParsedTestCase,
    canonical_form,
    parse_canonical_form,
)


class TestLinkRegistry:
    """
    Registry of every test discovered in a scan and the links it declares.

    Only the Scanner adds tests; everything else reads.
    """

    __test__ = False

    def __init__(self) -> None:
        self._tests: list[ParsedTestCase] = []
        self._links_by_test: dict[str, list[DeclaredLink]] | None = None
        self._tests_by_method: dict[LinkIdentifier, list[str]] | None = None

    # --- Mutation ---

    def add(self, test_case: ParsedTestCase) -> None:
        """Register one test. Duplicate identifiers are kept."""
        self._tests.append(test_case)
        self._invalidate()

    def add_all(self, test_cases: Iterable[ParsedTestCase]) -> None:
        self._tests.extend(test_cases)
        self._invalidate()

    def clear(self) -> None:
        self._tests.clear()
        self._invalidate()

    def _invalidate(self) -> None:
        self._links_by_test = None
        self._tests_by_method = None

    # --- Derived indices ---

    @property
    def links_by_test(self) -> dict[str, list[DeclaredLink]]:
        """Test identifier -> declared links, in source order."""
        if self._links_by_test is None:
            index: dict[str, list[DeclaredLink]] = {}
            for test in self._tests:
                index.setdefault(test.qualified_identifier, []).extend(test.existing_links)
            self._links_by_test = index
        return self._links_by_test

    @property
    def tests_by_production_method(self) -> dict[LinkIdentifier, list[str]]:
        """Link target -> identifiers of tests linking to it, first-seen order."""
        if self._tests_by_method is None:
            index: dict[LinkIdentifier, list[str]] = {}
            for test in self._tests:
                for link in test.existing_links:
                    tests = index.setdefault(link.target, [])
                    if test.qualified_identifier not in tests:
                        tests.append(test.qualified_identifier)
            self._tests_by_method = index
        return self._tests_by_method

    # --- Queries ---

    def __iter__(self) -> Iterator[ParsedTestCase]:
        return iter(self._tests)

    def __len__(self) -> int:
        return len(self._tests)

    @property
    def tests(self) -> list[ParsedTestCase]:
        return list(self._tests)

    def has_test(self, identifier: str) -> bool:
        return identifier in self.links_by_test

    def find_test(self, identifier: str) -> ParsedTestCase | None:
        """First registered test with this qualified identifier."""
        for test in self._tests:
            if test.qualified_identifier == identifier:
                return test
        return None

    def tests_in_class(self, test_class: str) -> list[ParsedTestCase]:
        """Tests whose identifier belongs to test_class (or Pest unit)."""
        return [test for test in self._tests if test.test_class == test_class]

    def get_links_for_test(self, identifier: str) -> list[DeclaredLink]:
        return list(self.links_by_test.get(identifier, []))

    def get_tests_for_method(self, target: str | LinkIdentifier) -> list[str]:
        """Tests linking to target, given as identifier or canonical form."""
        if isinstance(target, str):
            target = parse_canonical_form(target)
        return list(self.tests_by_production_method.get(target, []))

    def has_link(self, identifier: str, target: str | LinkIdentifier) -> bool:
        if isinstance(target, str):
            target = parse_canonical_form(target)
        return any(link.target == target for link in self.links_by_test.get(identifier, []))

    def has_link_coverage(self, identifier: str, target: str | LinkIdentifier) -> bool:
        """Check whether the test declares target with coverage."""
        if isinstance(target, str):
            target = parse_canonical_form(target)
        return any(
            link.target == target and link.with_coverage
            for link in self.links_by_test.get(identifier, [])
        )

    def coverage_methods(self, identifier: str) -> list[str]:
        """Canonical targets the test links to with coverage."""
        return _unique(
            canonical_form(link.target)
            for link in self.links_by_test.get(identifier, [])
            if link.with_coverage
        )

    def link_only_methods(self, identifier: str) -> list[str]:
        """Canonical targets the test links to without ever claiming coverage."""
        covered = set(self.coverage_methods(identifier))
        return _unique(
            canonical_form(link.target)
            for link in self.links_by_test.get(identifier, [])
            if not link.with_coverage and canonical_form(link.target) not in covered
        )

    def production_methods(self) -> list[LinkIdentifier]:
        """Every link target, sorted by canonical form."""
        return sorted(self.tests_by_production_method, key=canonical_form)

    def duplicate_identifiers(self) -> list[str]:
        """Qualified identifiers registered more than once, sorted."""
        counts: dict[str, int] = {}
        for test in self._tests:
            counts[test.qualified_identifier] = counts.get(test.qualified_identifier, 0) + 1
        return sorted(identifier for identifier, count in counts.items() if count > 1)

    @property
    def test_count(self) -> int:
        return len(self.links_by_test)

    @property
    def link_count(self) -> int:
        return sum(len(links) for links in self.links_by_test.values())

    def to_dict(self) -> dict[str, list[str]]:
        """Production method -> linking tests, keyed by canonical form."""
        return {
            canonical_form(target): list(self.tests_by_production_method[target])
            for target in self.production_methods()
        }


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
