"""
testlink.core.models - Link model shared by parsers, registry and sync.

Provides value types for link targets, declared links, parsed test cases
and production-side back-references.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

CANONICAL_SEPARATOR = "::"
GROUP_SEPARATOR = " > "

# "@A" or "@@A": a temporary marker standing in for a real link
PLACEHOLDER_PATTERN = re.compile(r"^@@?[A-Za-z][A-Za-z0-9_-]*$")


def is_placeholder(value: str | None) -> bool:
    """Check whether a declared value is a placeholder marker rather than a class name."""
    return value is not None and PLACEHOLDER_PATTERN.match(value) is not None


@dataclass(frozen=True)
class LinkIdentifier:
    """
    A nominal reference to a production class or method.

    Attributes:
        class_name: Fully qualified class name, without a leading backslash
        method_name: Method name, or None for a class-level link
    """

    class_name: str
    method_name: str | None = None

    @property
    def is_class_level(self) -> bool:
        return self.method_name is None

    @property
    def canonical(self) -> str:
        return canonical_form(self)

    def __str__(self) -> str:
        return canonical_form(self)


def canonical_form(identifier: LinkIdentifier) -> str:
    """Render an identifier as "Class" or "Class::method"."""
    if identifier.method_name is None:
        return identifier.class_name
    return f"{identifier.class_name}{CANONICAL_SEPARATOR}{identifier.method_name}"


def parse_canonical_form(text: str) -> LinkIdentifier:
    """
    Parse "Class" or "Class::method" back into a LinkIdentifier.

    A leading backslash on the class name is dropped so that
    ``\\App\\Foo::bar`` and ``App\\Foo::bar`` name the same target.

    Args:
        text: Canonical form string

    Returns:
        LinkIdentifier for the text
    """
    text = text.strip()
    if text.startswith("\\"):
        text = text[1:]
    class_name, sep, method_name = text.partition(CANONICAL_SEPARATOR)
    if not sep:
        return LinkIdentifier(class_name)
    return LinkIdentifier(class_name, method_name or None)


@dataclass(frozen=True)
class DeclaredLink:
    """
    A link declared on a test.

    Attributes:
        target: The production class or method linked to
        with_coverage: True for links-and-covers, False for link-only
    """

    target: LinkIdentifier
    with_coverage: bool = True


class SyntaxKind(Enum):
    """How a test declares its links."""

    FLUENT_CHAIN = "fluent_chain"  # Pest: test(...)->linksAndCovers(...)
    ATTRIBUTE_LIST = "attribute_list"  # PHPUnit: #[LinksAndCovers(...)]


@dataclass
class DeclarationSite:
    """
    One link-declaring entry as it appears in source.

    The parser reduces both syntaxes to this tagged record so modifiers can
    splice without knowing how the entry was found. For a fluent chain the
    container is one ``->links(...)`` call and each argument is an entry;
    for attributes the container is one ``#[...]`` group and each attribute
    in it is an entry.

    Attributes:
        kind: Declaration name as written ("links", "LinksAndCovers", ...)
        positional_arguments: Raw source text of each argument
        link: Evaluated link, or None when the arguments are not static
        span: Offsets of the entry itself
        name_span: Offsets of the kind name, rewritten on upgrade
        container_span: Offsets of the enclosing call or attribute group
        container_entries: Offsets of every entry in the container,
            including entries that do not declare links
        placeholder: Placeholder marker ("@A") declared instead of a target
    """

    kind: str
    positional_arguments: list[str]
    link: DeclaredLink | None
    span: tuple[int, int]
    name_span: tuple[int, int]
    container_span: tuple[int, int]
    container_entries: tuple[tuple[int, int], ...] = ()
    placeholder: str | None = None


@dataclass
class ParsedTestCase:
    """
    A test discovered in source.

    Attributes:
        name: Leaf name (Pest title or PHPUnit method name)
        qualified_identifier: Stable key, "Namespace\\Unit::name"
        source_span: (start, end) offsets of the whole test unit
        declarations_end: Offset just past the existing declarations
        syntax_kind: Declaration syntax used by the test
        existing_links: Declared links in source order, duplicates kept
        group_path: Titles of enclosing describe() groups, outermost first
        declarations: Source sites of the existing links
        file_path: File the test was parsed from, if any
        line: 1-based line of the test unit start
    """

    __test__ = False

    name: str
    qualified_identifier: str
    source_span: tuple[int, int]
    declarations_end: int
    syntax_kind: SyntaxKind
    existing_links: list[DeclaredLink] = field(default_factory=list)
    group_path: tuple[str, ...] = ()
    declarations: list[DeclarationSite] = field(default_factory=list)
    file_path: Path | None = None
    line: int = 0

    @property
    def full_name(self) -> str:
        """Name including enclosing groups, joined with " > "."""
        return GROUP_SEPARATOR.join((*self.group_path, self.name))

    @property
    def test_class(self) -> str:
        """The class/unit part of the qualified identifier."""
        return self.qualified_identifier.partition(CANONICAL_SEPARATOR)[0]

    @property
    def test_method(self) -> str:
        """The name part of the qualified identifier."""
        return self.qualified_identifier.partition(CANONICAL_SEPARATOR)[2]

    def link_targets(self) -> list[str]:
        """Canonical targets of existing links, in source order."""
        return [canonical_form(link.target) for link in self.existing_links]

    def has_link(self, target: str) -> bool:
        """Check whether the test links to target, with or without coverage."""
        return parse_canonical_form(target) in {link.target for link in self.existing_links}

    def placeholders(self) -> list[str]:
        """Placeholder markers declared on the test, in source order, duplicates dropped."""
        seen: list[str] = []
        for declaration in self.declarations:
            if declaration.placeholder is not None and declaration.placeholder not in seen:
                seen.append(declaration.placeholder)
        return seen

    def with_identifier(self, qualified_identifier: str) -> ParsedTestCase:
        """Return a copy carrying a different qualified identifier."""
        return dataclasses.replace(self, qualified_identifier=qualified_identifier)


@dataclass(frozen=True)
class TestReference:
    """
    One test named by a production back-reference.

    Attributes:
        test_identifier: Test class (or Pest unit) name
        test_method: Test method or Pest title, None for the whole class
    """

    __test__ = False

    test_identifier: str
    test_method: str | None = None

    @property
    def qualified(self) -> str:
        if self.test_method is None:
            return self.test_identifier
        return f"{self.test_identifier}{CANONICAL_SEPARATOR}{self.test_method}"


@dataclass
class ProductionDeclaration:
    """
    Back-references declared on one production method.

    Attributes:
        owning_method: The production method (method_name is required)
        tests: Tests named by #[TestedBy] on the method, in source order
        file_path: Production file declaring the method
    """

    owning_method: LinkIdentifier
    tests: list[TestReference] = field(default_factory=list)
    file_path: Path | None = None

    def __post_init__(self) -> None:
        if self.owning_method.method_name is None:
            raise ValueError("ProductionDeclaration requires a method-level identifier")

    def names_test(self, qualified_identifier: str) -> bool:
        """Check whether a back-reference names the given test.

        A class-only back-reference names every test in that class.
        """
        test_class = qualified_identifier.partition(CANONICAL_SEPARATOR)[0]
        for ref in self.tests:
            if ref.test_method is None:
                if ref.test_identifier == test_class:
                    return True
            elif ref.qualified == qualified_identifier:
                return True
        return False


@dataclass
class PlaceholderEntry:
    """
    A placeholder marker found in production or test code.

    Attributes:
        placeholder: The marker as written ("@A" or "@@A")
        identifier: Production "Class::method" or test qualified identifier
        file_path: File holding the marker
        line: 1-based line of the owning method or test
        side: "production" or "test"
        framework: "pest" or "phpunit" for test-side markers
        test_case: The parsed test carrying a test-side marker
    """

    placeholder: str
    identifier: str
    file_path: Path | None = None
    line: int = 0
    side: str = "production"
    framework: str | None = None
    test_case: ParsedTestCase | None = None

    @property
    def use_see_tag(self) -> bool:
        """A "@@" marker asks for @see tags instead of attributes."""
        return self.placeholder.startswith("@@")
