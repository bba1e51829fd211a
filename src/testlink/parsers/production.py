"""
testlink.parsers.production - Parser for production-side back-references.

Production methods name the tests that exercise them::

    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]
    #[TestedBy(UserServiceTest::class, 'it creates a user')]
    public function create(): User

The parser also records every class and method it sees, so the sync
engine can tell a missing back-reference from a link to a method that
does not exist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from testlink.core.models import (
    LinkIdentifier,
    PlaceholderEntry,
    ProductionDeclaration,
    TestReference,
    is_placeholder,
)
from testlink.docblock import SeeTag, normalize_reference, see_tags_for
from testlink.exceptions import SourceReadError
from testlink.parsers.php import AttributeEntry, PhpSource

TESTED_BY_ATTRIBUTE = "TestedBy"


def evaluate_tested_by(source: PhpSource, entry: AttributeEntry) -> TestReference | None:
    """Evaluate the arguments of one #[TestedBy] attribute."""
    positional = [arg for arg in entry.arguments if arg.name is None]
    named = {arg.name: arg for arg in entry.arguments if arg.name is not None}
    class_arg = positional[0] if positional else named.get("testClass")
    method_arg = positional[1] if len(positional) > 1 else named.get("testMethod")
    if class_arg is None:
        return None
    test_class = source.static_string(class_arg)
    if not test_class:
        return None
    test_method = source.static_string(method_arg) if method_arg is not None else None
    return TestReference(test_class.lstrip("\\"), test_method or None)


@dataclass
class ProductionFile:
    """
    Classes, methods and back-references found in one production file.

    Attributes:
        file_path: The parsed file
        methods: Class FQCN -> method names declared in it
        declarations: Back-references, one per method that has any
        placeholders: #[TestedBy('@A')] markers awaiting pairing
        see_tags: @see tags in method doc comments
    """

    file_path: Path | None
    methods: dict[str, list[str]] = field(default_factory=dict)
    declarations: list[ProductionDeclaration] = field(default_factory=list)
    placeholders: list[PlaceholderEntry] = field(default_factory=list)
    see_tags: list[SeeTag] = field(default_factory=list)


class ProductionParser:
    """Reads class structure and #[TestedBy] attributes from production code."""

    extensions: tuple[str, ...] = (".php",)

    def supports(self, file_path: Path | str) -> bool:
        return Path(file_path).suffix.lower() in self.extensions

    def parse_source(self, source_text: str, file_path: Path | None = None) -> ProductionFile:
        """
        Parse production source held in memory.

        Raises:
            ParseError: If the source has a syntax error
        """
        source = PhpSource(source_text, file_path)
        result = ProductionFile(file_path=file_path)
        for info in source.classes():
            result.methods[info.fqcn] = [method.name for method in info.methods]
            for method in info.methods:
                identifier = LinkIdentifier(info.fqcn, method.name)
                line = source.line_of(method.declaration_start)
                tests: list[TestReference] = []
                for group in method.attributes:
                    for entry in group.entries:
                        if entry.short_name != TESTED_BY_ATTRIBUTE:
                            continue
                        reference = evaluate_tested_by(source, entry)
                        if reference is None:
                            continue
                        if reference.test_method is None and is_placeholder(reference.test_identifier):
                            result.placeholders.append(
                                PlaceholderEntry(
                                    placeholder=reference.test_identifier,
                                    identifier=str(identifier),
                                    file_path=file_path,
                                    line=line,
                                )
                            )
                            continue
                        tests.append(reference)
                result.see_tags.extend(
                    see_tags_for(source.context, identifier, method.doc, file_path, line)
                )
                if tests:
                    result.declarations.append(
                        ProductionDeclaration(
                            owning_method=identifier,
                            tests=tests,
                            file_path=file_path,
                        )
                    )
        return result

    def parse_file(self, file_path: Path | str) -> ProductionFile:
        """
        Parse one production file.

        Raises:
            SourceReadError: If the file cannot be read
            ParseError: If the file has a syntax error
        """
        file_path = Path(file_path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(file_path, f"cannot read file: {e}") from e
        return self.parse_source(text, file_path)


class ProductionIndex:
    """
    Index of production classes, methods and their back-references.

    Method lookups are exact-match, like every other identifier
    comparison in testlink.
    """

    def __init__(self) -> None:
        self._class_files: dict[str, Path | None] = {}
        self._methods: dict[str, set[str]] = {}
        self._declarations: dict[LinkIdentifier, ProductionDeclaration] = {}
        self._placeholders: list[PlaceholderEntry] = []
        self._see_tags: list[SeeTag] = []

    def add(self, parsed: ProductionFile) -> None:
        """Merge one parsed file into the index."""
        for fqcn, methods in parsed.methods.items():
            self._class_files.setdefault(fqcn, parsed.file_path)
            self._methods.setdefault(fqcn, set()).update(methods)
        for declaration in parsed.declarations:
            existing = self._declarations.get(declaration.owning_method)
            if existing is None:
                self._declarations[declaration.owning_method] = declaration
            else:
                existing.tests.extend(declaration.tests)
        self._placeholders.extend(parsed.placeholders)
        self._see_tags.extend(parsed.see_tags)

    def has_class(self, class_name: str) -> bool:
        return class_name in self._methods

    def target_exists(self, target: LinkIdentifier) -> bool:
        """Check whether a link target names an indexed class and method."""
        methods = self._methods.get(target.class_name)
        if methods is None:
            return False
        return target.method_name is None or target.method_name in methods

    def file_for(self, class_name: str) -> Path | None:
        """File declaring class_name, if indexed."""
        return self._class_files.get(class_name)

    def declaration_for(self, target: LinkIdentifier) -> ProductionDeclaration | None:
        return self._declarations.get(target)

    def declarations(self) -> list[ProductionDeclaration]:
        return list(self._declarations.values())

    def declarations_in_class(self, class_name: str) -> list[ProductionDeclaration]:
        """Back-references on every method of class_name."""
        return [
            declaration
            for declaration in self._declarations.values()
            if declaration.owning_method.class_name == class_name
        ]

    def placeholders(self) -> list[PlaceholderEntry]:
        return list(self._placeholders)

    def see_tags(self) -> list[SeeTag]:
        return list(self._see_tags)

    def has_see(self, method: LinkIdentifier, reference: str) -> bool:
        """Check whether the doc comment of method has a @see tag naming reference."""
        wanted = normalize_reference(reference)
        return any(
            tag.method == method and tag.normalized == wanted for tag in self._see_tags
        )

    @property
    def class_count(self) -> int:
        return len(self._methods)

    @property
    def method_count(self) -> int:
        return sum(len(methods) for methods in self._methods.values())


def create_parser() -> ProductionParser:
    """Factory function to create a ProductionParser."""
    return ProductionParser()
