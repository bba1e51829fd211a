"""
testlink.parsers.phpunit - Parser for PHPUnit attribute-list declarations.

A test is a public method whose name starts with "test", or that carries
#[Test] or a @test docblock tag. Its links are the #[Links] and
#[LinksAndCovers] attributes preceding it::

    #[LinksAndCovers(UserService::class, 'create')]
    #[Links(UserValidator::class, 'validate')]
    public function test_creates_user(): void
"""

from __future__ import annotations

import re
from pathlib import Path

from testlink.core.models import (
    CANONICAL_SEPARATOR,
    DeclarationSite,
    DeclaredLink,
    LinkIdentifier,
    ParsedTestCase,
    SyntaxKind,
    is_placeholder,
    parse_canonical_form,
)
from testlink.parsers.base import BaseTestParser
from testlink.parsers.php import AttributeEntry, ClassInfo, MethodInfo, PhpSource

# Attribute short name -> with_coverage
LINK_ATTRIBUTES = {
    "Links": False,
    "LinksAndCovers": True,
}

TEST_ATTRIBUTE = "Test"
TEST_DOC_TAG = re.compile(r"@test\b")


def evaluate_link_attribute(source: PhpSource, entry: AttributeEntry) -> LinkIdentifier | None:
    """
    Evaluate the target of a #[Links]/#[LinksAndCovers] attribute.

    Accepts ``(Class::class, 'method')``, ``('Class', 'method')``,
    ``('Class::method')`` and the class-level ``(Class::class)`` forms.

    Returns:
        The target, or None if the arguments are not static strings
    """
    positional = [arg for arg in entry.arguments if arg.name is None]
    named = {arg.name: arg for arg in entry.arguments if arg.name is not None}
    class_arg = positional[0] if positional else named.get("class")
    method_arg = positional[1] if len(positional) > 1 else named.get("method")
    if class_arg is None:
        return None
    class_value = source.static_string(class_arg)
    if not class_value:
        return None
    if method_arg is None:
        return parse_canonical_form(class_value)
    method_value = source.static_string(method_arg)
    if not method_value:
        return None
    return LinkIdentifier(class_value.lstrip("\\"), method_value)


def link_placeholder(source: PhpSource, entry: AttributeEntry) -> str | None:
    """The marker of a ``#[LinksAndCovers('@A')]`` placeholder attribute, if it is one."""
    positional = [arg for arg in entry.arguments if arg.name is None]
    if len(positional) != 1 or len(entry.arguments) != 1:
        return None
    value = source.static_string(positional[0])
    return value if is_placeholder(value) else None


class PhpUnitParser(BaseTestParser):
    """Parser for PHPUnit test methods and their link attributes."""

    syntax_kind = SyntaxKind.ATTRIBUTE_LIST

    def find_all_tests(
        self, source_text: str, file_path: Path | None = None
    ) -> list[ParsedTestCase]:
        """
        Find test methods in every concrete class of the source.

        Raises:
            ParseError: If the source has a syntax error
        """
        source = PhpSource(source_text, file_path)
        tests: list[ParsedTestCase] = []
        for info in source.classes():
            if info.kind != "class" or info.is_abstract:
                continue
            for method in info.methods:
                if self.is_test_method(method):
                    tests.append(self._build(source, info, method))
        return tests

    def is_test_method(self, method: MethodInfo) -> bool:
        """Check whether a method is a runnable PHPUnit test."""
        if not method.is_public or "static" in method.modifiers:
            return False
        if method.name.lower().startswith("test"):
            return True
        for group in method.attributes:
            if any(entry.short_name == TEST_ATTRIBUTE for entry in group.entries):
                return True
        return bool(method.doc and TEST_DOC_TAG.search(method.doc))

    def _build(self, source: PhpSource, info: ClassInfo, method: MethodInfo) -> ParsedTestCase:
        declarations: list[DeclarationSite] = []
        links: list[DeclaredLink] = []
        declarations_end = method.declaration_start

        for group in method.attributes:
            entries = tuple(entry.span for entry in group.entries)
            for entry in group.entries:
                if entry.short_name not in LINK_ATTRIBUTES:
                    continue
                placeholder = link_placeholder(source, entry)
                target = None if placeholder else evaluate_link_attribute(source, entry)
                link = None
                if target is not None:
                    link = DeclaredLink(target, LINK_ATTRIBUTES[entry.short_name])
                    links.append(link)
                declarations.append(
                    DeclarationSite(
                        kind=entry.name,
                        positional_arguments=[source.argument_text(arg) for arg in entry.arguments],
                        link=link,
                        span=entry.span,
                        name_span=entry.name_span,
                        container_span=group.span,
                        container_entries=entries,
                        placeholder=placeholder,
                    )
                )
                declarations_end = group.span[1]

        return ParsedTestCase(
            name=method.name,
            qualified_identifier=f"{info.fqcn}{CANONICAL_SEPARATOR}{method.name}",
            source_span=(method.start, method.end),
            declarations_end=declarations_end,
            syntax_kind=self.syntax_kind,
            existing_links=links,
            declarations=declarations,
            file_path=Path(source.file_path) if source.file_path is not None else None,
            line=source.line_of(method.declaration_start),
        )


def create_parser() -> PhpUnitParser:
    """Factory function to create a PhpUnitParser."""
    return PhpUnitParser()
