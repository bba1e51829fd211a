"""
testlink.modifiers.phpunit - Rewrites #[Links]/#[LinksAndCovers] attributes.
"""

from __future__ import annotations

from collections.abc import Sequence

from testlink.core.models import DeclarationSite, LinkIdentifier, ParsedTestCase, SyntaxKind
from testlink.exceptions import TestCaseNotFoundError
from testlink.modifiers.base import (
    BaseModifier,
    Splice,
    attribute_group_removal,
    attribute_insertion,
    see_splice,
)
from testlink.parsers.php import FileContext, PhpSource, line_indent, quote_php_string
from testlink.parsers.phpunit import PhpUnitParser

DEFAULT_ATTRIBUTE_NAMESPACE = "TestFlowLabs\\TestingAttributes"

LINKS_ATTRIBUTE = "Links"
LINKS_AND_COVERS_ATTRIBUTE = "LinksAndCovers"


def attribute_reference(
    context: FileContext, namespace: str, short_name: str, imports: set[str]
) -> str:
    """
    Name under which an attribute class can be written in this file.

    Uses an existing import or alias when there is one. Otherwise the short
    name is used and the import is added to imports, unless the short name
    is already taken by another import.
    """
    fqcn = f"{namespace}\\{short_name}"
    alias = context.alias_for(fqcn)
    if alias is not None:
        return alias
    if context.namespace == namespace:
        return short_name
    if context.lookup_import(short_name) is not None:
        return "\\" + fqcn
    imports.add(fqcn)
    return short_name


def render_link_entry(context: FileContext, name: str, target: LinkIdentifier) -> str:
    """Render ``Name(Class::class, 'method')`` or ``Name(Class::class)``."""
    reference = f"{context.reference_for(target.class_name)}::class"
    if target.method_name is None:
        return f"{name}({reference})"
    return f"{name}({reference}, {quote_php_string(target.method_name)})"


def render_link_attribute(context: FileContext, name: str, target: LinkIdentifier) -> str:
    """Render ``#[Name(Class::class, 'method')]`` or ``#[Name(Class::class)]``."""
    return f"#[{render_link_entry(context, name, target)}]"


class PhpUnitModifier(BaseModifier):
    """Modifier for attribute-list (PHPUnit) tests."""

    syntax_kind = SyntaxKind.ATTRIBUTE_LIST

    def __init__(
        self,
        parser: PhpUnitParser | None = None,
        attribute_namespace: str = DEFAULT_ATTRIBUTE_NAMESPACE,
    ):
        self.parser = parser or PhpUnitParser()
        self.attribute_namespace = attribute_namespace.strip("\\")

    def declaration_name(
        self, source: PhpSource, with_coverage: bool, written_as: str | None, imports: set[str]
    ) -> str:
        short_name = LINKS_AND_COVERS_ATTRIBUTE if with_coverage else LINKS_ATTRIBUTE
        if written_as is not None and written_as.startswith("\\"):
            # Keep the fully qualified style of the declaration being rewritten
            return written_as.rsplit("\\", 1)[0] + "\\" + short_name
        return attribute_reference(source.context, self.attribute_namespace, short_name, imports)

    def insertion(
        self,
        source: PhpSource,
        test_case: ParsedTestCase,
        targets: Sequence[LinkIdentifier],
        with_coverage: bool,
        imports: set[str],
    ) -> Splice:
        name = self.declaration_name(source, with_coverage, None, imports)
        groups = [render_link_attribute(source.context, name, target) for target in targets]
        last_group_end = test_case.declarations_end if test_case.declarations else None
        return attribute_insertion(source.data, last_group_end, test_case.declarations_end, groups)

    def container_removal(self, data: bytes, container: tuple[int, int]) -> tuple[int, int]:
        return attribute_group_removal(data, container)

    def placeholder_replacement(
        self, source: PhpSource, site: DeclarationSite, targets: Sequence[LinkIdentifier]
    ) -> Splice:
        entries = [render_link_entry(source.context, site.kind, target) for target in targets]
        if len(site.container_entries) > 1:
            return (*site.span, ", ".join(entries))
        start, end = site.container_span
        separator = "\n" + line_indent(source.data, start)
        return start, end, separator.join(f"#[{entry}]" for entry in entries)

    def see_tag_splice(
        self, source: PhpSource, test_case: ParsedTestCase, references: Sequence[str]
    ) -> Splice | None:
        for info in source.classes():
            if info.fqcn != test_case.test_class:
                continue
            method = info.find_method(test_case.name)
            if method is not None:
                return see_splice(source.data, method, references)
        raise TestCaseNotFoundError(test_case.full_name, test_case.file_path)


def create_modifier() -> PhpUnitModifier:
    """Factory function to create a PhpUnitModifier."""
    return PhpUnitModifier()
