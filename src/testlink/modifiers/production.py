"""
testlink.modifiers.production - Rewrites #[TestedBy] back-references.

Also maintains the @see tags that mirror back-references in method doc
comments, and expands #[TestedBy('@A')] placeholders.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from testlink.core.models import DeclarationSite, LinkIdentifier, TestReference
from testlink.docblock import (
    is_empty_doc,
    remove_see_lines,
    replace_see_reference,
    see_reference_for,
)
from testlink.exceptions import ProductionMethodNotFoundError
from testlink.modifiers.base import (
    Splice,
    apply_splices,
    attribute_group_removal,
    attribute_insertion,
    entry_removals,
    import_insertion,
    see_splice,
)
from testlink.modifiers.phpunit import DEFAULT_ATTRIBUTE_NAMESPACE, attribute_reference
from testlink.parsers.php import MethodInfo, PhpSource, line_indent, quote_php_string
from testlink.parsers.production import TESTED_BY_ATTRIBUTE, evaluate_tested_by


def render_tested_by_entry(name: str, reference: TestReference) -> str:
    """Render ``TestedBy('Test\\Class', 'test name')`` without the group brackets."""
    arguments = quote_php_string(reference.test_identifier)
    if reference.test_method is not None:
        arguments += f", {quote_php_string(reference.test_method)}"
    return f"{name}({arguments})"


def render_tested_by(name: str, reference: TestReference) -> str:
    """Render ``#[TestedBy('Test\\Class', 'test name')]``."""
    return f"#[{render_tested_by_entry(name, reference)}]"


class ProductionModifier:
    """Adds and removes #[TestedBy] attributes and @see tags on production methods."""

    def __init__(self, attribute_namespace: str = DEFAULT_ATTRIBUTE_NAMESPACE):
        self.attribute_namespace = attribute_namespace.strip("\\")

    def inject_tested_by(
        self,
        source_text: str,
        method: LinkIdentifier,
        tests: Sequence[TestReference],
        file_path: Path | None = None,
    ) -> str:
        """
        Add back-references for tests not yet named on method.

        Args:
            source_text: Current content of the production file
            method: The production method to annotate
            tests: Tests to name, in the order they should appear
            file_path: Used in error messages only

        Returns:
            The rewritten source (the input itself if nothing changes)

        Raises:
            ProductionMethodNotFoundError: If the method is not in the source
        """
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        sites = self._sites(source, info)
        present = {reference for reference, _ in sites}

        missing: list[TestReference] = []
        for reference in tests:
            if reference not in present and reference not in missing:
                missing.append(reference)
        if not missing:
            return source_text

        imports: set[str] = set()
        name = attribute_reference(
            source.context, self.attribute_namespace, TESTED_BY_ATTRIBUTE, imports
        )
        last_group_end = sites[-1][1].container_span[1] if sites else None
        splices: list[Splice] = [
            attribute_insertion(
                source.data,
                last_group_end,
                info.declaration_start,
                [render_tested_by(name, reference) for reference in missing],
            )
        ]
        import_splice = import_insertion(source.context, imports)
        if import_splice is not None:
            splices.append(import_splice)
        return apply_splices(source.data, splices).decode("utf-8")

    def remove_tested_by(
        self,
        source_text: str,
        method: LinkIdentifier,
        tests: Sequence[TestReference],
        file_path: Path | None = None,
    ) -> str:
        """Remove back-references naming any of tests from method."""
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        unwanted = set(tests)
        doomed = [site for reference, site in self._sites(source, info) if reference in unwanted]
        if not doomed:
            return source_text
        splices = entry_removals(source.data, doomed, attribute_group_removal)
        return apply_splices(source.data, splices).decode("utf-8")

    # --- @see tags ---

    def add_see_tags(
        self,
        source_text: str,
        method: LinkIdentifier,
        references: Sequence[str],
        file_path: Path | None = None,
    ) -> str:
        """
        Add @see lines to the doc comment of method.

        References already present (with or without a leading backslash)
        are skipped. A method without a doc comment gets one.
        """
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        splice = see_splice(source.data, info, references)
        if splice is None:
            return source_text
        return apply_splices(source.data, [splice]).decode("utf-8")

    def remove_see_tags(
        self,
        source_text: str,
        method: LinkIdentifier,
        references: Sequence[str],
        file_path: Path | None = None,
    ) -> str:
        """Remove @see lines naming references; a doc comment left empty goes too."""
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        if info.doc_span is None:
            return source_text
        start, end = info.doc_span
        doc = source.data[start:end].decode("utf-8")
        updated = remove_see_lines(doc, references)
        if updated == doc:
            return source_text
        if is_empty_doc(updated):
            start, end = attribute_group_removal(source.data, info.doc_span)
            updated = ""
        return apply_splices(source.data, [(start, end, updated)]).decode("utf-8")

    def fix_see_references(
        self,
        source_text: str,
        method: LinkIdentifier,
        replacements: Sequence[tuple[str, str]],
        file_path: Path | None = None,
    ) -> str:
        """Rewrite @see references as written into their fully qualified form."""
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        if info.doc_span is None:
            return source_text
        start, end = info.doc_span
        doc = source.data[start:end].decode("utf-8")
        updated = doc
        for original, replacement in replacements:
            updated = replace_see_reference(updated, original, replacement)
        if updated == doc:
            return source_text
        return apply_splices(source.data, [(start, end, updated)]).decode("utf-8")

    # --- Placeholders ---

    def replace_placeholder(
        self,
        source_text: str,
        method: LinkIdentifier,
        placeholder: str,
        tests: Sequence[TestReference],
        file_path: Path | None = None,
        use_see_tag: bool = False,
    ) -> str:
        """
        Expand #[TestedBy('@A')] on method into back-references to tests.

        An attribute alone in its group is replaced by one group per test on
        its own line; inside a shared group it becomes comma-separated
        entries. Tests already named are left out. With use_see_tag the
        placeholder is removed and @see tags are written instead.

        Raises:
            ProductionMethodNotFoundError: If the method is not in the source
        """
        source = PhpSource(source_text, file_path)
        info = self._locate(source, method, file_path)
        placeholder_sites: list[DeclarationSite] = []
        present: set[TestReference] = set()
        for reference, site in self._sites(source, info):
            if reference.test_method is None and reference.test_identifier == placeholder:
                placeholder_sites.append(site)
            else:
                present.add(reference)
        if not placeholder_sites:
            return source_text

        if use_see_tag:
            splices = entry_removals(source.data, placeholder_sites, attribute_group_removal)
            references = [see_reference_for(reference) for reference in tests]
            doc_splice = see_splice(source.data, info, references)
            if doc_splice is not None:
                splices.append(doc_splice)
            return apply_splices(source.data, splices).decode("utf-8")

        missing: list[TestReference] = []
        for reference in tests:
            if reference not in present and reference not in missing:
                missing.append(reference)
        if not missing:
            splices = entry_removals(source.data, placeholder_sites, attribute_group_removal)
            return apply_splices(source.data, splices).decode("utf-8")

        site = placeholder_sites[0]
        entries = [render_tested_by_entry(site.kind, reference) for reference in missing]
        if len(site.container_entries) > 1:
            splices = [(*site.span, ", ".join(entries))]
        else:
            separator = "\n" + line_indent(source.data, site.container_span[0])
            splices = [(*site.container_span, separator.join(f"#[{entry}]" for entry in entries))]
        splices.extend(entry_removals(source.data, placeholder_sites[1:], attribute_group_removal))
        return apply_splices(source.data, splices).decode("utf-8")

    def _locate(
        self, source: PhpSource, method: LinkIdentifier, file_path: Path | None
    ) -> MethodInfo:
        for info in source.classes():
            if info.fqcn != method.class_name:
                continue
            found = info.find_method(method.method_name or "")
            if found is not None:
                return found
        raise ProductionMethodNotFoundError(str(method), file_path)

    def _sites(
        self, source: PhpSource, info: MethodInfo
    ) -> list[tuple[TestReference, DeclarationSite]]:
        """Existing TestedBy entries of a method with their evaluated references."""
        sites: list[tuple[TestReference, DeclarationSite]] = []
        for group in info.attributes:
            entries = tuple(entry.span for entry in group.entries)
            for entry in group.entries:
                if entry.short_name != TESTED_BY_ATTRIBUTE:
                    continue
                reference = evaluate_tested_by(source, entry)
                if reference is None:
                    continue
                sites.append(
                    (
                        reference,
                        DeclarationSite(
                            kind=entry.name,
                            positional_arguments=[source.argument_text(a) for a in entry.arguments],
                            link=None,
                            span=entry.span,
                            name_span=entry.name_span,
                            container_span=group.span,
                            container_entries=entries,
                        ),
                    )
                )
        return sites


def create_modifier() -> ProductionModifier:
    """Factory function to create a ProductionModifier."""
    return ProductionModifier()
