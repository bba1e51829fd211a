"""
testlink.modifiers.base - Splice helpers and the shared modifier algorithm.

Modifiers never regenerate source. They compute a list of
``(start, end, replacement)`` splices against the UTF-8 bytes of the
text they were given, using the byte offsets of syntax tree nodes, and
apply them from the end of the file backwards, so every byte outside a
splice is preserved.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from testlink.core.models import (
    DeclarationSite,
    LinkIdentifier,
    ParsedTestCase,
    SyntaxKind,
    parse_canonical_form,
)
from testlink.docblock import add_see_lines, render_doc
from testlink.exceptions import TestCaseNotFoundError, TestLinkError
from testlink.parsers.base import BaseTestParser
from testlink.parsers.php import FileContext, MethodInfo, PhpSource, line_indent, line_start

Splice = tuple[int, int, str]


def apply_splices(data: bytes, splices: Iterable[Splice]) -> bytes:
    """Apply non-overlapping splices to data; replacements are encoded as UTF-8."""
    for start, end, replacement in sorted(splices, key=lambda s: (s[0], s[1]), reverse=True):
        data = data[:start] + replacement.encode("utf-8") + data[end:]
    return data


def list_removals(entries: Sequence[tuple[int, int]], removed: Sequence[bool]) -> list[tuple[int, int]]:
    """
    Ranges to delete when removing some entries of a comma-separated list.

    A removed run followed by a kept entry is deleted up to that entry, so
    its trailing separator goes with it. A run reaching the end of the
    list takes the separator before it. At least one entry must be kept.
    """
    ranges: list[tuple[int, int]] = []
    index = 0
    while index < len(entries):
        if not removed[index]:
            index += 1
            continue
        run_end = index
        while run_end + 1 < len(entries) and removed[run_end + 1]:
            run_end += 1
        if run_end + 1 < len(entries):
            ranges.append((entries[index][0], entries[run_end + 1][0]))
        else:
            ranges.append((entries[index - 1][1], entries[run_end][1]))
        index = run_end + 1
    return ranges


def attribute_group_removal(data: bytes, span: tuple[int, int]) -> tuple[int, int]:
    """Range to delete for a whole #[...] group, taking its line if it is alone on it."""
    start, end = span
    first = line_start(data, start)
    newline = data.find(b"\n", end)
    last = len(data) if newline == -1 else newline
    if not data[first:start].strip() and not data[end:last].strip():
        return first, min(last + 1, len(data))
    trailing = end
    while trailing < last and data[trailing : trailing + 1] in (b" ", b"\t"):
        trailing += 1
    if trailing > end:
        return start, trailing
    leading = start
    while leading > first and data[leading - 1 : leading] in (b" ", b"\t"):
        leading -= 1
    return leading, end


def attribute_insertion(
    data: bytes,
    last_group_end: int | None,
    declaration_start: int,
    groups: Sequence[str],
) -> Splice:
    """
    Splice adding rendered #[...] groups to a method.

    New groups go after the last existing group of the same family, one per
    line at that group's indentation. When that group shares its line with
    other code, the new groups follow it on the same line. Without an
    existing group they go on their own lines above the declaration.
    """
    if last_group_end is None:
        offset = line_start(data, declaration_start)
        indent = line_indent(data, declaration_start)
        return offset, offset, "".join(f"{indent}{group}\n" for group in groups)

    newline = data.find(b"\n", last_group_end)
    rest_of_line = data[last_group_end : newline if newline != -1 else len(data)]
    if rest_of_line.strip() or newline == -1:
        return last_group_end, last_group_end, "".join(f" {group}" for group in groups)
    indent = line_indent(data, last_group_end)
    return newline + 1, newline + 1, "".join(f"{indent}{group}\n" for group in groups)


def import_insertion(context: FileContext, names: Iterable[str]) -> Splice | None:
    """Splice adding ``use`` statements for names the file does not import yet."""
    missing = sorted({name for name in names if context.alias_for(name) is None})
    if not missing:
        return None
    statements = [f"use {name};" for name in missing]
    offset = context.import_insert_offset()
    if context.import_spans:
        return offset, offset, "".join(f"\n{statement}" for statement in statements)
    return offset, offset, "\n\n" + "\n".join(statements)


def entry_removals(
    data: bytes,
    doomed: Sequence[DeclarationSite],
    container_removal: Callable[[bytes, tuple[int, int]], tuple[int, int]],
) -> list[Splice]:
    """
    Splices deleting the doomed entries.

    Entries are grouped by container; a container losing all of its entries
    is deleted as a whole through container_removal.
    """
    by_container: dict[tuple[int, int], tuple[tuple[tuple[int, int], ...], set[tuple[int, int]]]] = {}
    for site in doomed:
        _, spans = by_container.setdefault(site.container_span, (site.container_entries, set()))
        spans.add(site.span)

    splices: list[Splice] = []
    for container, (entries, spans) in by_container.items():
        removed = [entry in spans for entry in entries]
        if all(removed):
            start, end = container_removal(data, container)
            splices.append((start, end, ""))
        else:
            splices.extend((start, end, "") for start, end in list_removals(entries, removed))
    return splices


def see_splice(data: bytes, method: MethodInfo, references: Sequence[str]) -> Splice | None:
    """
    Splice adding @see lines to the doc comment of method.

    A method without a doc comment gets a new one on the line above its
    first attribute or modifier. Returns None when every reference is
    already present.
    """
    if method.doc_span is None:
        offset = line_start(data, method.start)
        return offset, offset, render_doc(references, line_indent(data, method.start))
    start, end = method.doc_span
    doc = data[start:end].decode("utf-8")
    updated = add_see_lines(doc, references, line_indent(data, start))
    if updated == doc:
        return None
    return start, end, updated


def see_reference_to(target: LinkIdentifier) -> str:
    """@see text naming a production class or method."""
    return "\\" + target.canonical


def unique_targets(methods: Iterable[str]) -> list[LinkIdentifier]:
    """Parse canonical forms, dropping repeats but keeping first-seen order."""
    seen: list[LinkIdentifier] = []
    for method in methods:
        target = parse_canonical_form(method)
        if target not in seen:
            seen.append(target)
    return seen


class BaseModifier:
    """
    Shared inject/remove algorithm for both test syntaxes.

    Subclasses render declarations and say how a whole container (call
    or attribute group) is deleted. Every operation re-locates the test in
    the text it is handed, so a ParsedTestCase from an earlier parse of
    the same file stays usable after other edits to that file.
    """

    syntax_kind: SyntaxKind
    parser: BaseTestParser

    def supports(self, test_case: ParsedTestCase) -> bool:
        return test_case.syntax_kind is self.syntax_kind

    def locate(self, source: PhpSource, test_case: ParsedTestCase) -> ParsedTestCase:
        """
        Find test_case in source by full name.

        Raises:
            TestCaseNotFoundError: If no test of that name exists
        """
        candidates = [
            test
            for test in self.parser.find_all_tests(source.text, source.file_path)
            if test.full_name == test_case.full_name
        ]
        if not candidates:
            raise TestCaseNotFoundError(test_case.full_name, test_case.file_path)
        return min(candidates, key=lambda t: abs(t.source_span[0] - test_case.source_span[0]))

    def inject_links(
        self,
        source_text: str,
        test_case: ParsedTestCase,
        methods: Sequence[str],
        with_coverage: bool = True,
    ) -> str:
        """
        Add declarations for every method the test does not link to yet.

        A method already declared link-only is upgraded in place when
        with_coverage is True. Existing declarations are never downgraded.

        Args:
            source_text: Current content of the test file
            test_case: The test to modify
            methods: Canonical targets ("Class::method" or "Class")
            with_coverage: Render links-and-covers instead of link-only

        Returns:
            The rewritten source (the input itself if nothing changes)
        """
        source = self._source(source_text, test_case.file_path)
        current = self.locate(source, test_case)

        by_target: dict[LinkIdentifier, list[DeclarationSite]] = {}
        for site in current.declarations:
            if site.link is not None:
                by_target.setdefault(site.link.target, []).append(site)

        imports: set[str] = set()
        splices: list[Splice] = []
        additions: list[LinkIdentifier] = []
        for target in unique_targets(methods):
            sites = by_target.get(target)
            if not sites:
                additions.append(target)
                continue
            if not with_coverage or any(site.link.with_coverage for site in sites):
                continue
            site = sites[0]
            if sum(1 for other in current.declarations if other.name_span == site.name_span) == 1:
                name = self.declaration_name(source, True, site.kind, imports)
                splices.append((*site.name_span, name))
            else:
                # The name is shared with other entries: move this one out
                splices.extend(self._entry_removals(source.data, [site]))
                additions.append(target)

        if additions:
            splices.append(self.insertion(source, current, additions, with_coverage, imports))
        if not splices:
            return source_text
        import_splice = import_insertion(source.context, imports)
        if import_splice is not None:
            splices.append(import_splice)
        return apply_splices(source.data, splices).decode("utf-8")

    def remove_links(
        self,
        source_text: str,
        test_case: ParsedTestCase,
        methods: Sequence[str],
    ) -> str:
        """
        Delete declarations whose target is in methods.

        A call or attribute group left without entries is removed entirely.
        Without matching declarations the input is returned unchanged.
        """
        source = self._source(source_text, test_case.file_path)
        current = self.locate(source, test_case)
        targets = set(unique_targets(methods))
        doomed = [
            site
            for site in current.declarations
            if site.link is not None and site.link.target in targets
        ]
        if not doomed:
            return source_text
        return apply_splices(source.data, self._entry_removals(source.data, doomed)).decode("utf-8")

    def replace_placeholder(
        self,
        source_text: str,
        test_case: ParsedTestCase,
        placeholder: str,
        methods: Sequence[str],
        use_see_tag: bool = False,
    ) -> str:
        """
        Replace a placeholder declaration with links to methods.

        The first declaration of the placeholder is rewritten in place, in
        the same call or attribute style; repeats of it are removed. Methods
        the test already links to are left out. With use_see_tag the
        placeholder is removed and @see tags are written instead.

        Raises:
            TestCaseNotFoundError: If the test is not in the source
            TestLinkError: If the syntax has no @see support
        """
        source = self._source(source_text, test_case.file_path)
        current = self.locate(source, test_case)
        sites = [site for site in current.declarations if site.placeholder == placeholder]
        if not sites:
            return source_text

        if use_see_tag:
            splices = self._entry_removals(source.data, sites)
            references = [see_reference_to(target) for target in unique_targets(methods)]
            splice = self.see_tag_splice(source, current, references)
            if splice is not None:
                splices.append(splice)
            return apply_splices(source.data, splices).decode("utf-8")

        linked = {site.link.target for site in current.declarations if site.link is not None}
        targets = [target for target in unique_targets(methods) if target not in linked]
        if not targets:
            splices = self._entry_removals(source.data, sites)
        else:
            splices = [self.placeholder_replacement(source, sites[0], targets)]
            splices.extend(self._entry_removals(source.data, sites[1:]))
        return apply_splices(source.data, splices).decode("utf-8")

    def _entry_removals(self, data: bytes, doomed: Sequence[DeclarationSite]) -> list[Splice]:
        return entry_removals(data, doomed, self.container_removal)

    def _source(self, source_text: str, file_path: Path | None) -> PhpSource:
        return PhpSource(source_text, file_path)

    # --- Syntax-specific hooks ---

    def declaration_name(
        self, source: PhpSource, with_coverage: bool, written_as: str | None, imports: set[str]
    ) -> str:
        """Name to write for a declaration; may add to imports."""
        raise NotImplementedError

    def insertion(
        self,
        source: PhpSource,
        test_case: ParsedTestCase,
        targets: Sequence[LinkIdentifier],
        with_coverage: bool,
        imports: set[str],
    ) -> Splice:
        """Splice adding declarations for targets after the existing ones."""
        raise NotImplementedError

    def container_removal(self, data: bytes, container: tuple[int, int]) -> tuple[int, int]:
        """Range to delete when a whole call or attribute group goes away."""
        raise NotImplementedError

    def placeholder_replacement(
        self, source: PhpSource, site: DeclarationSite, targets: Sequence[LinkIdentifier]
    ) -> Splice:
        """Splice rewriting one placeholder declaration into declarations of targets."""
        raise NotImplementedError

    def see_tag_splice(
        self, source: PhpSource, test_case: ParsedTestCase, references: Sequence[str]
    ) -> Splice | None:
        """Splice adding @see tags to the test's doc comment."""
        raise TestLinkError(f"{test_case.qualified_identifier}: @see tags are not supported here")
