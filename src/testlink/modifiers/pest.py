"""
testlink.modifiers.pest - Rewrites ->links()/->linksAndCovers() chains.

New calls are appended right after the test's existing link calls (or
after the test() call itself), reusing the whitespace that separates the
chain's existing calls so multi-line chains stay multi-line.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from testlink.core.models import DeclarationSite, LinkIdentifier, ParsedTestCase, SyntaxKind
from testlink.modifiers.base import BaseModifier, Splice
from testlink.parsers.pest import PestParser
from testlink.parsers.php import FileContext, PhpSource, quote_php_string, whitespace_before

LINKS_CALL = "links"
LINKS_AND_COVERS_CALL = "linksAndCovers"

_NEXT_CALL = re.compile(rb"\s*(?=\??->)")


def render_reference(context: FileContext, target: LinkIdentifier) -> str:
    """Render a target as ``Class::class.'::method'`` for a Pest chain."""
    reference = f"{context.reference_for(target.class_name)}::class"
    if target.method_name is None:
        return reference
    return f"{reference}.{quote_php_string('::' + target.method_name)}"


class PestModifier(BaseModifier):
    """Modifier for fluent-chain (Pest) tests."""

    syntax_kind = SyntaxKind.FLUENT_CHAIN

    def __init__(self, parser: PestParser | None = None):
        self.parser = parser or PestParser()

    def declaration_name(
        self, source: PhpSource, with_coverage: bool, written_as: str | None, imports: set[str]
    ) -> str:
        return LINKS_AND_COVERS_CALL if with_coverage else LINKS_CALL

    def insertion(
        self,
        source: PhpSource,
        test_case: ParsedTestCase,
        targets: Sequence[LinkIdentifier],
        with_coverage: bool,
        imports: set[str],
    ) -> Splice:
        offset = test_case.declarations_end
        separator = self._separator(source.data, test_case)
        name = self.declaration_name(source, with_coverage, None, imports)
        calls = "".join(
            f"{separator}->{name}({render_reference(source.context, target)})" for target in targets
        )
        return offset, offset, calls

    def container_removal(self, data: bytes, container: tuple[int, int]) -> tuple[int, int]:
        return whitespace_before(data, container[0]), container[1]

    def placeholder_replacement(
        self, source: PhpSource, site: DeclarationSite, targets: Sequence[LinkIdentifier]
    ) -> Splice:
        references = [render_reference(source.context, target) for target in targets]
        if len(site.container_entries) > 1:
            return (*site.span, ", ".join(references))
        # Sole argument: one call per target, separated like the chain
        start, end = site.container_span
        separator = source.data[whitespace_before(source.data, start) : start].decode("utf-8")
        calls = separator.join(f"->{site.kind}({reference})" for reference in references)
        return start, end, calls

    def _separator(self, data: bytes, test_case: ParsedTestCase) -> str:
        """Whitespace placed before each new ->call()."""
        if test_case.declarations:
            call_start = test_case.declarations[-1].container_span[0]
            return data[whitespace_before(data, call_start) : call_start].decode("utf-8")
        following = _NEXT_CALL.match(data, test_case.declarations_end)
        if following is not None:
            return following.group().decode("utf-8")
        return ""


def create_modifier() -> PestModifier:
    """Factory function to create a PestModifier."""
    return PestModifier()
