"""
testlink.parsers.pest - Parser for Pest fluent-chain test declarations.

Recognizes::

    test('creates a user', function () { ... })
        ->linksAndCovers(UserService::class.'::create')
        ->links(UserValidator::class.'::validate');

    describe('UserService', function () {
        it('creates a user', fn () => ...)->linksAndCovers(...);
    });

A nested test's full name joins the describe titles and its own title
with " > ".
"""

from __future__ import annotations

from pathlib import Path

from tree_sitter import Node

from testlink.core.models import (
    CANONICAL_SEPARATOR,
    GROUP_SEPARATOR,
    DeclarationSite,
    DeclaredLink,
    ParsedTestCase,
    SyntaxKind,
    is_placeholder,
    parse_canonical_form,
)
from testlink.parsers.base import BaseTestParser
from testlink.parsers.php import (
    CALL_NODES,
    CLOSURE_NODES,
    Argument,
    PhpSource,
    child_of_type,
    code_children,
    node_text,
)

TEST_FUNCTIONS = ("test", "it")
GROUP_FUNCTION = "describe"

# Chain call name -> with_coverage
LINK_CALLS = {
    "links": False,
    "linksAndCovers": True,
}


def unwrap_chain(expression: Node) -> tuple[Node, list[Node]]:
    """
    Split ``base(...)->a(...)->b(...)`` into its base and chained calls.

    Returns:
        The innermost expression and the method calls in source order
    """
    calls: list[Node] = []
    node = expression
    while node.type in CALL_NODES:
        calls.append(node)
        node = node.child_by_field_name("object")
    calls.reverse()
    return node, calls


class PestParser(BaseTestParser):
    """Parser for test()/it() calls and their ->links() chains."""

    syntax_kind = SyntaxKind.FLUENT_CHAIN

    def find_all_tests(
        self, source_text: str, file_path: Path | None = None
    ) -> list[ParsedTestCase]:
        """
        Find every test() and it() call, descending into describe() groups.

        Args:
            source_text: PHP source
            file_path: When given, its stem becomes the unit name in the
                qualified identifier ("UserServiceTest::creates a user")

        Returns:
            Tests in source order

        Raises:
            ParseError: If the source has a syntax error
        """
        source = PhpSource(source_text, file_path)
        unit = Path(file_path).stem if file_path is not None else None
        tests: list[ParsedTestCase] = []

        # (statements, enclosing describe titles)
        stack: list[tuple[list[Node], tuple[str, ...]]] = [(list(source.top_level()), ())]
        while stack:
            statements, path = stack.pop()
            for statement in statements:
                if statement.type == "expression_statement":
                    inner = code_children(statement)
                    if not inner:
                        continue
                    expression, end = inner[0], statement.end_byte
                else:
                    expression, end = statement, statement.end_byte

                base, calls = unwrap_chain(expression)
                if base.type != "function_call_expression":
                    continue
                function = base.child_by_field_name("function")
                if function is None or function.type != "name":
                    continue
                name = node_text(function)
                if name not in (*TEST_FUNCTIONS, GROUP_FUNCTION):
                    continue
                arguments = source.arguments(base.child_by_field_name("arguments"))
                if not arguments:
                    continue
                title = self._title(source, arguments)
                if name == GROUP_FUNCTION:
                    body = self._group_body(arguments)
                    if body is not None:
                        stack.append((body, (*path, title)))
                    continue
                tests.append(self._read_test(source, base, calls, end, title, path, unit))

        tests.sort(key=lambda t: t.source_span[0])
        return tests

    def _title(self, source: PhpSource, arguments: list[Argument]) -> str:
        value = source.static_string(arguments[0])
        if value is None:
            value = source.argument_text(arguments[0])
        return value

    def _group_body(self, arguments: list[Argument]) -> list[Node] | None:
        """Statements of a describe() closure, or the expression of an arrow function."""
        if len(arguments) < 2 or arguments[1].value is None:
            return None
        closure = arguments[1].value
        body = closure.child_by_field_name("body")
        if body is None:
            return None
        if closure.type in CLOSURE_NODES:
            return code_children(body)
        if closure.type == "arrow_function":
            return [body]
        return None

    def _read_test(
        self,
        source: PhpSource,
        base: Node,
        calls: list[Node],
        end: int,
        title: str,
        path: tuple[str, ...],
        unit: str | None,
    ) -> ParsedTestCase:
        """Build the test for a test()/it() call and its chain."""
        declarations: list[DeclarationSite] = []
        links: list[DeclaredLink] = []
        declarations_end = base.end_byte

        for call in calls:
            name_node = call.child_by_field_name("name")
            if name_node is None or node_text(name_node) not in LINK_CALLS:
                continue
            kind = node_text(name_node)
            with_coverage = LINK_CALLS[kind]
            arguments = source.arguments(call.child_by_field_name("arguments"))
            arrow = child_of_type(call, "->", "?->")
            container = (arrow.start_byte if arrow is not None else call.start_byte, call.end_byte)
            entries = tuple((arg.start, arg.end) for arg in arguments)
            for argument in arguments:
                value = source.static_string(argument)
                link = None
                placeholder = None
                if is_placeholder(value):
                    placeholder = value
                elif value:
                    link = DeclaredLink(parse_canonical_form(value), with_coverage)
                    links.append(link)
                declarations.append(
                    DeclarationSite(
                        kind=kind,
                        positional_arguments=[source.argument_text(argument)],
                        link=link,
                        span=(argument.start, argument.end),
                        name_span=(name_node.start_byte, name_node.end_byte),
                        container_span=container,
                        container_entries=entries,
                        placeholder=placeholder,
                    )
                )
            declarations_end = call.end_byte

        full_name = GROUP_SEPARATOR.join((*path, title))
        qualified = f"{unit}{CANONICAL_SEPARATOR}{full_name}" if unit else full_name
        start = base.start_byte
        return ParsedTestCase(
            name=title,
            qualified_identifier=qualified,
            source_span=(start, end),
            declarations_end=declarations_end,
            syntax_kind=self.syntax_kind,
            existing_links=links,
            group_path=path,
            declarations=declarations,
            file_path=Path(source.file_path) if source.file_path is not None else None,
            line=source.line_of(start),
        )


def create_parser() -> PestParser:
    """Factory function to create a PestParser."""
    return PestParser()
