"""
testlink.parsers.php - PHP syntax tree and structure helpers.

Sources are parsed with tree-sitter's PHP grammar. Every offset handed
out by this module is a byte offset into the UTF-8 encoded source, taken
from node boundaries, so modifiers can splice the original bytes instead
of regenerating text.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_php
from tree_sitter import Language, Node, Parser

from testlink.exceptions import ParseError

PHP_LANGUAGE = Language(tree_sitter_php.language_php())

_PARSER = Parser(PHP_LANGUAGE)

_DOUBLE_QUOTE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "e": "\x1b",
    "f": "\f",
    "0": "\0",
    "\\": "\\",
    "$": "$",
    '"': '"',
}

CLASS_NODES = {
    "class_declaration": "class",
    "trait_declaration": "trait",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}
CALL_NODES = ("member_call_expression", "nullsafe_member_call_expression")
CLOSURE_NODES = ("anonymous_function", "anonymous_function_creation_expression")
NAME_NODES = ("name", "qualified_name")

_STATIC_STRING_PARTS = {"string_content", "string_value", "escape_sequence"}


def node_text(node: Node) -> str:
    """Decoded source text of a node."""
    return node.text.decode("utf-8")


def code_children(node: Node) -> list[Node]:
    """Named children of a node, comments left out."""
    return [child for child in node.named_children if child.type != "comment"]


def child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def line_of(data: bytes, offset: int) -> int:
    """1-based line number of a byte offset."""
    return data.count(b"\n", 0, offset) + 1


def line_start(data: bytes, offset: int) -> int:
    """Offset of the first byte of the line containing offset."""
    return data.rfind(b"\n", 0, offset) + 1


def line_indent(data: bytes, offset: int) -> str:
    """Leading whitespace of the line containing offset."""
    start = line_start(data, offset)
    end = start
    while end < len(data) and data[end : end + 1] in (b" ", b"\t"):
        end += 1
    return data[start:end].decode("utf-8")


def whitespace_before(data: bytes, offset: int) -> int:
    """Offset where the run of whitespace ending at offset begins."""
    while offset > 0 and data[offset - 1 : offset] in (b" ", b"\t", b"\r", b"\n"):
        offset -= 1
    return offset


def decode_single_quoted(body: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", body)


def decode_double_quoted(body: str) -> str:
    return re.sub(
        r"\\(.)",
        lambda m: _DOUBLE_QUOTE_ESCAPES.get(m.group(1), m.group(0)),
        body,
        flags=re.DOTALL,
    )


def quote_php_string(value: str) -> str:
    """Render value as a single-quoted PHP string literal.

    Backslashes are only doubled where PHP would otherwise read them as an
    escape, so namespaces keep their usual ``'App\\Models\\User'`` form.
    """
    escaped = re.sub(r"\\(?=[\\']|$)", r"\\\\", value)
    return "'" + escaped.replace("'", "\\'") + "'"


def first_syntax_error(root: Node) -> Node | None:
    """First ERROR or missing node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        stack.extend(child for child in reversed(node.children) if child.has_error or child.is_missing)
    return None


def parse_tree(data: bytes, file_path: Path | None = None) -> Node:
    """
    Parse PHP bytes into a syntax tree.

    Returns:
        The root ``program`` node

    Raises:
        ParseError: If the source does not parse cleanly
    """
    root = _PARSER.parse(data).root_node
    if root.has_error:
        bad = first_syntax_error(root)
        line = bad.start_point[0] + 1 if bad is not None else 1
        if bad is not None and bad.is_missing:
            raise ParseError(file_path, f"missing '{bad.type}' at line {line}")
        raise ParseError(file_path, f"syntax error at line {line}")
    return root


@dataclass
class FileContext:
    """
    Namespace and imports declared at the top level of a file.

    Attributes:
        namespace: Declared namespace ("" for the global namespace)
        imports: Class imports, alias -> fully qualified name
        namespace_end: Offset just past the namespace statement
        import_spans: Offsets of each top-level use statement
        header_end: Offset just past the open tag and declare() statement
    """

    namespace: str = ""
    imports: dict[str, str] = field(default_factory=dict)
    namespace_end: int | None = None
    import_spans: list[tuple[int, int]] = field(default_factory=list)
    header_end: int = 0

    def lookup_import(self, alias: str) -> str | None:
        """Imported name for alias (PHP aliases are case-insensitive)."""
        lowered = alias.lower()
        for key, target in self.imports.items():
            if key.lower() == lowered:
                return target
        return None

    def alias_for(self, fqcn: str) -> str | None:
        """Alias under which fqcn is imported, if it is."""
        lowered = fqcn.lower()
        for alias, target in self.imports.items():
            if target.lower() == lowered:
                return alias
        return None

    def resolve(self, name: str) -> str:
        """Resolve a class name the way PHP does for the current file."""
        if name.startswith("\\"):
            return name[1:]
        lowered = name.lower()
        if lowered in ("self", "static", "parent"):
            return name
        if lowered.startswith("namespace\\"):
            rest = name[len("namespace\\") :]
            return f"{self.namespace}\\{rest}" if self.namespace else rest
        first, sep, rest = name.partition("\\")
        imported = self.lookup_import(first)
        if imported is not None:
            return f"{imported}\\{rest}" if sep else imported
        return f"{self.namespace}\\{name}" if self.namespace else name

    def reference_for(self, fqcn: str) -> str:
        """Shortest way to write fqcn in this file."""
        alias = self.alias_for(fqcn)
        if alias is not None:
            return alias
        if not self.namespace:
            return fqcn
        prefix = self.namespace + "\\"
        if fqcn.startswith(prefix) and "\\" not in fqcn[len(prefix) :]:
            short = fqcn[len(prefix) :]
            if self.lookup_import(short) is None:
                return short
        return "\\" + fqcn

    def import_insert_offset(self) -> int:
        """Offset where a new use statement should be inserted."""
        if self.import_spans:
            return self.import_spans[-1][1]
        if self.namespace_end is not None:
            return self.namespace_end
        return self.header_end


@dataclass
class Argument:
    """
    One argument of a call or attribute.

    Attributes:
        start: Offset of the argument (its name, for named arguments)
        end: Offset just past the argument
        name: Parameter name for named arguments
        value: Expression node of the argument
    """

    start: int
    end: int
    name: str | None = None
    value: Node | None = None


@dataclass
class AttributeEntry:
    """One attribute inside a #[...] group."""

    name: str
    resolved_name: str
    arguments: list[Argument]
    span: tuple[int, int]
    name_span: tuple[int, int]

    @property
    def short_name(self) -> str:
        return self.resolved_name.rsplit("\\", 1)[-1]


@dataclass
class AttributeGroup:
    """A #[...] group and its entries."""

    span: tuple[int, int]
    entries: list[AttributeEntry]


@dataclass
class MethodInfo:
    """
    A method declared in a class body.

    Attributes:
        name: Method name
        attributes: Attribute groups preceding the method
        modifiers: Lower-cased modifiers (public, static, ...)
        doc: Doc comment of the method, if any
        start: Offset of the first attribute, modifier or keyword
        declaration_start: Offset of the first modifier or ``function``
        end: Offset just past the body or terminating semicolon
        doc_span: Offsets of the doc comment, if any
    """

    name: str
    attributes: list[AttributeGroup]
    modifiers: set[str]
    doc: str | None
    start: int
    declaration_start: int
    end: int
    doc_span: tuple[int, int] | None = None

    @property
    def is_public(self) -> bool:
        return not ({"private", "protected"} & self.modifiers)


@dataclass
class ClassInfo:
    """A class-like declaration (class, trait, interface, enum)."""

    name: str
    fqcn: str
    kind: str
    modifiers: set[str]
    extends: str | None
    span: tuple[int, int]
    methods: list[MethodInfo] = field(default_factory=list)

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    def find_method(self, name: str) -> MethodInfo | None:
        lowered = name.lower()
        for method in self.methods:
            if method.name.lower() == lowered:
                return method
        return None


def _modifiers(node: Node) -> set[str]:
    return {
        node_text(child).lower()
        for child in node.children
        if child.type.endswith("_modifier") and child.type != "reference_modifier"
    }


def _doc_comment(node: Node) -> Node | None:
    """Doc comment written before a declaration or between its attributes and keywords."""
    for child in node.children:
        if child.type == "comment" and node_text(child).startswith("/**"):
            return child
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "comment":
        if node_text(sibling).startswith("/**"):
            return sibling
        sibling = sibling.prev_sibling
    return None


class PhpSource:
    """
    Parsed PHP text with the file's namespace context.

    Raises ParseError from the constructor when tree-sitter reports a
    syntax error anywhere in the text.
    """

    def __init__(self, text: str, file_path: Path | None = None):
        self.text = text
        self.data = text.encode("utf-8")
        self.file_path = file_path
        self.root = parse_tree(self.data, file_path)
        self.context = self._read_context()

    def line_of(self, offset: int) -> int:
        return line_of(self.data, offset)

    def top_level(self) -> Iterator[Node]:
        """Top-level statements, including those of braced namespaces."""
        for node in code_children(self.root):
            if node.type == "namespace_definition":
                body = node.child_by_field_name("body")
                if body is not None:
                    yield node
                    yield from code_children(body)
                    continue
            yield node

    # --- Arguments and static values ---

    def arguments(self, node: Node | None) -> list[Argument]:
        """Arguments of an ``arguments`` node (None gives no arguments)."""
        if node is None:
            return []
        found: list[Argument] = []
        for child in code_children(node):
            if child.type != "argument":
                continue
            name_node = child.child_by_field_name("name")
            values = code_children(child)
            if name_node is not None:
                values = [v for v in values if v.start_byte >= name_node.end_byte]
            found.append(
                Argument(
                    start=child.start_byte,
                    end=child.end_byte,
                    name=node_text(name_node) if name_node is not None else None,
                    value=values[-1] if values else None,
                )
            )
        return found

    def argument_text(self, argument: Argument) -> str:
        return self.data[argument.start : argument.end].decode("utf-8")

    def static_string(self, argument: Argument) -> str | None:
        """
        Evaluate an argument built from string literals and ``X::class``.

        Supports ``'A::b'``, ``A::class`` and ``A::class.'::b'``; class names
        are resolved against the file's namespace and imports.

        Returns:
            The string value, or None if the argument is not static
        """
        return self.static_value(argument.value)

    def static_value(self, node: Node | None) -> str | None:
        if node is None:
            return None
        kind = node.type
        if kind == "string":
            text = node_text(node)
            if text[:1] in ("b", "B"):
                text = text[1:]
            if text.startswith('"'):
                return decode_double_quoted(text[1:-1])
            return decode_single_quoted(text[1:-1])
        if kind == "encapsed_string":
            if any(child.type not in _STATIC_STRING_PARTS for child in code_children(node)):
                return None
            text = node_text(node)
            if text[:1] in ("b", "B"):
                text = text[1:]
            return decode_double_quoted(text[1:-1])
        if kind == "class_constant_access_expression":
            scope = node.children[0]
            if node_text(node.children[-1]).lower() != "class" or scope.type not in NAME_NODES:
                return None
            return self.context.resolve(node_text(scope))
        if kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is None or node_text(operator) != ".":
                return None
            left = self.static_value(node.child_by_field_name("left"))
            right = self.static_value(node.child_by_field_name("right"))
            if left is None or right is None:
                return None
            return left + right
        if kind == "parenthesized_expression":
            inner = code_children(node)
            return self.static_value(inner[0]) if inner else None
        return None

    # --- Attributes and class structure ---

    def attribute_groups(self, node: Node | None) -> list[AttributeGroup]:
        """Groups of an ``attribute_list`` node."""
        if node is None:
            return []
        return [
            self._attribute_group(group)
            for group in code_children(node)
            if group.type == "attribute_group"
        ]

    def _attribute_group(self, node: Node) -> AttributeGroup:
        entries: list[AttributeEntry] = []
        for attribute in code_children(node):
            if attribute.type != "attribute":
                continue
            name_node = child_of_type(attribute, *NAME_NODES)
            if name_node is None:
                continue
            arguments_node = attribute.child_by_field_name("parameters") or child_of_type(
                attribute, "arguments"
            )
            name = node_text(name_node)
            entries.append(
                AttributeEntry(
                    name=name,
                    resolved_name=self.context.resolve(name),
                    arguments=self.arguments(arguments_node),
                    span=(attribute.start_byte, attribute.end_byte),
                    name_span=(name_node.start_byte, name_node.end_byte),
                )
            )
        return AttributeGroup(span=(node.start_byte, node.end_byte), entries=entries)

    def classes(self) -> list[ClassInfo]:
        """All named class-like declarations in the file, in source order."""
        found: list[ClassInfo] = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.type in CLASS_NODES:
                info = self._read_class(node)
                if info is not None:
                    found.append(info)
                continue
            stack.extend(reversed(node.named_children))
        return found

    def _read_class(self, node: Node) -> ClassInfo | None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return None
        name = node_text(name_node)
        extends = None
        base = child_of_type(node, "base_clause")
        if base is not None:
            parents = [child for child in code_children(base) if child.type in NAME_NODES]
            if parents:
                extends = self.context.resolve(node_text(parents[0]))

        info = ClassInfo(
            name=name,
            fqcn=f"{self.context.namespace}\\{name}" if self.context.namespace else name,
            kind=CLASS_NODES[node.type],
            modifiers=_modifiers(node),
            extends=extends,
            span=(node.start_byte, node.end_byte),
        )
        info.methods = [
            self._read_method(member)
            for member in code_children(body)
            if member.type == "method_declaration"
        ]
        return info

    def _read_method(self, node: Node) -> MethodInfo:
        attributes_node = node.child_by_field_name("attributes") or child_of_type(node, "attribute_list")
        declaration_start = node.start_byte
        for child in node.children:
            if child.type not in ("attribute_list", "comment"):
                declaration_start = child.start_byte
                break
        doc = _doc_comment(node)
        return MethodInfo(
            name=node_text(node.child_by_field_name("name")),
            attributes=self.attribute_groups(attributes_node),
            modifiers=_modifiers(node),
            doc=node_text(doc) if doc is not None else None,
            start=node.start_byte,
            declaration_start=declaration_start,
            end=node.end_byte,
            doc_span=(doc.start_byte, doc.end_byte) if doc is not None else None,
        )

    # --- Top-level namespace and imports ---

    def _read_context(self) -> FileContext:
        context = FileContext()
        for node in self.top_level():
            if node.type == "php_tag" and context.header_end == 0:
                context.header_end = node.end_byte
            elif node.type == "declare_statement":
                context.header_end = node.end_byte
            elif node.type == "namespace_definition":
                name = node.child_by_field_name("name")
                context.namespace = node_text(name).lstrip("\\") if name is not None else ""
                body = node.child_by_field_name("body")
                if body is None:
                    context.namespace_end = node.end_byte
                else:
                    context.namespace_end = body.children[0].end_byte
            elif node.type == "namespace_use_declaration":
                self._read_use(node, context)
                context.import_spans.append((node.start_byte, node.end_byte))
        return context

    def _read_use(self, node: Node, context: FileContext) -> None:
        """Record the class imports of one use statement."""
        if child_of_type(node, "function", "const") is not None:
            return
        group = child_of_type(node, "namespace_use_group")
        if group is None:
            for clause in code_children(node):
                if clause.type == "namespace_use_clause":
                    self._read_use_clause(clause, "", context)
            return
        prefix_node = child_of_type(node, "namespace_name", *NAME_NODES)
        prefix = node_text(prefix_node).strip("\\") + "\\" if prefix_node is not None else ""
        for clause in code_children(group):
            if clause.type in ("namespace_use_clause", "namespace_use_group_clause"):
                if child_of_type(clause, "function", "const") is None:
                    self._read_use_clause(clause, prefix, context)

    def _read_use_clause(self, clause: Node, prefix: str, context: FileContext) -> None:
        """Register one ``Name [as Alias]`` clause."""
        names = [child for child in code_children(clause) if child.type in (*NAME_NODES, "namespace_name")]
        if not names:
            return
        target = prefix + node_text(names[0]).lstrip("\\")
        alias_node = clause.child_by_field_name("alias")
        if alias_node is None:
            aliasing = child_of_type(clause, "namespace_aliasing_clause")
            if aliasing is not None:
                alias_node = child_of_type(aliasing, "name")
            elif len(names) > 1:
                alias_node = names[-1]
        alias = node_text(alias_node) if alias_node is not None else target.rsplit("\\", 1)[-1]
        context.imports[alias] = target
