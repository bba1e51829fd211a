"""
testlink.docblock - @see tags in method doc comments.

Production methods can mirror their #[TestedBy] back-references as
``@see`` tags, which IDEs render as clickable links::

    /**
     * Create a user.
     *
     * @see \\Tests\\Unit\\UserServiceTest::test_creates_user
     */
    #[TestedBy('Tests\\Unit\\UserServiceTest', 'test_creates_user')]
    public function create(): User

A reference without a leading backslash is resolved by PHP tooling
relative to the file's imports, which is easy to get wrong. The helpers
here find such references and compute the fully qualified form.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from testlink.core.models import CANONICAL_SEPARATOR, LinkIdentifier, TestReference

if TYPE_CHECKING:
    from testlink.parsers.php import FileContext

# Class part, then an optional member: PHPUnit test methods, Pest titles
# (lower-case words separated by spaces) or any other identifier
_REFERENCE = r"\\?[\w\\]+(?:::(?:test\w+|[a-z]+(?:[ \t]+[a-z]+)*|\w+))?"

SEE_LINE = re.compile(
    rf"^(?P<prefix>[ \t]*(?:/\*\*)?[ \t]*\*?[ \t]*@see[ \t]+)(?P<reference>{_REFERENCE})(?P<rest>[^\r\n]*)$",
    re.MULTILINE,
)


def normalize_reference(reference: str) -> str:
    return reference.lstrip("\\")


def see_reference_for(test: TestReference) -> str:
    """``@see`` text naming a test: its qualified identifier with a leading backslash."""
    return "\\" + normalize_reference(test.qualified)


def see_references(doc: str | None) -> list[str]:
    """References of every @see tag in a doc comment, as written."""
    if not doc:
        return []
    return [match.group("reference") for match in SEE_LINE.finditer(doc)]


def has_see_reference(doc: str | None, reference: str) -> bool:
    """Check for a @see tag naming reference, ignoring a leading backslash."""
    wanted = normalize_reference(reference)
    return any(normalize_reference(existing) == wanted for existing in see_references(doc))


def render_doc(references: Sequence[str], indent: str) -> str:
    """A new doc comment holding only @see tags, one line each, newline-terminated."""
    lines = [f"{indent}/**"]
    lines.extend(f"{indent} * @see {reference}" for reference in references)
    lines.append(f"{indent} */")
    return "\n".join(lines) + "\n"


def add_see_lines(doc: str, references: Sequence[str], indent: str) -> str:
    """
    Add @see lines to an existing doc comment.

    References already present are skipped. A blank `` *`` line separates
    the new tags from a description, unless the last line is already blank
    or a @see tag. Single-line comments are expanded to multi-line form.

    Args:
        doc: The doc comment, from ``/**`` to ``*/``
        references: References to add, in order
        indent: Indentation of the line the comment starts on

    Returns:
        The new doc comment (doc itself if nothing was added)
    """
    missing = [reference for reference in references if not has_see_reference(doc, reference)]
    if not missing:
        return doc
    see_lines = [f"{indent} * @see {reference}" for reference in missing]

    if "\n" not in doc:
        inner = doc[3:-2].strip().lstrip("*").strip()
        body = [f"{indent} * {inner}", f"{indent} *"] if inner else []
        if inner.startswith("@"):
            body = [f"{indent} * {inner}"]
        return "\n".join(["/**", *body, *see_lines, f"{indent} */"])

    head, _, closing = doc.rpartition("\n")
    if closing.strip() != "*/":
        # Text shares the closing line: move the closer onto its own line
        head = head + "\n" + closing[: closing.rfind("*/")].rstrip()
        closing = f"{indent} */"
    lines = head.split("\n")
    last = lines[-1].strip()
    if len(lines) > 1 and last != "*" and "@see" not in last:
        see_lines.insert(0, f"{indent} *")
    return "\n".join([*lines, *see_lines, closing])


def remove_see_lines(doc: str, references: Iterable[str]) -> str:
    """Delete the @see lines naming any of references (leading backslash ignored)."""
    unwanted = {normalize_reference(reference) for reference in references}
    kept = []
    for line in doc.split("\n"):
        match = SEE_LINE.match(line)
        if match is not None and normalize_reference(match.group("reference")) in unwanted:
            if line.lstrip().startswith("/**") or line.rstrip().endswith("*/"):
                # Single-line comment: keep the delimiters
                kept.append(line[: match.start("prefix")] + "/** */")
            continue
        kept.append(line)
    return "\n".join(kept)


def replace_see_reference(doc: str, original: str, replacement: str) -> str:
    """Rewrite the first @see tag naming exactly original."""

    def substitute(match: re.Match) -> str:
        return match.group("prefix") + replacement + match.group("rest")

    for match in SEE_LINE.finditer(doc):
        if match.group("reference") == original:
            return doc[: match.start()] + substitute(match) + doc[match.end() :]
    return doc


def is_empty_doc(doc: str) -> bool:
    """Check whether a doc comment has nothing left but delimiters and bare asterisks."""
    body = doc.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]
    return not body.replace("*", "").strip()


def split_reference(reference: str) -> tuple[str | None, str | None]:
    """
    Split a @see reference into class and member parts.

    ``Foo::bar()`` gives ("Foo", "bar"); ``Foo`` gives ("Foo", None) when
    it looks like a class name; a lower-case ``bar`` is a member only.
    """
    if CANONICAL_SEPARATOR in reference:
        class_part, _, member = reference.partition(CANONICAL_SEPARATOR)
        return class_part, member.rstrip("()")
    if reference[:1].isupper() or reference.startswith("\\"):
        return reference, None
    return None, reference


@dataclass
class SeeTag:
    """
    One @see tag in a method's doc comment.

    Attributes:
        reference: Reference as written
        method: Method whose doc comment holds the tag
        file_path: File declaring the method
        line: 1-based line of the method
        candidate: Class part resolved against the file's namespace and imports
        imported: Whether the class part matched a use statement
    """

    reference: str
    method: LinkIdentifier
    file_path: Path | None = None
    line: int = 0
    candidate: str | None = None
    imported: bool = False

    @property
    def is_fqcn(self) -> bool:
        return self.reference.startswith("\\")

    @property
    def normalized(self) -> str:
        return normalize_reference(self.reference)


def see_tags_for(
    context: FileContext,
    method: LinkIdentifier,
    doc: str | None,
    file_path: Path | None = None,
    line: int = 0,
) -> list[SeeTag]:
    """Read the @see tags of one method's doc comment."""
    tags = []
    for reference in see_references(doc):
        class_part, _ = split_reference(reference)
        candidate = None
        imported = False
        if class_part is not None and not reference.startswith("\\"):
            head = class_part.partition("\\")[0]
            imported = context.lookup_import(head) is not None
            candidate = context.resolve(class_part)
        tags.append(SeeTag(reference, method, file_path, line, candidate, imported))
    return tags


@dataclass
class FqcnIssue:
    """
    A @see reference that is not fully qualified.

    Attributes:
        tag: The offending tag
        resolved: Fully qualified replacement, None when it cannot be resolved
        error: Why the reference could not be resolved
    """

    tag: SeeTag
    resolved: str | None = None
    error: str | None = None

    @property
    def fixable(self) -> bool:
        return self.resolved is not None

    @property
    def message(self) -> str:
        where = f"@see {self.tag.reference} on {self.tag.method}"
        if self.resolved is not None:
            return f"{where} is not fully qualified; use {self.resolved}"
        return f"{where} is not fully qualified: {self.error}"

    def to_dict(self) -> dict[str, str | int | bool | None]:
        return {
            "reference": self.tag.reference,
            "method": str(self.tag.method),
            "file": str(self.tag.file_path) if self.tag.file_path else None,
            "line": self.tag.line,
            "resolved": self.resolved,
            "fixable": self.fixable,
            "error": self.error,
        }


def validate_see_tags(
    tags: Iterable[SeeTag], class_exists: Callable[[str], bool]
) -> list[FqcnIssue]:
    """
    Check that every @see reference is fully qualified.

    A short class name resolves when it is imported, when it names a known
    class in the file's namespace, or when it names a known global class.

    Args:
        tags: Tags to check
        class_exists: Whether a fully qualified class (production or test) is known

    Returns:
        One issue per reference without a leading backslash, in input order
    """
    issues = []
    for tag in tags:
        if tag.is_fqcn:
            continue
        class_part, member = split_reference(tag.reference)
        if class_part is None:
            issues.append(FqcnIssue(tag, error="Method-only reference cannot be resolved"))
            continue
        if tag.imported or (tag.candidate is not None and class_exists(tag.candidate)):
            resolved_class = tag.candidate
        elif class_exists(class_part):
            resolved_class = class_part
        else:
            issues.append(
                FqcnIssue(tag, error=f"Could not resolve '{class_part}' - not found in use statements")
            )
            continue
        resolved = "\\" + normalize_reference(resolved_class)
        if member is not None:
            resolved += CANONICAL_SEPARATOR + member
        issues.append(FqcnIssue(tag, resolved=resolved))
    return issues
