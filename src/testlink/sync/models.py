"""
testlink.sync.models - Findings and sync directives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from testlink.core.models import LinkIdentifier, ParsedTestCase, TestReference, canonical_form
from testlink.docblock import FqcnIssue
from testlink.scanner import FileError


class FindingKind(Enum):
    """Kind of inconsistency between test links and back-references."""

    MISSING_TESTED_BY = "missing-tested-by"
    DANGLING_LINK = "dangling-link"
    ORPHANED_BACK_REFERENCE = "orphaned-back-reference"
    MISSING_LINK = "missing-link"


@dataclass
class Finding:
    """
    One inconsistency found by the sync engine.

    Attributes:
        kind: What is wrong
        target: Production method (or class) the finding is about
        test_identifier: Qualified test identifier involved
        file_path: File the link or back-reference is declared in
        reference: The back-reference, for findings raised from production code
    """

    kind: FindingKind
    target: LinkIdentifier
    test_identifier: str
    file_path: Path | None = None
    reference: TestReference | None = None

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (canonical_form(self.target), self.test_identifier, self.kind.value)

    @property
    def message(self) -> str:
        target = canonical_form(self.target)
        if self.kind is FindingKind.MISSING_TESTED_BY:
            return f"{target} does not declare #[TestedBy] for {self.test_identifier}"
        if self.kind is FindingKind.DANGLING_LINK:
            return f"{self.test_identifier} links to {target}, which does not exist"
        if self.kind is FindingKind.ORPHANED_BACK_REFERENCE:
            return f"{target} names {self.test_identifier}, which does not exist"
        return f"{self.test_identifier} is named by {target} but does not link to it"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind.value,
            "target": canonical_form(self.target),
            "test": self.test_identifier,
            "file": str(self.file_path) if self.file_path else None,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass
class ValidationReport:
    """
    Result of checking a registry against a production index.

    Attributes:
        findings: Inconsistencies, sorted by target, test and kind
        consistent: Number of (test, target) pairs that are in sync
        see_issues: @see references that are not fully qualified; they do
            not count as findings
    """

    findings: list[Finding] = field(default_factory=list)
    consistent: int = 0
    see_issues: list[FqcnIssue] = field(default_factory=list)

    def of_kind(self, kind: FindingKind) -> list[Finding]:
        return [f for f in self.findings if f.kind is kind]

    @property
    def has_findings(self) -> bool:
        return bool(self.findings)


class ActionKind(Enum):
    """Edit a sync run performs."""

    ADD_TESTED_BY = "add-tested-by"
    ADD_LINK = "add-link"
    REMOVE_TESTED_BY = "remove-tested-by"
    ADD_SEE_TAG = "add-see-tag"
    REMOVE_SEE_TAG = "remove-see-tag"
    FIX_SEE_TAG = "fix-see-tag"


@dataclass
class SyncAction:
    """
    One planned edit.

    Attributes:
        kind: Which edit
        file_path: File to rewrite
        target: Production method the edit is about
        reference: The test, as named in a back-reference
        test_case: Test to modify, for ADD_LINK
        with_coverage: Render the link with coverage, for ADD_LINK
        see_reference: @see reference as written, for the @see edits
        replacement: Fully qualified reference, for FIX_SEE_TAG
    """

    kind: ActionKind
    file_path: Path
    target: LinkIdentifier
    reference: TestReference
    test_case: ParsedTestCase | None = None
    with_coverage: bool = True
    see_reference: str | None = None
    replacement: str | None = None

    def describe(self) -> str:
        target = canonical_form(self.target)
        test = self.reference.qualified
        if self.kind is ActionKind.ADD_TESTED_BY:
            return f"add #[TestedBy] for {test} to {target}"
        if self.kind is ActionKind.REMOVE_TESTED_BY:
            return f"remove #[TestedBy] for {test} from {target}"
        if self.kind is ActionKind.ADD_SEE_TAG:
            return f"add @see {self.see_reference} to {target}"
        if self.kind is ActionKind.REMOVE_SEE_TAG:
            return f"remove @see {self.see_reference} from {target}"
        if self.kind is ActionKind.FIX_SEE_TAG:
            return f"qualify @see {self.see_reference} as {self.replacement} on {target}"
        call = "linksAndCovers" if self.with_coverage else "links"
        return f"add {call}({target}) to {test}"

    def to_dict(self) -> dict[str, str]:
        data = {
            "action": self.kind.value,
            "file": str(self.file_path),
            "target": canonical_form(self.target),
            "test": self.reference.qualified,
        }
        if self.see_reference is not None:
            data["see"] = self.see_reference
        if self.replacement is not None:
            data["replacement"] = self.replacement
        return data


@dataclass
class SyncResult:
    """
    Outcome of applying sync actions.

    Attributes:
        applied: Actions whose edit was made (or would be, in a dry run)
        skipped: Actions held back (pruning without force)
        failed: Actions whose file or target could not be edited
        files_modified: Files rewritten (or that would be), in order
        errors: Per-file failures
        dry_run: Whether files were left untouched
    """

    applied: list[SyncAction] = field(default_factory=list)
    skipped: list[SyncAction] = field(default_factory=list)
    failed: list[SyncAction] = field(default_factory=list)
    files_modified: list[Path] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors
