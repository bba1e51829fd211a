"""
testlink.sync.engine - Compare test links against production back-references.

validate() classifies every declared link and every #[TestedBy]
back-reference; plan() turns the fixable findings into edit directives.
Dangling links are reported but never planned.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from testlink.core.models import (
    CANONICAL_SEPARATOR,
    LinkIdentifier,
    TestReference,
    canonical_form,
    parse_canonical_form,
)
from testlink.docblock import normalize_reference, see_reference_for, validate_see_tags
from testlink.parsers.production import ProductionIndex
from testlink.registry import TestLinkRegistry
from testlink.sync.models import ActionKind, Finding, FindingKind, SyncAction, ValidationReport


@dataclass
class SyncOptions:
    """
    Switches for planning and applying a sync.

    Attributes:
        dry_run: Report planned edits without writing files
        link_only: Add forward links as links() instead of linksAndCovers()
        prune: Plan removal of orphaned back-references
        force: Required, together with prune, to actually remove them
        see_tags: Also mirror back-references as @see tags and qualify
            existing @see references
    """

    dry_run: bool = False
    link_only: bool = False
    prune: bool = False
    force: bool = False
    see_tags: bool = False


def reference_for(test_identifier: str) -> TestReference:
    """Split a qualified test identifier into a back-reference."""
    test_class, sep, method = test_identifier.partition(CANONICAL_SEPARATOR)
    return TestReference(test_class, method if sep else None)


class SyncEngine:
    """Checks a scanned registry against a production index."""

    def __init__(self, registry: TestLinkRegistry, index: ProductionIndex):
        self.registry = registry
        self.index = index

    def validate(self) -> ValidationReport:
        """
        Classify every link and back-reference.

        Returns:
            ValidationReport with findings sorted by canonical target, then
            test identifier, then kind
        """
        report = ValidationReport()
        seen: set[tuple[str, str]] = set()

        for test_identifier, links in self.registry.links_by_test.items():
            test = self.registry.find_test(test_identifier)
            test_file = test.file_path if test else None
            for link in links:
                key = (test_identifier, canonical_form(link.target))
                if key in seen:
                    continue
                seen.add(key)

                if not self.index.target_exists(link.target):
                    report.findings.append(
                        Finding(FindingKind.DANGLING_LINK, link.target, test_identifier, test_file)
                    )
                    continue
                if link.target.is_class_level:
                    named = any(
                        declaration.names_test(test_identifier)
                        for declaration in self.index.declarations_in_class(link.target.class_name)
                    )
                else:
                    declaration = self.index.declaration_for(link.target)
                    named = declaration is not None and declaration.names_test(test_identifier)
                if named:
                    report.consistent += 1
                else:
                    report.findings.append(
                        Finding(FindingKind.MISSING_TESTED_BY, link.target, test_identifier, test_file)
                    )

        for declaration in self.index.declarations():
            for reference in declaration.tests:
                finding = self._check_back_reference(declaration.owning_method, reference)
                if finding is not None:
                    finding.file_path = declaration.file_path
                    report.findings.append(finding)

        report.findings.sort(key=lambda f: f.sort_key)
        report.see_issues = validate_see_tags(self.index.see_tags(), self._class_known)
        return report

    def _class_known(self, class_name: str) -> bool:
        return self.index.has_class(class_name) or bool(self.registry.tests_in_class(class_name))

    def _check_back_reference(
        self, method: LinkIdentifier, reference: TestReference
    ) -> Finding | None:
        if reference.test_method is None:
            if self.registry.tests_in_class(reference.test_identifier):
                return None
            return Finding(
                FindingKind.ORPHANED_BACK_REFERENCE, method, reference.qualified, reference=reference
            )
        if not self.registry.has_test(reference.qualified):
            return Finding(
                FindingKind.ORPHANED_BACK_REFERENCE, method, reference.qualified, reference=reference
            )
        # A class-level link covers every method of the class
        class_link = self.registry.has_link(reference.qualified, LinkIdentifier(method.class_name))
        if not class_link and not self.registry.has_link(reference.qualified, method):
            return Finding(FindingKind.MISSING_LINK, method, reference.qualified, reference=reference)
        return None

    def plan(self, report: ValidationReport, options: SyncOptions | None = None) -> list[SyncAction]:
        """
        Edit directives for the fixable findings of report.

        missing-tested-by becomes an add-back-reference edit on the
        production file, missing-link an add-link edit on the test file,
        and orphaned back-references are planned for removal only when
        pruning. Findings whose file cannot be determined are left out,
        as are class-level missing-tested-by findings.

        With options.see_tags, @see tags are planned after the attribute
        edits: one per back-reference to an existing test, a qualified form
        for every fixable @see reference and, when pruning, removal of
        qualified @see references that name nothing known.
        """
        options = options or SyncOptions()
        actions: list[SyncAction] = []
        for finding in report.findings:
            if finding.kind is FindingKind.MISSING_TESTED_BY:
                if finding.target.is_class_level:
                    # No single method to carry the back-reference
                    continue
                production_file = self.index.file_for(finding.target.class_name)
                if production_file is None:
                    continue
                actions.append(
                    SyncAction(
                        ActionKind.ADD_TESTED_BY,
                        production_file,
                        finding.target,
                        reference_for(finding.test_identifier),
                    )
                )
            elif finding.kind is FindingKind.MISSING_LINK:
                test = self.registry.find_test(finding.test_identifier)
                if test is None or test.file_path is None:
                    continue
                actions.append(
                    SyncAction(
                        ActionKind.ADD_LINK,
                        test.file_path,
                        finding.target,
                        finding.reference or reference_for(finding.test_identifier),
                        test_case=test,
                        with_coverage=not options.link_only,
                    )
                )
            elif finding.kind is FindingKind.ORPHANED_BACK_REFERENCE and options.prune:
                production_file = finding.file_path or self.index.file_for(finding.target.class_name)
                if production_file is None or finding.reference is None:
                    continue
                actions.append(
                    SyncAction(
                        ActionKind.REMOVE_TESTED_BY,
                        production_file,
                        finding.target,
                        finding.reference,
                    )
                )
        if options.see_tags:
            actions.extend(self._plan_see_tags(report, actions, options))
        return actions

    def _plan_see_tags(
        self, report: ValidationReport, planned: list[SyncAction], options: SyncOptions
    ) -> list[SyncAction]:
        actions: list[SyncAction] = []
        resolved: set[tuple[LinkIdentifier, str]] = set()

        for issue in report.see_issues:
            if not issue.fixable or issue.tag.file_path is None:
                continue
            resolved.add((issue.tag.method, normalize_reference(issue.resolved)))
            actions.append(
                SyncAction(
                    ActionKind.FIX_SEE_TAG,
                    issue.tag.file_path,
                    issue.tag.method,
                    reference_for(normalize_reference(issue.resolved)),
                    see_reference=issue.tag.reference,
                    replacement=issue.resolved,
                )
            )

        wanted: list[tuple[LinkIdentifier, TestReference, Path | None]] = []
        for declaration in self.index.declarations():
            for reference in declaration.tests:
                if self._test_exists(reference):
                    wanted.append((declaration.owning_method, reference, declaration.file_path))
        for action in planned:
            if action.kind is ActionKind.ADD_TESTED_BY:
                wanted.append((action.target, action.reference, action.file_path))

        seen: set[tuple[LinkIdentifier, str]] = set()
        for method, reference, file_path in wanted:
            key = (method, reference.qualified)
            if key in seen or file_path is None:
                continue
            seen.add(key)
            if self.index.has_see(method, reference.qualified) or key in resolved:
                continue
            actions.append(
                SyncAction(
                    ActionKind.ADD_SEE_TAG,
                    file_path,
                    method,
                    reference,
                    see_reference=see_reference_for(reference),
                )
            )

        if options.prune:
            for tag in self.index.see_tags():
                if not tag.is_fqcn or tag.file_path is None:
                    continue
                reference = reference_for(tag.normalized)
                if self._test_exists(reference) or self.index.target_exists(
                    parse_canonical_form(tag.normalized)
                ):
                    continue
                actions.append(
                    SyncAction(
                        ActionKind.REMOVE_SEE_TAG,
                        tag.file_path,
                        tag.method,
                        reference,
                        see_reference=tag.reference,
                    )
                )
        return actions

    def _test_exists(self, reference: TestReference) -> bool:
        if reference.test_method is None:
            return bool(self.registry.tests_in_class(reference.test_identifier))
        return self.registry.has_test(reference.qualified)
