"""
testlink.sync.applier - Apply planned sync actions to source files.

Actions are grouped per file. Each file is read once, every edit for it
is applied to the text in memory, and the result is written once. A
failure in one file is recorded and the batch moves on.
"""

from __future__ import annotations

from pathlib import Path

from testlink.adapters import CompositeAdapter
from testlink.core.models import canonical_form
from testlink.exceptions import (
    ProductionMethodNotFoundError,
    TestCaseNotFoundError,
    TestLinkError,
)
from testlink.modifiers.production import ProductionModifier
from testlink.scanner import ERROR_IO, ERROR_PARSE, ERROR_TARGET, FileError
from testlink.sync.engine import SyncOptions
from testlink.sync.models import ActionKind, SyncAction, SyncResult


# Performed only with options.force
REMOVALS = (ActionKind.REMOVE_TESTED_BY, ActionKind.REMOVE_SEE_TAG)


class SyncApplier:
    """Rewrites test and production files for a list of SyncActions."""

    def __init__(
        self,
        adapter: CompositeAdapter,
        production_modifier: ProductionModifier | None = None,
    ):
        self.adapter = adapter
        self.production_modifier = production_modifier or ProductionModifier()

    def apply(self, actions: list[SyncAction], options: SyncOptions | None = None) -> SyncResult:
        """
        Apply actions file by file.

        Removals of orphaned back-references and @see tags are only
        performed when options.force is set; otherwise they end up in
        result.skipped. An action counts as applied only once its file has
        been written (or would be, in a dry run).

        Returns:
            SyncResult listing applied, skipped and failed actions
        """
        options = options or SyncOptions()
        result = SyncResult(dry_run=options.dry_run)

        by_file: dict[Path, list[SyncAction]] = {}
        for action in actions:
            if action.kind in REMOVALS and not options.force:
                result.skipped.append(action)
                continue
            by_file.setdefault(action.file_path, []).append(action)

        for file_path, file_actions in by_file.items():
            self._apply_file(file_path, file_actions, options, result)
        return result

    def _apply_file(
        self,
        file_path: Path,
        actions: list[SyncAction],
        options: SyncOptions,
        result: SyncResult,
    ) -> None:
        try:
            original = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(FileError(file_path, f"cannot read: {e}", ERROR_IO))
            result.failed.extend(actions)
            return

        text = original
        applied: list[SyncAction] = []
        for batch in _batches(actions):
            try:
                text = self._apply_batch(text, batch)
            except (ProductionMethodNotFoundError, TestCaseNotFoundError) as e:
                result.errors.append(FileError(file_path, str(e), ERROR_TARGET))
                result.failed.extend(batch)
                continue
            except TestLinkError as e:
                result.errors.append(FileError(file_path, str(e), ERROR_PARSE))
                result.failed.extend(batch)
                continue
            applied.extend(batch)

        if text != original and not options.dry_run:
            try:
                file_path.write_text(text, encoding="utf-8")
            except OSError as e:
                result.errors.append(FileError(file_path, f"cannot write: {e}", ERROR_IO))
                result.failed.extend(applied)
                return
        result.applied.extend(applied)
        if text != original:
            result.files_modified.append(file_path)

    def _apply_batch(self, text: str, batch: list[SyncAction]) -> str:
        first = batch[0]
        if first.kind is ActionKind.ADD_LINK:
            test_case = first.test_case
            modifier = self.adapter.modifier_for(test_case) if test_case else None
            if test_case is None or modifier is None:
                raise TestLinkError(f"No modifier for {first.reference.qualified}")
            return modifier.inject_links(
                text,
                test_case,
                [canonical_form(action.target) for action in batch],
                with_coverage=first.with_coverage,
            )
        modifier = self.production_modifier
        if first.kind is ActionKind.ADD_SEE_TAG:
            return modifier.add_see_tags(
                text, first.target, [action.see_reference for action in batch], first.file_path
            )
        if first.kind is ActionKind.REMOVE_SEE_TAG:
            return modifier.remove_see_tags(
                text, first.target, [action.see_reference for action in batch], first.file_path
            )
        if first.kind is ActionKind.FIX_SEE_TAG:
            return modifier.fix_see_references(
                text,
                first.target,
                [(action.see_reference, action.replacement) for action in batch],
                first.file_path,
            )
        references = [action.reference for action in batch]
        if first.kind is ActionKind.ADD_TESTED_BY:
            return modifier.inject_tested_by(
                text, first.target, references, first.file_path
            )
        return modifier.remove_tested_by(
            text, first.target, references, first.file_path
        )


def _batches(actions: list[SyncAction]) -> list[list[SyncAction]]:
    """
    Group one file's actions into single modifier calls.

    Links for the same test, and back-references on the same method, are
    written by one call so they land together in planned order.
    """
    groups: dict[tuple, list[SyncAction]] = {}
    for action in actions:
        if action.kind is ActionKind.ADD_LINK:
            test = action.test_case
            key = (
                action.kind,
                action.reference.qualified,
                test.source_span if test else None,
                action.with_coverage,
            )
        else:
            key = (action.kind, action.target)
        groups.setdefault(key, []).append(action)
    return list(groups.values())
