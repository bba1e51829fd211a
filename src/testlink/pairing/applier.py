"""
testlink.pairing.applier - Write a pairing plan into source files.

Like the sync applier, each file is read once, every replacement for it
is made in memory and the result is written once.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from testlink.adapters import CompositeAdapter
from testlink.core.models import TestReference, canonical_form
from testlink.exceptions import (
    ProductionMethodNotFoundError,
    TestCaseNotFoundError,
    TestLinkError,
)
from testlink.modifiers.production import ProductionModifier
from testlink.pairing.models import PairResult, PlaceholderAction
from testlink.scanner import ERROR_IO, ERROR_PARSE, ERROR_TARGET, FileError

# One replacement: current text -> rewritten text, and the declarations it writes
Edit = tuple[Callable[[str], str], int]


class PlaceholderApplier:
    """Replaces placeholder markers on both sides with real links."""

    def __init__(
        self,
        adapter: CompositeAdapter,
        production_modifier: ProductionModifier | None = None,
    ):
        self.adapter = adapter
        self.production_modifier = production_modifier or ProductionModifier()

    def apply(self, actions: list[PlaceholderAction], dry_run: bool = False) -> PairResult:
        """
        Rewrite every production and test file named by actions.

        Returns:
            PairResult with the files touched and the number of declarations
            written (or that would be, in a dry run)
        """
        result = PairResult(dry_run=dry_run)
        edits: dict[Path, list[Edit]] = {}
        for file_path, edit in self._production_edits(actions) + self._test_edits(actions):
            edits.setdefault(file_path, []).append(edit)
        for file_path, file_edits in edits.items():
            self._rewrite(file_path, file_edits, dry_run, result)
        return result

    def _production_edits(self, actions: list[PlaceholderAction]) -> list[tuple[Path, Edit]]:
        grouped: dict[tuple, list[TestReference]] = {}
        for action in actions:
            if action.production_file is None:
                continue
            key = (action.production_file, action.production_method, action.placeholder)
            tests = grouped.setdefault(key, [])
            if action.test_reference not in tests:
                tests.append(action.test_reference)

        edits = []
        for (file_path, method, placeholder), tests in grouped.items():

            def edit(text, method=method, placeholder=placeholder, tests=tests, file_path=file_path):
                return self.production_modifier.replace_placeholder(
                    text,
                    method,
                    placeholder,
                    tests,
                    file_path,
                    use_see_tag=placeholder.startswith("@@"),
                )

            edits.append((file_path, (edit, len(tests))))
        return edits

    def _test_edits(self, actions: list[PlaceholderAction]) -> list[tuple[Path, Edit]]:
        grouped: dict[tuple, list[PlaceholderAction]] = {}
        for action in actions:
            if action.test_file is None or action.test_case is None:
                continue
            key = (action.test_file, action.test_reference.qualified, action.placeholder)
            grouped.setdefault(key, []).append(action)

        edits = []
        for (file_path, _, placeholder), group in grouped.items():
            test_case = group[0].test_case
            methods = []
            for action in group:
                method = canonical_form(action.production_method)
                if method not in methods:
                    methods.append(method)

            def edit(text, test_case=test_case, placeholder=placeholder, methods=methods):
                modifier = self.adapter.modifier_for(test_case)
                if modifier is None:
                    raise TestLinkError(f"No modifier for {test_case.qualified_identifier}")
                return modifier.replace_placeholder(
                    text,
                    test_case,
                    placeholder,
                    methods,
                    use_see_tag=placeholder.startswith("@@"),
                )

            edits.append((file_path, (edit, len(methods))))
        return edits

    def _rewrite(
        self, file_path: Path, edits: list[Edit], dry_run: bool, result: PairResult
    ) -> None:
        try:
            original = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(FileError(file_path, f"cannot read: {e}", ERROR_IO))
            return

        text = original
        changes = 0
        for edit, count in edits:
            try:
                updated = edit(text)
            except (ProductionMethodNotFoundError, TestCaseNotFoundError) as e:
                result.errors.append(FileError(file_path, str(e), ERROR_TARGET))
                continue
            except TestLinkError as e:
                result.errors.append(FileError(file_path, str(e), ERROR_PARSE))
                continue
            if updated != text:
                changes += count
            text = updated

        if text == original:
            return
        if not dry_run:
            try:
                file_path.write_text(text, encoding="utf-8")
            except OSError as e:
                result.errors.append(FileError(file_path, f"cannot write: {e}", ERROR_IO))
                return
        result.changes += changes
        result.files_modified.append(file_path)
