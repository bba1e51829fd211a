"""
testlink.pairing.resolver - Turn placeholder markers into a pairing plan.

Every production method carrying a marker is paired with every test
carrying the same marker (N production methods x M tests = N*M links).
"""

from __future__ import annotations

from testlink.core.models import PlaceholderEntry, is_placeholder, parse_canonical_form
from testlink.pairing.models import PlaceholderAction, PlaceholderRegistry, PlaceholderResult
from testlink.sync.engine import reference_for


class PlaceholderResolver:
    """Pairs production and test markers found by a scan."""

    def __init__(self, placeholders: PlaceholderRegistry):
        self.placeholders = placeholders

    def resolve(self) -> PlaceholderResult:
        """Plan every marker in the project."""
        result = PlaceholderResult()
        for placeholder in self.placeholders.all_ids():
            self._resolve_into(placeholder, result)
        return result

    def resolve_placeholder(self, placeholder: str) -> PlaceholderResult:
        """
        Plan a single marker.

        Unknown or malformed markers end up in result.errors rather than
        raising.
        """
        result = PlaceholderResult()
        if not is_placeholder(placeholder):
            result.errors.append(
                f"Invalid placeholder format: {placeholder}. Must start with @ followed by a letter."
            )
        elif placeholder not in self.placeholders.all_ids():
            result.errors.append(f"Placeholder {placeholder} not found in any production or test file")
        else:
            self._resolve_into(placeholder, result)
        return result

    def summary(self) -> dict[str, dict[str, int]]:
        return self.placeholders.summary()

    def _resolve_into(self, placeholder: str, result: PlaceholderResult) -> None:
        production = _unique(self.placeholders.production_entries(placeholder), result)
        tests = _unique(self.placeholders.test_entries(placeholder), result)

        if production and not tests:
            for entry in production:
                result.errors.append(
                    f"Placeholder {placeholder} found in {entry.identifier} but no matching test"
                )
            return
        if tests and not production:
            for entry in tests:
                result.errors.append(
                    f"Placeholder {placeholder} found in test {entry.identifier} "
                    "but no matching production method"
                )
            return
        if placeholder.startswith("@@") and any(entry.framework == "pest" for entry in tests):
            result.errors.append(
                f"Placeholder {placeholder} uses @@prefix (for @see tags) but Pest tests do not "
                f"support @see tags. Use @{placeholder[2:]} instead."
            )
            return

        for production_entry in production:
            method = parse_canonical_form(production_entry.identifier)
            for test_entry in tests:
                result.actions.append(
                    PlaceholderAction(
                        placeholder=placeholder,
                        production_method=method,
                        test_reference=reference_for(test_entry.identifier),
                        production_file=production_entry.file_path,
                        test_file=test_entry.file_path,
                        test_case=test_entry.test_case,
                    )
                )


def _unique(entries: list[PlaceholderEntry], result: PlaceholderResult) -> list[PlaceholderEntry]:
    """Drop repeats of a marker on the same method or test, with a warning."""
    seen: dict[str, PlaceholderEntry] = {}
    for entry in entries:
        if entry.identifier in seen:
            result.warnings.append(
                f"Placeholder {entry.placeholder} appears more than once on {entry.identifier}"
            )
            continue
        seen[entry.identifier] = entry
    return list(seen.values())
