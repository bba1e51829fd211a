"""
testlink.adapters - Framework adapters.

An adapter bundles a parser and a modifier for one declaration syntax with
the rules for discovering and claiming that framework's test files. Adding
a framework means adding one parser, one modifier and one adapter.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from testlink import runtime
from testlink.adapters.detector import FRAMEWORK_PEST, FRAMEWORK_PHPUNIT, FrameworkDetector
from testlink.core.models import ParsedTestCase
from testlink.modifiers.base import BaseModifier
from testlink.modifiers.pest import PestModifier
from testlink.modifiers.phpunit import DEFAULT_ATTRIBUTE_NAMESPACE, PhpUnitModifier
from testlink.parsers.base import BaseTestParser
from testlink.parsers.pest import PestParser
from testlink.parsers.phpunit import PhpUnitParser

_PHPUNIT_CLASS = re.compile(r"\bclass\s+\w+\s+extends\s+[\\\w]*TestCase\b|\buse\s+PHPUnit\\Framework\\TestCase\s*;")
_PEST_CALL = re.compile(r"^[ \t]*(?:test|it|describe)\s*\(", re.MULTILINE)


@runtime_checkable
class FrameworkAdapter(Protocol):
    """Capabilities every framework adapter provides."""

    name: str

    def is_available(self) -> bool: ...

    def get_parser(self) -> BaseTestParser: ...

    def get_modifier(self) -> BaseModifier: ...

    def get_test_file_patterns(self) -> list[str]: ...

    def owns_test_file(self, path: Path) -> bool: ...

    def register_runtime(self) -> None: ...


def _read_text(path: Path) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


class PestAdapter:
    """Adapter for Pest (fluent-chain syntax)."""

    name = FRAMEWORK_PEST

    def __init__(self, detector: FrameworkDetector | None = None):
        self.detector = detector
        self._parser = PestParser()
        self._modifier = PestModifier(self._parser)

    def is_available(self) -> bool:
        return self.detector is not None and self.detector.is_installed(self.name)

    def get_parser(self) -> PestParser:
        return self._parser

    def get_modifier(self) -> PestModifier:
        return self._modifier

    def get_test_file_patterns(self) -> list[str]:
        return ["tests/**/*.php"]

    def owns_test_file(self, path: Path) -> bool:
        """A Pest file calls test()/it()/describe() and declares no TestCase class."""
        if not self._parser.supports(path):
            return False
        content = _read_text(path)
        if content is None:
            # Let the parser report the read error
            return True
        return bool(_PEST_CALL.search(content)) and not _PHPUNIT_CLASS.search(content)

    def register_runtime(self) -> None:
        runtime.register(self.name)


class PhpUnitAdapter:
    """Adapter for PHPUnit (attribute-list syntax)."""

    name = FRAMEWORK_PHPUNIT

    def __init__(
        self,
        detector: FrameworkDetector | None = None,
        attribute_namespace: str = DEFAULT_ATTRIBUTE_NAMESPACE,
    ):
        self.detector = detector
        self._parser = PhpUnitParser()
        self._modifier = PhpUnitModifier(self._parser, attribute_namespace)

    def is_available(self) -> bool:
        return self.detector is not None and self.detector.is_installed(self.name)

    def get_parser(self) -> PhpUnitParser:
        return self._parser

    def get_modifier(self) -> PhpUnitModifier:
        return self._modifier

    def get_test_file_patterns(self) -> list[str]:
        return ["tests/**/*Test.php", "tests/**/*TestCase.php"]

    def owns_test_file(self, path: Path) -> bool:
        """A PHPUnit file declares a class extending a TestCase."""
        if not self._parser.supports(path):
            return False
        content = _read_text(path)
        if content is None:
            return True
        return bool(_PHPUNIT_CLASS.search(content))

    def register_runtime(self) -> None:
        runtime.register(self.name)


ADAPTER_TYPES = {
    FRAMEWORK_PEST: PestAdapter,
    FRAMEWORK_PHPUNIT: PhpUnitAdapter,
}


class CompositeAdapter:
    """
    Routes each test file to the first adapter that owns it.

    PHPUnit is asked first because a class extending TestCase is an
    unambiguous marker, while Pest ownership is a content heuristic.
    """

    def __init__(self, adapters: list[FrameworkAdapter]):
        order = {FRAMEWORK_PHPUNIT: 0, FRAMEWORK_PEST: 1}
        self.adapters = sorted(adapters, key=lambda a: order.get(a.name, len(order)))

    @classmethod
    def for_project(
        cls,
        project_root: Path,
        framework: str = "auto",
        attribute_namespace: str = DEFAULT_ATTRIBUTE_NAMESPACE,
    ) -> CompositeAdapter:
        """
        Build the adapters for a project.

        Args:
            project_root: Project directory (holds composer.json)
            framework: "auto", "pest", "phpunit", or a comma-separated list
            attribute_namespace: Namespace of the link attribute classes

        Raises:
            ValueError: If framework names an unknown framework
        """
        detector = FrameworkDetector(project_root)
        if framework == "auto":
            names = detector.detect() or list(ADAPTER_TYPES)
        else:
            names = [name.strip().lower() for name in framework.split(",") if name.strip()]
            unknown = [name for name in names if name not in ADAPTER_TYPES]
            if unknown:
                raise ValueError(f"Unknown framework: {', '.join(unknown)}")

        adapters: list[FrameworkAdapter] = []
        for name in names:
            if name == FRAMEWORK_PHPUNIT:
                adapters.append(PhpUnitAdapter(detector, attribute_namespace))
            else:
                adapters.append(PestAdapter(detector))
        return cls(adapters)

    def adapter_for_file(self, path: Path) -> FrameworkAdapter | None:
        for adapter in self.adapters:
            if adapter.owns_test_file(path):
                return adapter
        return None

    def adapter_by_name(self, name: str) -> FrameworkAdapter | None:
        for adapter in self.adapters:
            if adapter.name == name:
                return adapter
        return None

    def modifier_for(self, test_case: ParsedTestCase) -> BaseModifier | None:
        """Modifier supporting the syntax of test_case."""
        for adapter in self.adapters:
            modifier = adapter.get_modifier()
            if modifier.supports(test_case):
                return modifier
        return None

    def get_test_file_patterns(self) -> list[str]:
        patterns: list[str] = []
        for adapter in self.adapters:
            for pattern in adapter.get_test_file_patterns():
                if pattern not in patterns:
                    patterns.append(pattern)
        return patterns

    @property
    def names(self) -> list[str]:
        return [adapter.name for adapter in self.adapters]


__all__ = [
    "ADAPTER_TYPES",
    "CompositeAdapter",
    "FrameworkAdapter",
    "FrameworkDetector",
    "PestAdapter",
    "PhpUnitAdapter",
]
