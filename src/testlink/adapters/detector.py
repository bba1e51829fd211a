"""
testlink.adapters.detector - Detect installed PHP test frameworks.
"""

from __future__ import annotations

from pathlib import Path

from testlink.config.autoload import read_composer

FRAMEWORK_PEST = "pest"
FRAMEWORK_PHPUNIT = "phpunit"

PACKAGES = {
    FRAMEWORK_PEST: "pestphp/pest",
    FRAMEWORK_PHPUNIT: "phpunit/phpunit",
}


class FrameworkDetector:
    """
    Detects frameworks from composer.json requirements or vendor/ contents.

    Pest depends on PHPUnit, so a Pest project usually reports both.
    """

    def __init__(self, project_root: Path | None = None):
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self._packages: set[str] | None = None

    def _installed_packages(self) -> set[str]:
        if self._packages is None:
            composer = read_composer(self.project_root)
            packages: set[str] = set()
            for section in ("require", "require-dev"):
                requirements = composer.get(section) or {}
                if isinstance(requirements, dict):
                    packages.update(requirements)
            for package in PACKAGES.values():
                if (self.project_root / "vendor" / package).is_dir():
                    packages.add(package)
            self._packages = packages
        return self._packages

    def is_installed(self, framework: str) -> bool:
        package = PACKAGES.get(framework)
        return package is not None and package in self._installed_packages()

    def detect(self) -> list[str]:
        """Detected framework names, Pest first."""
        return [name for name in (FRAMEWORK_PEST, FRAMEWORK_PHPUNIT) if self.is_installed(name)]

    def primary_framework(self) -> str | None:
        detected = self.detect()
        return detected[0] if detected else None
