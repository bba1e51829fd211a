"""
testlink.exceptions - Error types raised by parsers, modifiers and config.

Only ConfigError is fatal for a whole run. Everything else is localized
to one file and collected into the scan or sync result.
"""

from __future__ import annotations

from pathlib import Path


class TestLinkError(Exception):
    """Base class for all testlink errors."""

    __test__ = False  # keep pytest from collecting this as a test class


class ConfigError(TestLinkError):
    """Project configuration (.testlink.toml or composer.json) is unusable."""

    def __init__(self, message: str, file_path: Path | None = None):
        self.file_path = file_path
        if file_path is not None:
            message = f"{file_path}: {message}"
        super().__init__(message)


class ParseError(TestLinkError):
    """
    Malformed or unreadable source.

    Attributes:
        file_path: File that failed to parse (None for in-memory text)
        reason: Human-readable description of the failure
    """

    def __init__(self, file_path: Path | str | None, reason: str):
        self.file_path = Path(file_path) if file_path is not None else None
        self.reason = reason
        if self.file_path is not None:
            super().__init__(f"{self.file_path}: {reason}")
        else:
            super().__init__(reason)

    def with_path(self, file_path: Path) -> "ParseError":
        """Return a copy of this error attributed to file_path."""
        return type(self)(file_path, self.reason)


class SourceReadError(ParseError):
    """The source file could not be read."""


class SourceWriteError(TestLinkError):
    """A rewritten source file could not be written back."""

    def __init__(self, file_path: Path, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"{file_path}: {reason}")


class TestCaseNotFoundError(TestLinkError):
    """A test could not be located in the source text handed to a modifier."""

    def __init__(self, name: str, file_path: Path | None = None):
        self.name = name
        self.file_path = file_path
        where = f" in {file_path}" if file_path else ""
        super().__init__(f"Test '{name}' not found{where}")


class ProductionMethodNotFoundError(TestLinkError):
    """A production method could not be located for a TestedBy rewrite."""

    def __init__(self, method: str, file_path: Path | None = None):
        self.method = method
        self.file_path = file_path
        where = f" in {file_path}" if file_path else ""
        super().__init__(f"Method '{method}' not found{where}")
