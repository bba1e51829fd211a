"""
testlink - Bidirectional test/production link synchronization for PHP projects

Production methods declare the tests that exercise them with
``#[TestedBy]`` attributes; tests declare the production methods they
link to (and cover) with Pest ``->links()`` / ``->linksAndCovers()``
chains or PHPUnit ``#[Links]`` / ``#[LinksAndCovers]`` attributes.
testlink scans both sides, reports where they disagree, and rewrites
source files in place to bring them back in sync.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("testlink")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from testlink.core.models import (
    DeclaredLink,
    LinkIdentifier,
    ParsedTestCase,
    ProductionDeclaration,
    SyntaxKind,
    canonical_form,
    parse_canonical_form,
)
from testlink.registry import TestLinkRegistry

__all__ = [
    "__version__",
    "DeclaredLink",
    "LinkIdentifier",
    "ParsedTestCase",
    "ProductionDeclaration",
    "SyntaxKind",
    "TestLinkRegistry",
    "canonical_form",
    "parse_canonical_form",
]
