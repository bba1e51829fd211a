"""
testlink.core - Link model types.
"""

from testlink.core.models import (
    CANONICAL_SEPARATOR,
    GROUP_SEPARATOR,
    DeclarationSite,
    DeclaredLink,
    LinkIdentifier,
    ParsedTestCase,
    ProductionDeclaration,
    SyntaxKind,
    TestReference,
    canonical_form,
    parse_canonical_form,
)

__all__ = [
    "CANONICAL_SEPARATOR",
    "GROUP_SEPARATOR",
    "DeclarationSite",
    "DeclaredLink",
    "LinkIdentifier",
    "ParsedTestCase",
    "ProductionDeclaration",
    "SyntaxKind",
    "TestReference",
    "canonical_form",
    "parse_canonical_form",
]
