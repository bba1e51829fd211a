"""testlink.parsers - Test declaration parsers.

Exports:
- TestParser: Protocol implemented by every test syntax parser
- BaseTestParser: Shared file handling and lookup by name
- PestParser: Fluent-chain syntax (test()/it()/describe())
- PhpUnitParser: Attribute-list syntax (#[Links] on test methods)
- ProductionParser: #[TestedBy] back-references on production methods
"""

from testlink.parsers.base import BaseTestParser, TestParser
from testlink.parsers.pest import PestParser
from testlink.parsers.phpunit import PhpUnitParser
from testlink.parsers.production import ProductionIndex, ProductionParser

__all__ = [
    "BaseTestParser",
    "PestParser",
    "PhpUnitParser",
    "ProductionIndex",
    "ProductionParser",
    "TestParser",
]
