"""
testlink.modifiers - In-place source rewriting for link declarations.
"""

from testlink.modifiers.base import BaseModifier, apply_splices
from testlink.modifiers.pest import PestModifier
from testlink.modifiers.phpunit import PhpUnitModifier
from testlink.modifiers.production import ProductionModifier

__all__ = [
    "BaseModifier",
    "PestModifier",
    "PhpUnitModifier",
    "ProductionModifier",
    "apply_splices",
]
