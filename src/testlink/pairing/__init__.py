"""
testlink.pairing - Resolve @placeholder markers into real links.
"""

from testlink.pairing.applier import PlaceholderApplier
from testlink.pairing.models import (
    PairResult,
    PlaceholderAction,
    PlaceholderRegistry,
    PlaceholderResult,
)
from testlink.pairing.resolver import PlaceholderResolver

__all__ = [
    "PairResult",
    "PlaceholderAction",
    "PlaceholderApplier",
    "PlaceholderRegistry",
    "PlaceholderResolver",
    "PlaceholderResult",
]
