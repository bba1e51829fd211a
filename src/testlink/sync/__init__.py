"""
testlink.sync - Consistency checking and bidirectional sync.
"""

from testlink.sync.applier import SyncApplier
from testlink.sync.engine import SyncEngine, SyncOptions, reference_for
from testlink.sync.models import (
    ActionKind,
    Finding,
    FindingKind,
    SyncAction,
    SyncResult,
    ValidationReport,
)

__all__ = [
    "ActionKind",
    "Finding",
    "FindingKind",
    "SyncAction",
    "SyncApplier",
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "ValidationReport",
    "reference_for",
]
