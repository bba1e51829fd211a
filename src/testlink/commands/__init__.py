"""
testlink.commands - CLI command implementations
"""

__all__ = [
    "pair_cmd",
    "project",
    "report_cmd",
    "scan_cmd",
    "sync_cmd",
]
