"""
testlink.runtime - Process-wide framework registration.

bootstrap() is called once at process start, outside the scan and sync
path. It asks each available adapter to register itself. Nothing in the
scanner or sync engine depends on what has been registered.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testlink.adapters import FrameworkAdapter

_registered: list[str] = []
_initialized = False


def register(framework: str) -> None:
    """Record a framework as active for this process."""
    if framework not in _registered:
        _registered.append(framework)


def registered_frameworks() -> list[str]:
    return list(_registered)


def is_initialized() -> bool:
    return _initialized


def bootstrap(adapters: Iterable[FrameworkAdapter], only_available: bool = False) -> bool:
    """
    Register adapters once per process.

    Args:
        adapters: Adapters to register
        only_available: Skip adapters whose framework is not installed

    Returns:
        True if this call performed the registration, False if the
        process was already bootstrapped
    """
    global _initialized
    if _initialized:
        return False
    for adapter in adapters:
        if only_available and not adapter.is_available():
            continue
        adapter.register_runtime()
    _initialized = True
    return True


def reset() -> None:
    """Forget all registrations (for tests)."""
    global _initialized
    _registered.clear()
    _initialized = False
