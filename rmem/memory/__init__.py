from __future__ import annotations

# Public surface for the memory package
from .strings import StringPool
from .store import ValueStore
from .collector import GarbageCollector, CollectorStats
from .sizes import shallow_size

__all__ = [
    "StringPool",
    "ValueStore",
    "GarbageCollector",
    "CollectorStats",
    "shallow_size",
]
