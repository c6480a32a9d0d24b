from __future__ import annotations

# Public surface for the types package
from .value import Value, ValueId, ValueKind, RefCount
from .null import NULL
from .environment import Environment
from .closure import Closure
from .promise import Promise

__all__ = [
    "Value",
    "ValueId",
    "ValueKind",
    "RefCount",
    "NULL",
    "Environment",
    "Closure",
    "Promise",
]
