"""Byte sizes of values, modelled on R's 64-bit memory layout.

Vectors carry a 48 byte header. Small vector data is allocated from pools of
fixed size classes, larger data is rounded up to 8 bytes. Each environment,
closure or promise cell is 56 bytes; an environment frame adds one 56 byte
node per binding and a closure one per formal argument.
"""

from __future__ import annotations

from rmem import Payload
from rmem.types.value import ValueKind

VECTOR_HEADER = 48
NODE_SIZE = 56
POINTER_SIZE = 8
SMALL_VECTOR_CLASSES = (8, 16, 32, 48, 64, 128)

_ELEMENT_BYTES = {
    ValueKind.LOGICAL: 4,
    ValueKind.INTEGER: 4,
    ValueKind.DOUBLE: 8,
    ValueKind.CHARACTER: POINTER_SIZE,
    ValueKind.LIST: POINTER_SIZE,
}


def vector_data_bytes(nbytes: int) -> int:
    if nbytes == 0:
        return 0
    for size_class in SMALL_VECTOR_CLASSES:
        if nbytes <= size_class:
            return size_class
    return (nbytes + 7) & -8


def shallow_size(kind: ValueKind, payload: Payload) -> int:
    """Bytes owned by a single value, not counting anything it references."""
    if kind is ValueKind.NULL:
        return 0
    if kind in _ELEMENT_BYTES:
        return VECTOR_HEADER + vector_data_bytes(_ELEMENT_BYTES[kind] * len(payload))
    if kind is ValueKind.STRING:
        # NUL terminated
        return VECTOR_HEADER + vector_data_bytes(len(payload.encode("utf-8")) + 1)
    if kind is ValueKind.ENVIRONMENT:
        return NODE_SIZE + NODE_SIZE * len(payload)
    if kind is ValueKind.CLOSURE:
        return NODE_SIZE + NODE_SIZE * len(payload.formals)
    if kind is ValueKind.PROMISE:
        return NODE_SIZE
    raise TypeError(f"no size model for {kind}")
