"""Values held by the store: identity, kind, payload and reference count."""

from __future__ import annotations

from enum import Enum

from rmem import Payload


class ValueId(int):
    """Identity of a value: its slot index in the store arena.

    A distinct int subclass so that identities can be told apart from plain
    integer scalars wherever an API accepts either.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"ValueId({int(self)})"


class ValueKind(Enum):
    NULL = "NULL"
    LOGICAL = "logical"
    INTEGER = "integer"
    DOUBLE = "double"
    CHARACTER = "character"
    STRING = "string"
    LIST = "list"
    ENVIRONMENT = "environment"
    CLOSURE = "closure"
    PROMISE = "promise"

    @property
    def is_atomic(self) -> bool:
        return self in ATOMIC_KINDS

    @property
    def is_sequence(self) -> bool:
        return self in ATOMIC_KINDS or self is ValueKind.LIST


ATOMIC_KINDS = frozenset(
    {ValueKind.LOGICAL, ValueKind.INTEGER, ValueKind.DOUBLE, ValueKind.CHARACTER}
)


class RefCount(Enum):
    """Saturating reference count: zero, one or many.

    Once a value has been seen by two bindings it stays at MANY for the rest
    of its life, even after those bindings go away.
    """

    ZERO = 0
    ONE = 1
    MANY = 2

    def incremented(self) -> RefCount:
        if self is RefCount.ZERO:
            return RefCount.ONE
        return RefCount.MANY

    def decremented(self) -> RefCount:
        if self is RefCount.ONE:
            return RefCount.ZERO
        return self

    def __str__(self) -> str:
        return "many" if self is RefCount.MANY else str(self.value)


class Value:
    """A slot in the store arena."""

    __slots__ = ("id", "kind", "payload", "refs", "size")

    def __init__(self, id_: ValueId, kind: ValueKind, payload: Payload, size: int = 0):
        self.id: ValueId = id_
        self.kind: ValueKind = kind
        self.payload: Payload = payload
        self.refs: RefCount = RefCount.ZERO
        # Shallow size in bytes; kept current by the store
        self.size: int = size

    def __repr__(self) -> str:
        return f"<Value {int(self.id)} {self.kind.value} refs={self.refs}>"
