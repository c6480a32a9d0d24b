from __future__ import annotations


class NullType:
    """Payload of the NULL value. Falsy, equal only to itself, zero length."""

    def __repr__(self): return "NULL"
    def __bool__(self): return False
    def __len__(self): return 0

    def __eq__(self, other):
        return isinstance(other, NullType)

    def __hash__(self):
        return hash(NullType)


NULL = NullType()
