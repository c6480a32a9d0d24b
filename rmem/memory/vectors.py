"""Constructors and element coercion for vectors held in a ValueStore.

Elements of atomic vectors are plain Python scalars, with None standing for
NA. Character vectors hold identities of pooled strings rather than the text
itself, so repeating a string repeats a pointer, not the string.
"""

from __future__ import annotations

from numbers import Integral, Real
from typing import Iterable

from rmem import Scalar
from rmem.errors import ImmutableTarget
from rmem.memory.store import ValueStore
from rmem.types.value import ValueId, ValueKind


def infer_kind(scalars: Iterable[Scalar]) -> ValueKind:
    """Pick the vector type for a run of Python scalars, R's c() style."""
    kinds = set()
    for s in scalars:
        if s is None:
            continue
        if isinstance(s, bool):
            kinds.add(ValueKind.LOGICAL)
        elif isinstance(s, Real):
            kinds.add(ValueKind.DOUBLE)
        elif isinstance(s, str):
            kinds.add(ValueKind.CHARACTER)
        else:
            raise TypeError(f"cannot store {type(s).__name__} in a vector")
    for kind in (ValueKind.CHARACTER, ValueKind.DOUBLE, ValueKind.LOGICAL):
        if kind in kinds:
            return kind
    return ValueKind.LOGICAL


def coerce_element(store: ValueStore, kind: ValueKind, scalar: Scalar) -> Scalar:
    """Check that `scalar` fits a vector of `kind` and return what is stored.

    Strings are interned, so the result for a character vector is a ValueId.
    Raises ImmutableTarget on a type mismatch.
    """
    if isinstance(scalar, ValueId):
        if kind is ValueKind.CHARACTER and store.kind(scalar) is ValueKind.STRING:
            return scalar
    elif kind is ValueKind.CHARACTER:
        if isinstance(scalar, str):
            return store.intern(scalar)
    elif scalar is None:
        return None
    elif kind is ValueKind.LOGICAL:
        if isinstance(scalar, bool):
            return scalar
    elif kind is ValueKind.INTEGER:
        if isinstance(scalar, Integral) and not isinstance(scalar, bool):
            return int(scalar)
    elif kind is ValueKind.DOUBLE:
        if isinstance(scalar, Real) and not isinstance(scalar, bool):
            return float(scalar)
    raise ImmutableTarget(f"cannot store {scalar!r} in a {kind.value} vector")


def vector(store: ValueStore, kind: ValueKind, scalars: Iterable[Scalar]) -> ValueId:
    scalars = list(scalars)
    if kind is ValueKind.CHARACTER:
        with store.protected():
            elements = [store.protect(coerce_element(store, kind, s)) for s in scalars]
            return store.allocate(kind, elements)
    return store.allocate(kind, [coerce_element(store, kind, s) for s in scalars])


def box(store: ValueStore, scalar: Scalar) -> ValueId:
    """Wrap a bare Python scalar in a length-one vector (None -> NULL)."""
    if isinstance(scalar, ValueId):
        return scalar
    if scalar is None:
        return store.null
    return vector(store, infer_kind([scalar]), [scalar])
