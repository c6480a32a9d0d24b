"""Copy-on-modify engine.

Decides, for every subassignment, whether the target can be changed in place
or must be copied first:

- Environments are always modified in place, whatever their reference count.
- A vector or list whose count is one, bound in the frame doing the
  assignment, is modified in place and keeps its identity, unless the new
  element is that list itself or contains it.
- Anything else is copied (shallowly: list elements are shared, not copied),
  the copy is rebound, and copy tracing is notified.

All checks and allocations happen before any binding changes, so a failed
mutation leaves every binding as it was.
"""

from __future__ import annotations

import logging
from numbers import Integral
from typing import Union

from rmem import Scalar
from rmem.errors import ImmutableTarget, NameNotFound
from rmem.inspection import Inspector
from rmem.memory.store import ValueStore
from rmem.memory.vectors import box, coerce_element
from rmem.types.environment import Environment
from rmem.types.value import RefCount, Value, ValueId, ValueKind

logger = logging.getLogger(__name__)

Path = Union[int, str]


class CopyOnModify:
    def __init__(self, store: ValueStore, inspector: Inspector):
        self.store = store
        self.inspector = inspector

    def _binding_frame(self, env: Environment, name: str, superassign: bool) -> Environment:
        start = env.outer if superassign and env.outer is not None else env
        home = start.find(name)
        if home is None:
            raise NameNotFound(f"object '{name}' not found")
        return home

    def _target(self, home: Environment, name: str) -> Value:
        id_ = home.vars[name]
        value = self.store.get(id_)
        if value.kind is ValueKind.PROMISE:
            # Arguments are promises; modify what they evaluate to
            value = self.store.get(value.payload.force(self.store))
        return value

    def _index(self, value: Value, path: Path) -> int:
        if not isinstance(path, Integral) or isinstance(path, bool):
            raise ImmutableTarget(f"invalid subscript {path!r} for a {value.kind.value} vector")
        index = int(path)
        if index < 0 or index >= len(value.payload):
            raise ImmutableTarget(
                f"subscript out of bounds for a {value.kind.value} vector "
                f"of length {len(value.payload)}"
            )
        return index

    def _element(self, value: Value, new: Union[Scalar, ValueId]) -> Union[Scalar, ValueId]:
        if value.kind is ValueKind.LIST or value.kind is ValueKind.ENVIRONMENT:
            if isinstance(new, ValueId):
                self.store.get(new)
                return new
            try:
                return box(self.store, new)
            except TypeError as e:
                raise ImmutableTarget(str(e)) from e
        return coerce_element(self.store, value.kind, new)

    def _reaches(self, element, target: ValueId) -> bool:
        """True when `element` is `target` or holds it through nested lists."""
        if not isinstance(element, ValueId):
            return False
        seen: set[ValueId] = set()
        worklist = [element]
        while worklist:
            id_ = worklist.pop()
            if id_ == target:
                return True
            if id_ in seen:
                continue
            seen.add(id_)
            if self.store.kind(id_) is ValueKind.LIST:
                worklist.extend(self.store.read(id_))
        return False

    def mutate(
        self,
        env: Environment,
        name: str,
        path: Path,
        new: Union[Scalar, ValueId],
        superassign: bool = False,
    ) -> ValueId:
        """Set element `path` of the value bound to `name` to `new`.

        `path` is a 0-based index for vectors and lists, a binding name for
        environments. Returns the identity `name` is bound to afterwards.
        Raises NameNotFound for an unbound name and ImmutableTarget when the
        path or the new element does not fit the value.
        """
        home = self._binding_frame(env, name, superassign)
        value = self._target(home, name)
        kind = value.kind

        if kind is ValueKind.ENVIRONMENT:
            if not isinstance(path, str) or not path:
                raise ImmutableTarget(f"invalid subscript {path!r} for an environment")
            value.payload.define(path, self._element(value, new))
            return value.id

        if not kind.is_sequence:
            raise ImmutableTarget(f"object of type '{kind.value}' is not subsettable")

        index = self._index(value, path)
        with self.store.protected(value.id):
            element = self._element(value, new)
            if isinstance(element, ValueId):
                self.store.protect(element)

            in_place = (
                value.refs is RefCount.ONE
                and (superassign or home is env)
                and not self._reaches(element, value.id)
            )
            if in_place:
                self.store.set_element(value.id, index, element)
                return value.id

            payload = list(value.payload)
            payload[index] = element
            copy = self.store.allocate(kind, payload)

        target_env = home if superassign else env
        target_env.define(name, copy)
        logger.debug("copied %s value %d -> %d for %r", kind.value, value.id, copy, name)
        self.inspector.copied(value.id, copy)
        return copy
