"""Value store: an index-based arena of values.

Every value gets a fresh slot (and so a fresh identity) on allocation, except
string scalars, which are deduplicated through the StringPool passed to the
constructor. Slots are recycled through a free list once the collector has
swept them; a liveness bitmap records which slots currently hold a value and
a second bitmap holds the collector's marks.

The store keeps a running total of bytes in use. Before an allocation that
would cross the soft ceiling it asks the attached collector to run; if the
allocation still does not fit under the hard limit it fails with OutOfMemory.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Optional, Protocol

from rmem import Payload
from rmem.config import SimulatorConfig
from rmem.errors import InvalidValue, OutOfMemory, RmemError
from rmem.memory.sizes import NODE_SIZE, shallow_size
from rmem.memory.strings import StringPool
from rmem.types.null import NULL
from rmem.types.value import Value, ValueId, ValueKind

logger = logging.getLogger(__name__)


class Collector(Protocol):
    def collect(self) -> int: ...


class ValueStore:
    def __init__(self, strings: Optional[StringPool] = None, config: Optional[SimulatorConfig] = None):
        if strings is None:
            strings = StringPool().open()
        if not strings.is_open:
            raise RmemError("ValueStore needs an open StringPool")
        config = config if config is not None else SimulatorConfig()

        self.strings: StringPool = strings
        self._slots: list[Optional[Value]] = []
        self._live = bytearray()
        self._marks = bytearray()
        self._free: list[int] = []
        self._protect: list[ValueId] = []
        self._free_listeners: list[Callable[[ValueId], None]] = []

        self.bytes_in_use = 0
        self.gc_trigger = config.gc_trigger
        self.max_memory = config.max_memory
        self.gc_growth = config.gc_growth
        self.collector: Optional[Collector] = None
        self._preserved: set[ValueId] = set()
        # R_NilValue: one NULL per store, never collected
        self.null: ValueId = self.preserve(self.allocate(ValueKind.NULL, NULL))

    # ---------------------------
    # Allocation
    # ---------------------------
    def allocate(self, kind: ValueKind, payload: Payload) -> ValueId:
        """Place `payload` in a fresh slot and return its identity.

        Strings are looked up in the pool first and share one slot.
        Elements of lists and character vectors gain a reference.
        """
        if kind is ValueKind.STRING:
            existing = self.strings.get(payload)
            if existing is not None:
                return existing
        if kind.is_sequence:
            payload = list(payload)

        size = shallow_size(kind, payload)
        self._reserve(size, self._pending(kind, payload))

        if self._free:
            index = self._free.pop()
        else:
            index = len(self._slots)
            self._slots.append(None)
            self._live.append(0)
            self._marks.append(0)
        id_ = ValueId(index)
        self._slots[index] = Value(id_, kind, payload, size)
        self._live[index] = 1
        self.bytes_in_use += size

        if kind is ValueKind.STRING:
            self.strings.add(payload, id_)
        elif kind is ValueKind.LIST or kind is ValueKind.CHARACTER:
            for element in payload:
                self.incref(element)
        elif kind is ValueKind.ENVIRONMENT:
            payload.handle = id_
            if payload.store is None:
                payload.store = self
            self.refresh_size(id_)
        return id_

    def intern(self, text: str) -> ValueId:
        return self.allocate(ValueKind.STRING, text)

    @staticmethod
    def _pending(kind: ValueKind, payload: Payload) -> list[ValueId]:
        if kind is ValueKind.LIST or kind is ValueKind.CHARACTER:
            return list(payload)
        if kind is ValueKind.ENVIRONMENT:
            pending = list(payload.vars.values())
            if payload.outer is not None and payload.outer.handle is not None:
                pending.append(payload.outer.handle)
            return pending
        if kind is ValueKind.CLOSURE and payload.env.handle is not None:
            return [payload.env.handle]
        return []

    def _reserve(self, size: int, pending: list[ValueId]) -> None:
        needed = self.bytes_in_use + size
        over_limit = self.max_memory is not None and needed > self.max_memory
        if (needed > self.gc_trigger or over_limit) and self.collector is not None:
            with self.protected(*pending):
                self.collector.collect()
            needed = self.bytes_in_use + size
            if needed > self.gc_trigger:
                self.gc_trigger = int(needed * self.gc_growth)
                logger.debug("gc trigger raised to %d bytes", self.gc_trigger)
        if self.max_memory is not None and needed > self.max_memory:
            logger.debug("allocation of %d bytes refused, %d in use", size, self.bytes_in_use)
            raise OutOfMemory(
                f"cannot allocate vector of size {size} bytes "
                f"({self.bytes_in_use} of {self.max_memory} in use)"
            )

    # ---------------------------
    # Access
    # ---------------------------
    def get(self, id_: ValueId) -> Value:
        index = int(id_)
        if index < 0 or index >= len(self._slots) or not self._live[index]:
            raise InvalidValue(f"no live value with identity {index}")
        return self._slots[index]

    def read(self, id_: ValueId) -> Payload:
        return self.get(id_).payload

    def kind(self, id_: ValueId) -> ValueKind:
        return self.get(id_).kind

    def __contains__(self, id_: object) -> bool:
        if not isinstance(id_, int):
            return False
        index = int(id_)
        return 0 <= index < len(self._slots) and bool(self._live[index])

    def __len__(self) -> int:
        return len(self._slots) - len(self._free)

    # ---------------------------
    # Reference counts and in-place updates
    # ---------------------------
    def incref(self, id_: ValueId) -> None:
        value = self.get(id_)
        value.refs = value.refs.incremented()

    def decref(self, id_: ValueId) -> None:
        if id_ in self:
            value = self._slots[int(id_)]
            value.refs = value.refs.decremented()

    def reserve_binding(self, env_id: ValueId, id_: ValueId) -> None:
        """Make room for one more binding in an environment before it is added.

        May collect (with both values pinned) or raise OutOfMemory.
        """
        self._reserve(NODE_SIZE, [env_id, id_])

    def refresh_size(self, id_: ValueId) -> None:
        """Recompute a value's shallow size after its payload changed in place."""
        value = self.get(id_)
        size = shallow_size(value.kind, value.payload)
        self.bytes_in_use += size - value.size
        value.size = size

    def set_element(self, id_: ValueId, index: int, element: Payload) -> None:
        """Overwrite one element of a sequence in place, keeping identity."""
        value = self.get(id_)
        old = value.payload[index]
        if value.kind is ValueKind.LIST or value.kind is ValueKind.CHARACTER:
            if old == element:
                return
            self.incref(element)
            self.decref(old)
        value.payload[index] = element

    def children(self, id_: ValueId) -> list[ValueId]:
        """Identities directly reachable from a value, for tracing."""
        value = self.get(id_)
        kind, payload = value.kind, value.payload
        if kind is ValueKind.LIST or kind is ValueKind.CHARACTER:
            return list(payload)
        if kind is ValueKind.ENVIRONMENT:
            refs = list(payload.vars.values())
            if payload.outer is not None and payload.outer.handle is not None:
                refs.append(payload.outer.handle)
            return refs
        if kind is ValueKind.CLOSURE:
            return [payload.env.handle] if payload.env.handle is not None else []
        if kind is ValueKind.PROMISE:
            return payload.references()
        return []

    # ---------------------------
    # Protection of in-flight values
    # ---------------------------
    @contextmanager
    def protected(self, *ids: ValueId):
        """Pin values that are not bound yet for the duration of the block."""
        depth = len(self._protect)
        self._protect.extend(ids)
        try:
            yield
        finally:
            del self._protect[depth:]

    def protect(self, id_: ValueId) -> ValueId:
        """Pin a value until the enclosing `protected` block ends."""
        self._protect.append(id_)
        return id_

    def preserve(self, id_: ValueId) -> ValueId:
        """Keep a value alive across collections until released."""
        self._preserved.add(id_)
        return id_

    def release(self, id_: ValueId) -> None:
        self._preserved.discard(id_)

    @property
    def preserved_ids(self) -> tuple[ValueId, ...]:
        return tuple(self._preserved)

    @property
    def protected_ids(self) -> tuple[ValueId, ...]:
        return tuple(self._protect)

    # ---------------------------
    # Mark / sweep primitives
    # ---------------------------
    def mark(self, id_: ValueId) -> bool:
        """Set the mark bit; returns False if it was already set."""
        index = int(id_)
        if not self._live[index] or self._marks[index]:
            return False
        self._marks[index] = 1
        return True

    def is_marked(self, id_: ValueId) -> bool:
        return bool(self._marks[int(id_)])

    def clear_marks(self) -> None:
        self._marks = bytearray(len(self._slots))

    def sweep(self) -> int:
        """Free every live slot without a mark bit and return how many."""
        dead = [i for i, live in enumerate(self._live) if live and not self._marks[i]]
        for index in dead:
            # Survivors lose the references the dead value held on them
            for child in self._counted_children(self._slots[index]):
                if child in self and self._marks[int(child)]:
                    self.decref(child)
        for index in dead:
            self._release(index)
        self.clear_marks()
        return len(dead)

    @staticmethod
    def _counted_children(value: Value) -> list[ValueId]:
        kind, payload = value.kind, value.payload
        if kind is ValueKind.LIST or kind is ValueKind.CHARACTER:
            return list(payload)
        if kind is ValueKind.ENVIRONMENT:
            return list(payload.vars.values())
        if kind is ValueKind.PROMISE and payload.value is not None:
            return [payload.value]
        return []

    def add_free_listener(self, fn: Callable[[ValueId], None]) -> None:
        self._free_listeners.append(fn)

    def _release(self, index: int) -> None:
        value = self._slots[index]
        if value.kind is ValueKind.STRING:
            self.strings.discard(value.payload)
        elif value.kind is ValueKind.ENVIRONMENT:
            value.payload.handle = None
        self.bytes_in_use -= value.size
        self._slots[index] = None
        self._live[index] = 0
        self._free.append(index)
        for fn in self._free_listeners:
            fn(value.id)

    def close(self) -> None:
        """Drop every value and close the string pool."""
        self._slots.clear()
        self._live = bytearray()
        self._marks = bytearray()
        self._free.clear()
        self._protect.clear()
        self._preserved.clear()
        self.bytes_in_use = 0
        self.strings.close()
