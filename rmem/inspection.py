"""Introspection over a ValueStore: tracemem-style copy tracing and sizes.

`trace_id` gives every identity an address-like label. `on_copy` registers a
callback that fires synchronously whenever the copy-on-modify engine copies a
traced value; the copy inherits the callbacks, so a chain of copies keeps
reporting, as `tracemem()` does. `size_of` counts the union of everything
reachable from its arguments once, so shared structure is not double counted.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rmem.memory.store import ValueStore
from rmem.types.environment import Environment
from rmem.types.value import RefCount, ValueId, ValueKind

logger = logging.getLogger(__name__)

CopyCallback = Callable[[ValueId, ValueId], None]

_ADDRESS_BASE = 0x55D5C8A30000
_ADDRESS_STRIDE = 0x38


class Inspector:
    def __init__(self, store: ValueStore, global_env: Optional[Environment] = None):
        self.store = store
        self.global_env = global_env
        self._hooks: dict[ValueId, list[CopyCallback]] = {}
        store.add_free_listener(self._forget)

    # ---------------------------
    # Identity labels and tracing
    # ---------------------------
    @staticmethod
    def trace_id(id_: ValueId) -> str:
        return f"<0x{_ADDRESS_BASE + int(id_) * _ADDRESS_STRIDE:x}>"

    def on_copy(self, id_: ValueId, callback: CopyCallback) -> str:
        """Call `callback(old, new)` whenever `id_` (or a copy of it) is copied."""
        self.store.get(id_)
        self._hooks.setdefault(id_, []).append(callback)
        return self.trace_id(id_)

    def untrace(self, id_: ValueId) -> None:
        self._hooks.pop(id_, None)

    def is_traced(self, id_: ValueId) -> bool:
        return id_ in self._hooks

    def copied(self, old: ValueId, new: ValueId) -> None:
        """Report that the engine copied `old` into `new`."""
        logger.debug("tracemem[%s -> %s]", self.trace_id(old), self.trace_id(new))
        callbacks = self._hooks.get(old)
        if not callbacks:
            return
        self._hooks[new] = list(callbacks)
        for callback in list(callbacks):
            callback(old, new)

    def _forget(self, id_: ValueId) -> None:
        self._hooks.pop(id_, None)

    # ---------------------------
    # Sizes and counts
    # ---------------------------
    def _is_global(self, id_: Optional[ValueId]) -> bool:
        return self.global_env is not None and id_ is not None and id_ == self.global_env.handle

    def _size_children(self, id_: ValueId) -> list[ValueId]:
        value = self.store.get(id_)
        if value.kind is ValueKind.ENVIRONMENT:
            # Bindings only; enclosing environments are not part of the object
            return list(value.payload.vars.values())
        return self.store.children(id_)

    def reachable(self, *ids: ValueId) -> set[ValueId]:
        seen: set[ValueId] = set()
        worklist = [i for i in ids if not self._is_global(i)]
        while worklist:
            id_ = worklist.pop()
            if id_ in seen:
                continue
            seen.add(id_)
            for child in self._size_children(id_):
                if child not in seen and not self._is_global(child):
                    worklist.append(child)
        return seen

    def size_of(self, *ids: ValueId) -> int:
        """Bytes used by the union of values reachable from `ids`."""
        return sum(self.store.get(i).size for i in self.reachable(*ids))

    def refs(self, id_: ValueId) -> int | str:
        count = self.store.get(id_).refs
        return "many" if count is RefCount.MANY else count.value

    def mem_used(self) -> int:
        return self.store.bytes_in_use
