"""Tracing mark/sweep collector.

Reclamation is based purely on reachability from the root set: the top-level
environment, every frame on the active call stack, and any values pinned by
an operation still in flight. Reference counts play no part here, which is
what lets the collector reclaim cycles such as an environment bound inside
itself.

Marking uses an explicit worklist rather than recursion, and a value is only
pushed the first time its mark bit is set, so cycles terminate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from rmem.memory.store import ValueStore
from rmem.types.environment import Environment
from rmem.types.value import ValueId

logger = logging.getLogger(__name__)


@dataclass
class CollectorStats:
    collections: int = 0
    reclaimed_total: int = 0
    last_reclaimed: int = 0
    bytes_freed_total: int = 0


class GarbageCollector:
    """Stop-the-world collector over a single ValueStore."""

    def __init__(self, store: ValueStore, roots: Callable[[], Iterable[Environment]]):
        self.store = store
        self.roots = roots
        self.stats = CollectorStats()
        store.collector = self

    def seeds(self) -> list[ValueId]:
        """Identities the mark phase starts from."""
        seeds: list[ValueId] = []
        for env in self.roots():
            if env.handle is not None:
                seeds.append(env.handle)
            else:
                # A frame not yet wrapped in a value still roots its bindings
                seeds.extend(env.vars.values())
                seeds.extend(p.handle for p in env.parents() if p.handle is not None)
        seeds.extend(self.store.preserved_ids)
        seeds.extend(self.store.protected_ids)
        return seeds

    def mark(self) -> int:
        """Mark everything reachable from the seeds; returns the marked count."""
        store = self.store
        store.clear_marks()
        marked = 0
        worklist = [id_ for id_ in self.seeds() if id_ in store]
        while worklist:
            id_ = worklist.pop()
            if not store.mark(id_):
                continue
            marked += 1
            for child in store.children(id_):
                if child in store and not store.is_marked(child):
                    worklist.append(child)
        return marked

    def collect(self) -> int:
        """Run a full collection and return the number of values reclaimed."""
        before = self.store.bytes_in_use
        marked = self.mark()
        reclaimed = self.store.sweep()
        freed = before - self.store.bytes_in_use

        self.stats.collections += 1
        self.stats.last_reclaimed = reclaimed
        self.stats.reclaimed_total += reclaimed
        self.stats.bytes_freed_total += freed
        logger.debug(
            "gc #%d: %d live, %d reclaimed, %d bytes freed, %d bytes in use",
            self.stats.collections, marked, reclaimed, freed, self.store.bytes_in_use,
        )
        return reclaimed
