"""Global string pool.

Equal strings map to a single string-kind value in the store, the way R keeps
one CHARSXP per distinct string in its global cache. The pool is handed to a
ValueStore at construction so that tests can run isolated stores; it must be
opened before use and closed when the owning store is torn down.
"""

from __future__ import annotations

from typing import Optional

from rmem.errors import RmemError
from rmem.types.value import ValueId


class StringPool:
    __slots__ = ("_ids", "_open")

    def __init__(self):
        self._ids: dict[str, ValueId] = {}
        self._open = False

    def open(self) -> StringPool:
        self._ids.clear()
        self._open = True
        return self

    def close(self) -> None:
        self._ids.clear()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def _check_open(self) -> None:
        if not self._open:
            raise RmemError("string pool is not open")

    def get(self, text: str) -> Optional[ValueId]:
        self._check_open()
        return self._ids.get(text)

    def add(self, text: str, id_: ValueId) -> None:
        self._check_open()
        self._ids[text] = id_

    def discard(self, text: str) -> None:
        """Forget `text` (its value was reclaimed by the collector)."""
        self._ids.pop(text, None)

    def __contains__(self, text: str) -> bool:
        return text in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __enter__(self) -> StringPool:
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
