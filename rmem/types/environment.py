"""Binding environments for rmem.

An Environment maps names to value identities and supports nested scopes via
an `outer` link. Environments have reference semantics: every Environment is
the payload of an environment-kind Value in the store (`handle`), so it can
be bound to a name, stored in a list, or bound inside itself.

Binding a value bumps its saturating reference count in the store; replacing
or removing a binding lowers it again unless it has already reached "many".
"""

from __future__ import annotations

from io import StringIO
from typing import Iterator, Optional, TYPE_CHECKING

from rmem.errors import InvalidName, NameNotFound
from rmem.types.value import ValueId

if TYPE_CHECKING:
    from rmem.memory.store import ValueStore


class Environment:
    """Hierarchical mapping from names to ValueIds."""

    __slots__ = ("vars", "outer", "store", "handle", "label")

    def __init__(
        self,
        outer: Optional[Environment] = None,
        store: Optional[ValueStore] = None,
        label: Optional[str] = None,
    ):
        self.vars: dict[str, ValueId] = {}
        self.outer: Environment | None = outer
        # Children share the store of their parent unless given one
        self.store: ValueStore | None = store if store is not None else (
            outer.store if outer is not None else None
        )
        # Identity of the environment-kind Value wrapping this frame
        self.handle: ValueId | None = None
        self.label: str | None = label

    @staticmethod
    def _check_name(name: str) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidName(f"Cannot use {name!r} as a name")

    def _rebind(self, name: str, id_: ValueId) -> None:
        old = self.vars.get(name)
        if old == id_:
            return
        if self.store is not None:
            if old is None and self.handle is not None:
                self.store.reserve_binding(self.handle, id_)
            self.store.incref(id_)
            if old is not None:
                self.store.decref(old)
        self.vars[name] = id_
        self._resized()

    def _resized(self) -> None:
        if self.store is not None and self.handle is not None:
            self.store.refresh_size(self.handle)

    def define(self, name: str, id_: ValueId) -> None:
        """Bind `name` to `id_` in this frame, replacing any local binding.

        Raises InvalidName if `name` is not a non-empty string.
        """
        self._check_name(name)
        self._rebind(name, id_)

    def find(self, name: str) -> Optional[Environment]:
        """Find the nearest environment in the chain that binds `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.outer
        return None

    def lookup(self, name: str) -> ValueId:
        """Look up the identity bound to `name` here or in any parent.

        Resolution happens at call time, so bindings added or changed after a
        closure captured this environment are seen.
        Raises NameNotFound if no frame binds the name.
        """
        env = self.find(name)
        if env is None:
            raise NameNotFound(f"object '{name}' not found")
        return env.vars[name]

    def assign(self, name: str, id_: ValueId) -> Environment:
        """Update the nearest existing binding for `name` (superassignment).

        Returns the environment whose binding was changed.
        Raises NameNotFound if the name is not bound anywhere in the chain.
        """
        env = self.find(name)
        if env is None:
            raise NameNotFound(f"object '{name}' not found")
        env._rebind(name, id_)
        return env

    def remove(self, name: str) -> None:
        """Drop the local binding for `name`; NameNotFound if absent here."""
        if name not in self.vars:
            raise NameNotFound(f"object '{name}' not found")
        old = self.vars.pop(name)
        if self.store is not None:
            self.store.decref(old)
        self._resized()

    def names(self) -> list[str]:
        return list(self.vars)

    def parents(self) -> Iterator[Environment]:
        """Yield the enclosing environments, nearest first."""
        env = self.outer
        while env is not None:
            yield env
            env = env.outer

    def root(self) -> Environment:
        env = self
        while env.outer is not None:
            env = env.outer
        return env

    def __contains__(self, name: str) -> bool:
        return name in self.vars

    def __len__(self) -> int:
        return len(self.vars)

    def _write_vars(self, buffer: StringIO) -> None:
        """Write this frame's bindings into the buffer in a compact form."""
        buffer.write("{")
        first = True
        for k, v in self.vars.items():
            if not first:
                buffer.write(", ")
            buffer.write(f"{k}: {int(v)}")
            first = False
        buffer.write("}")

    def __str__(self) -> str:
        """Human-readable single-frame view with an indicator for parent."""
        with StringIO() as buffer:
            if self.label:
                buffer.write(f"<{self.label}> ")
            self._write_vars(buffer)
            if self.outer is not None:
                buffer.write(" -> ...")
            return buffer.getvalue()

    def __repr__(self) -> str:
        """Detailed chain representation for debugging purposes."""
        with StringIO() as buffer:
            buffer.write("<Environment chain: ")
            env = self
            chain = []
            while env is not None:
                env_buf: StringIO = StringIO()
                env._write_vars(env_buf)
                chain.append(env_buf.getvalue())
                env = env.outer
            buffer.write(" -> ".join(chain))
            buffer.write(">")
            return buffer.getvalue()
