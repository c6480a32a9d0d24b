"""The view of a call frame handed to closure bodies and default arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from rmem import Scalar
from rmem.errors import NameNotFound
from rmem.types.bind import DOTS
from rmem.types.environment import Environment
from rmem.types.value import ValueId, ValueKind

if TYPE_CHECKING:
    from rmem.simulator import Simulator


class Frame:
    __slots__ = ("sim", "env")

    def __init__(self, sim: Simulator, env: Environment):
        self.sim = sim
        self.env = env

    def get(self, name: str) -> ValueId:
        """Identity bound to `name`, forcing it first if it is a promise."""
        return self.sim.get(name, env=self.env)

    def view(self, name: str):
        return self.sim.view(self.get(name))

    def bind(self, name: str, value: Union[ValueId, Scalar]) -> ValueId:
        return self.sim.bind(name, value, env=self.env)

    def assign(self, name: str, value: Union[ValueId, Scalar]) -> ValueId:
        """`<<-`: rebind `name` in the nearest enclosing frame that has it."""
        return self.sim.assign(name, value, env=self.env)

    def mutate(self, name: str, path, new, superassign: bool = False) -> ValueId:
        return self.sim.mutate(name, path, new, env=self.env, superassign=superassign)

    def missing(self, name: str) -> bool:
        """True when the formal `name` was not supplied by the caller, even if
        it has a default."""
        if name not in self.env:
            raise NameNotFound(f"'missing' can only be used for arguments: {name}")
        value = self.sim.store.get(self.env.vars[name])
        promise = value.payload if value.kind is ValueKind.PROMISE else None
        return promise is not None and (promise.is_missing or promise.default)

    def dots(self) -> list[ValueId]:
        """Forced identities of the arguments collected by `...`."""
        holder = self.sim.store.read(self.env.lookup(DOTS))
        return [self.sim.force(i) for i in holder]

    def call(self, fn: Union[str, ValueId], *args, **named) -> ValueId:
        return self.sim.call(fn, *args, **named)

    def __repr__(self) -> str:
        return f"<Frame {self.env}>"
