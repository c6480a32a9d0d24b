from __future__ import annotations

from typing import Callable, Optional, TYPE_CHECKING

from rmem.errors import MissingArgument, RmemError
from rmem.types.environment import Environment
from rmem.types.value import ValueId

if TYPE_CHECKING:
    from rmem.memory.store import ValueStore


class Promise:
    """A lazily evaluated argument.

    Holds a thunk and the environment it evaluates in until first forced,
    then only the resulting identity. A promise without a thunk stands for a
    missing argument that has no default.
    """

    __slots__ = ("name", "thunk", "env", "value", "forcing", "default")

    def __init__(
        self,
        thunk: Optional[Callable[[], ValueId]],
        env: Optional[Environment] = None,
        name: Optional[str] = None,
        default: bool = False,
    ):
        self.name = name
        self.thunk = thunk
        self.env = env
        self.value: ValueId | None = None
        self.forcing = False
        # Stands in for an argument the caller left out
        self.default = default

    @classmethod
    def missing(cls, name: str) -> Promise:
        return cls(None, None, name)

    @property
    def is_missing(self) -> bool:
        return self.thunk is None and self.value is None

    @property
    def is_forced(self) -> bool:
        return self.value is not None

    def force(self, store: ValueStore) -> ValueId:
        if self.value is not None:
            return self.value
        if self.thunk is None:
            raise MissingArgument(f'argument "{self.name}" is missing, with no default')
        if self.forcing:
            raise RmemError(
                "promise already under evaluation: recursive default argument reference"
            )
        self.forcing = True
        try:
            value = self.thunk()
        finally:
            self.forcing = False
        store.incref(value)
        self.value = value
        # The environment is no longer needed once the value is known
        self.thunk = None
        self.env = None
        return value

    def references(self) -> list[ValueId]:
        if self.value is not None:
            return [self.value]
        if self.env is not None and self.env.handle is not None:
            return [self.env.handle]
        return []

    def __repr__(self) -> str:
        state = "forced" if self.is_forced else ("missing" if self.is_missing else "pending")
        return f"<promise {self.name or ''} {state}>"
