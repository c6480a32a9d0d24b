"""Closure representation for rmem."""

from __future__ import annotations

from io import StringIO
from typing import Optional

from rmem import BodyFn
from rmem.types.environment import Environment


class Closure:
    """A function with formal arguments, a body and its defining environment.

    `formals` maps each argument name to a default, or None when the argument
    has no default. Defaults and the body are Python callables receiving the
    call Frame; they are evaluated in the call frame, whose parent is `env`.
    """

    __slots__ = ("formals", "body", "env", "name")

    def __init__(
        self,
        formals: dict[str, Optional[BodyFn]],
        body: BodyFn,
        env: Environment,
        name: Optional[str] = None,
    ):
        self.formals: dict[str, Optional[BodyFn]] = dict(formals)
        self.body: BodyFn = body
        self.env: Environment = env
        self.name: str | None = name

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("function(")
            buffer.write(", ".join(
                f if d is None else f"{f} = <default>" for f, d in self.formals.items()
            ))
            buffer.write(")")
            if self.name:
                buffer.write(f" <{self.name}>")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)
