"""Simulator facade.

A Simulator owns one ValueStore (with its string pool), the top-level
environment, the call stack, the collector, the copy-on-modify engine and
the inspector, and exposes the operations a host drives them with:
constructing values, binding and looking up names, subassignment, calls,
collection and introspection.

Every operation that takes an `env` defaults to the innermost active call
frame, or the global environment outside of any call.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Union

from rmem import BodyFn, Scalar
from rmem.config import SimulatorConfig
from rmem.errors import ImmutableTarget, RmemError
from rmem.evaluation.apply import apply_closure
from rmem.evaluation.cow import CopyOnModify, Path
from rmem.evaluation.frame import Frame
from rmem.inspection import CopyCallback, Inspector
from rmem.memory.collector import GarbageCollector
from rmem.memory.store import ValueStore
from rmem.memory.strings import StringPool
from rmem.memory.vectors import box, infer_kind, vector
from rmem.types.closure import Closure
from rmem.types.environment import Environment
from rmem.types.promise import Promise
from rmem.types.value import ValueId, ValueKind

logger = logging.getLogger(__name__)


class Simulator:
    def __init__(self, config: Optional[SimulatorConfig] = None, strings: Optional[StringPool] = None):
        self.config = config if config is not None else SimulatorConfig.from_env()
        self.strings = strings if strings is not None else StringPool().open()
        self.store = ValueStore(self.strings, self.config)

        self.global_env = Environment(store=self.store, label="R_GlobalEnv")
        self.store.allocate(ValueKind.ENVIRONMENT, self.global_env)
        self.frames: list[Environment] = []

        self.collector = GarbageCollector(self.store, self.roots)
        self.inspector = Inspector(self.store, self.global_env)
        self.engine = CopyOnModify(self.store, self.inspector)

    def roots(self) -> list[Environment]:
        """The root set: the global environment and the active call frames."""
        return [self.global_env, *self.frames]

    @property
    def current_env(self) -> Environment:
        return self.frames[-1] if self.frames else self.global_env

    def _env(self, env: Optional[Environment]) -> Environment:
        return env if env is not None else self.current_env

    def close(self) -> None:
        self.frames.clear()
        self.store.close()

    def __enter__(self) -> Simulator:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------------------------
    # Constructors
    # ---------------------------
    @property
    def null(self) -> ValueId:
        return self.store.null

    def c(self, *scalars: Scalar) -> ValueId:
        """Atomic vector typed like R's c(): character > double > logical."""
        if not scalars:
            return self.store.null
        try:
            kind = infer_kind(scalars)
        except TypeError as e:
            raise ImmutableTarget(str(e)) from e
        return vector(self.store, kind, scalars)

    def integer(self, *scalars: int) -> ValueId:
        return vector(self.store, ValueKind.INTEGER, scalars)

    def seq(self, start: int, end: int) -> ValueId:
        """`start:end` as an integer vector, counting down when end < start."""
        step = 1 if end >= start else -1
        return self.integer(*range(start, end + step, step))

    def character(self, *texts: str) -> ValueId:
        return vector(self.store, ValueKind.CHARACTER, texts)

    def rep(self, x: ValueId, times: int) -> ValueId:
        """Repeat the elements of a vector; strings stay shared."""
        value = self.store.get(x)
        if not value.kind.is_sequence:
            raise ImmutableTarget(f"attempt to replicate an object of type '{value.kind.value}'")
        with self.store.protected(x):
            return self.store.allocate(value.kind, list(value.payload) * times)

    def new_list(self, *items: Union[ValueId, Scalar]) -> ValueId:
        """List whose elements are shared references to existing values."""
        with self.store.protected():
            elements = [self.store.protect(box(self.store, i)) for i in items]
            return self.store.allocate(ValueKind.LIST, elements)

    def new_env(self, parent: Optional[Environment] = None, **bindings: Union[ValueId, Scalar]) -> ValueId:
        env = Environment(outer=self._env(parent), label="env")
        id_ = self.store.allocate(ValueKind.ENVIRONMENT, env)
        with self.store.protected(id_):
            for name, value in bindings.items():
                env.define(name, box(self.store, value))
        return id_

    def function(
        self,
        formals: Union[dict[str, Optional[BodyFn]], Iterable[str]],
        body: BodyFn,
        env: Optional[Environment] = None,
        name: Optional[str] = None,
    ) -> ValueId:
        """Closure over `env`: the environment it is created in."""
        if not isinstance(formals, dict):
            formals = {f: None for f in formals}
        return self.store.allocate(ValueKind.CLOSURE, Closure(formals, body, self._env(env), name))

    def delay(self, fn: Callable[[Frame], ValueId], env: Optional[Environment] = None) -> Promise:
        """A lazy argument evaluated in `env` (the caller) when first used."""
        env = self._env(env)
        return Promise(lambda: fn(Frame(self, env)), env)

    # ---------------------------
    # Bindings
    # ---------------------------
    def bind(self, name: str, value: Union[ValueId, Scalar], env: Optional[Environment] = None) -> ValueId:
        """`name <- value` in `env`; bare scalars are boxed first."""
        id_ = box(self.store, value)
        self._env(env).define(name, id_)
        return id_

    def alias(self, new: str, old: str, env: Optional[Environment] = None) -> ValueId:
        """`new <- old`: a second binding to the same value, no copy."""
        env = self._env(env)
        id_ = self.get(old, env=env)
        env.define(new, id_)
        return id_

    def assign(self, name: str, value: Union[ValueId, Scalar], env: Optional[Environment] = None) -> ValueId:
        """`name <<- value`: rebind starting from the enclosing environment."""
        env = self._env(env)
        id_ = box(self.store, value)
        (env.outer if env.outer is not None else env).assign(name, id_)
        return id_

    def remove(self, name: str, env: Optional[Environment] = None) -> None:
        self._env(env).remove(name)

    def lookup(self, name: str, env: Optional[Environment] = None) -> ValueId:
        return self._env(env).lookup(name)

    def force(self, id_: ValueId) -> ValueId:
        value = self.store.get(id_)
        if value.kind is ValueKind.PROMISE:
            return value.payload.force(self.store)
        return id_

    def get(self, name: str, env: Optional[Environment] = None) -> ValueId:
        """Identity bound to `name`, forcing promises."""
        return self.force(self.lookup(name, env))

    def view(self, id_: ValueId):
        """Python rendering of a value.

        Atomic vectors become lists of scalars (strings as text), lists become
        lists of identities, environments and closures their payload objects,
        NULL becomes None.
        """
        value = self.store.get(self.force(id_))
        if value.kind is ValueKind.NULL:
            return None
        if value.kind is ValueKind.CHARACTER:
            return [self.store.read(s) for s in value.payload]
        if value.kind.is_sequence:
            return list(value.payload)
        return value.payload

    def env_of(self, id_: ValueId) -> Environment:
        value = self.store.get(self.force(id_))
        if value.kind is not ValueKind.ENVIRONMENT:
            raise RmemError(f"not an environment ({value.kind.value})")
        return value.payload

    # ---------------------------
    # Modification and calls
    # ---------------------------
    def mutate(
        self,
        name: str,
        path: Path,
        new: Union[ValueId, Scalar],
        env: Optional[Environment] = None,
        superassign: bool = False,
    ) -> ValueId:
        """`name[[path]] <- new` (or `<<-`), copying only when required."""
        return self.engine.mutate(self._env(env), name, path, new, superassign)

    def call(self, fn: Union[str, ValueId], *args, **named) -> ValueId:
        """Call a closure, given by name or identity, from the current frame.

        Arguments are identities, Promises from `delay`, or bare scalars.
        """
        if isinstance(fn, str):
            fn = self.get(fn)

        def _arg(a):
            if isinstance(a, Promise):
                return a
            return self.store.protect(box(self.store, a))

        with self.store.protected(fn):
            positional = [_arg(a) for a in args]
            keyword = {k: _arg(v) for k, v in named.items()}
            return apply_closure(self, fn, positional, keyword)

    # ---------------------------
    # Collection and introspection
    # ---------------------------
    def collect(self) -> int:
        return self.collector.collect()

    def trace_id(self, id_: ValueId) -> str:
        return self.inspector.trace_id(id_)

    def on_copy(self, id_: ValueId, callback: CopyCallback) -> str:
        return self.inspector.on_copy(id_, callback)

    def untrace(self, id_: ValueId) -> None:
        self.inspector.untrace(id_)

    def size_of(self, *ids: ValueId) -> int:
        return self.inspector.size_of(*ids)

    def refs(self, id_: ValueId) -> int | str:
        return self.inspector.refs(id_)

    def mem_used(self) -> int:
        return self.inspector.mem_used()
