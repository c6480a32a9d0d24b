"""Application engine for rmem.

This module centralizes closure application:
- the call frame is a child of the closure's defining environment, never of
  the caller's, which is what makes scoping lexical;
- lookups in the body happen when the body runs, so it sees the defining
  environment as it is at call time, not as it was at definition;
- arguments are matched and bound by `bind_arguments`, lazily where possible;
- the frame is on the call stack (and so in the collector's root set) for
  exactly the duration of the body.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rmem.errors import NotAFunction
from rmem.evaluation.frame import Frame
from rmem.types.bind import Arg, bind_arguments
from rmem.types.closure import Closure
from rmem.types.environment import Environment
from rmem.types.value import ValueId, ValueKind

if TYPE_CHECKING:
    from rmem.simulator import Simulator

logger = logging.getLogger(__name__)


def apply_closure(
    sim: Simulator,
    fn: ValueId,
    args: list[Arg],
    named: dict[str, Arg],
) -> ValueId:
    """Apply the closure `fn` to `args` and `named` and return its value.

    Behavior:
    - Raises NotAFunction if `fn` is not a closure.
    - Argument matching errors (ArgumentError) are raised before the body
      runs; the frame is off the call stack again when they propagate.
    - A body returning None yields NULL.
    """
    store = sim.store
    value = store.get(fn)
    if value.kind is ValueKind.PROMISE:
        value = store.get(value.payload.force(store))
    if value.kind is not ValueKind.CLOSURE:
        raise NotAFunction(f"attempt to apply non-function ({value.kind.value})")
    closure: Closure = value.payload

    pinned = [a for a in list(args) + list(named.values()) if isinstance(a, ValueId)]
    with store.protected(value.id, *pinned):
        local_env = Environment(outer=closure.env, label=closure.name)
        store.allocate(ValueKind.ENVIRONMENT, local_env)
        sim.frames.append(local_env)
        try:
            bind_arguments(local_env, closure.formals, list(args), dict(named),
                           lambda e: Frame(sim, e))
            logger.debug("call %s depth=%d", closure.name or "<anonymous>", len(sim.frames))
            result = closure.body(Frame(sim, local_env))
        finally:
            sim.frames.pop()

    if result is None:
        return store.null
    return result
