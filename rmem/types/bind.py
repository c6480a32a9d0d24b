from __future__ import annotations

from typing import Callable, Optional, Union

from rmem import BodyFn
from rmem.errors import ArgumentError
from rmem.types.environment import Environment
from rmem.types.promise import Promise
from rmem.types.value import ValueId, ValueKind

Arg = Union[ValueId, Promise]

DOTS = "..."


def match_arguments(
    formals: list[str],
    positional: list[Arg],
    named: dict[str, Arg],
) -> tuple[dict[str, Arg], list[Arg]]:
    """
    Single source of truth for matching supplied arguments to formals.

    Matching happens in three passes, as in R:
    - exact: a named argument whose name equals a formal
    - partial: a named argument that is a unique prefix of a formal; formals
      after `...` only ever match exactly
    - positional: remaining unnamed arguments fill the remaining formals
      before `...` in order

    Whatever is left goes to `...` if the function has it, otherwise it is an
    "unused argument" error.

    Returns the matched formals and the arguments collected by `...`.
    """
    matched: dict[str, Arg] = {}
    has_dots = DOTS in formals
    dots_at = formals.index(DOTS) if has_dots else len(formals)
    before_dots = formals[:dots_at]
    ordinary = [f for f in formals if f != DOTS]

    # Exact names
    remaining_named: dict[str, Arg] = {}
    for tag, arg in named.items():
        if tag in ordinary:
            matched[tag] = arg
        else:
            remaining_named[tag] = arg

    # Unique prefixes, only for formals ahead of `...`
    unmatched_named: dict[str, Arg] = {}
    for tag, arg in remaining_named.items():
        candidates = [f for f in before_dots if f not in matched and f.startswith(tag)]
        if len(candidates) > 1:
            raise ArgumentError(f"argument '{tag}' matches multiple formal arguments")
        if candidates:
            matched[candidates[0]] = arg
        else:
            unmatched_named[tag] = arg

    # Positions
    supplied = list(positional)
    for formal in before_dots:
        if not supplied:
            break
        if formal not in matched:
            matched[formal] = supplied.pop(0)

    dots: list[Arg] = []
    if has_dots:
        dots = supplied + list(unmatched_named.values())
    elif supplied or unmatched_named:
        unused = [repr(a) for a in supplied] + [f"{k} = {v!r}" for k, v in unmatched_named.items()]
        raise ArgumentError(f"unused argument{'s' if len(unused) > 1 else ''} ({', '.join(unused)})")
    return matched, dots


def bind_arguments(
    local_env: Environment,
    formals: dict[str, Optional[BodyFn]],
    positional: list[Arg],
    named: dict[str, Arg],
    frame_for: Callable[[Environment], object],
) -> Environment:
    """
    Bind every formal of a call frame.

    Supplied identities are bound directly. Supplied promises, defaults and
    missing arguments are bound as promise values, so defaults are evaluated
    in the call frame and only when first used. `...` is bound to a list of
    the extra arguments.

    `local_env` must already be rooted (on the call stack) so that values
    bound here survive any collection triggered by later allocations.
    """
    store = local_env.store
    matched, dots = match_arguments(list(formals), positional, named)

    def _as_value(arg: Arg) -> ValueId:
        if isinstance(arg, Promise):
            return store.allocate(ValueKind.PROMISE, arg)
        return arg

    for name, default in formals.items():
        if name == DOTS:
            with store.protected():
                elements = [store.protect(_as_value(a)) for a in dots]
                local_env.define(DOTS, store.allocate(ValueKind.LIST, elements))
        elif name in matched:
            arg = matched[name]
            if isinstance(arg, Promise) and arg.name is None:
                arg.name = name
            local_env.define(name, _as_value(arg))
        elif default is not None:
            thunk = (lambda d=default: d(frame_for(local_env)))
            local_env.define(name, _as_value(Promise(thunk, local_env, name, default=True)))
        else:
            local_env.define(name, _as_value(Promise.missing(name)))
    return local_env
