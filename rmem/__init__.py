# Core type aliases for rmem's data model.
# Values live in a ValueStore arena and are addressed by ValueId. Payloads are
# plain Python objects (lists of scalars for atomic vectors, lists of ValueIds
# for lists, Environment/Closure/Promise objects for the remaining kinds).
#
# Naming guidance:
# - Payload: what a Value holds, as read back from the store.
# - Scalar:  an element of an atomic vector as seen from Python.
# - BodyFn:  Python callable standing in for a closure body or a default
#            argument expression; receives the call Frame.

from typing import Any, Callable

Payload = Any
Scalar = Any

BodyFn = Callable[..., Any]

from rmem.simulator import Simulator  # noqa: E402
