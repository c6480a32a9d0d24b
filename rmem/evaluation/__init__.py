from __future__ import annotations

# Public surface for the evaluation package
from .cow import CopyOnModify
from .frame import Frame
from .apply import apply_closure

__all__ = ["CopyOnModify", "Frame", "apply_closure"]
