from __future__ import annotations

import math
from typing import TYPE_CHECKING

from rmem.types.closure import Closure
from rmem.types.value import ValueId, ValueKind

if TYPE_CHECKING:
    from rmem.simulator import Simulator

# ----------------- Defaults -----------------
DEFAULT_OPTIONS = {
    "max_line_length": 80,
    "max_depth": 5,
    "max_elements": 100,
}

EMPTY_VECTORS = {
    ValueKind.LOGICAL: "logical(0)",
    ValueKind.INTEGER: "integer(0)",
    ValueKind.DOUBLE: "numeric(0)",
    ValueKind.CHARACTER: "character(0)",
    ValueKind.LIST: "list()",
}


# ----------------- Scalars -----------------
def format_scalar(kind: ValueKind, scalar) -> str:
    if scalar is None:
        return "NA"
    if kind is ValueKind.LOGICAL:
        return "TRUE" if scalar else "FALSE"
    if kind is ValueKind.DOUBLE:
        if math.isnan(scalar):
            return "NaN"
        if math.isinf(scalar):
            return "Inf" if scalar > 0 else "-Inf"
        if float(scalar).is_integer() and abs(scalar) < 1e15:
            return str(int(scalar))
        return f"{scalar:.7g}"
    if kind is ValueKind.CHARACTER:
        escaped = scalar.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(scalar)


def _format_doubles(scalars: list) -> list[str]:
    """Doubles share one number of decimals, as R prints them."""
    texts = [format_scalar(ValueKind.DOUBLE, s) for s in scalars]
    finite = [(s, t) for s, t in zip(scalars, texts) if s is not None and math.isfinite(s)]
    if any("e" in t for _, t in finite):
        return texts
    decimals = max((len(t.partition(".")[2]) for _, t in finite), default=0)
    if decimals == 0:
        return texts
    return [
        f"{s:.{decimals}f}" if s is not None and math.isfinite(s) else t
        for s, t in zip(scalars, texts)
    ]


def format_atomic(kind: ValueKind, scalars: list, options: dict = DEFAULT_OPTIONS) -> str:
    """R-style vector print: elements wrapped to the line width, each line
    prefixed with the index of its first element."""
    if not scalars:
        return EMPTY_VECTORS[kind]
    limit = options.get("max_elements", 100)
    if kind is ValueKind.DOUBLE:
        parts = _format_doubles(scalars[:limit])
    else:
        parts = [format_scalar(kind, s) for s in scalars[:limit]]
    width = max(len(p) for p in parts)
    if kind is ValueKind.CHARACTER:
        parts = [p.ljust(width) for p in parts]
    else:
        parts = [p.rjust(width) for p in parts]
    label_width = len(f"[{len(parts)}]")
    max_len = options.get("max_line_length", 80)

    lines: list[str] = []
    current: list[str] = []
    first = 1
    for i, part in enumerate(parts, start=1):
        candidate_len = label_width + sum(len(p) + 1 for p in current) + len(part) + 1
        if current and candidate_len > max_len:
            lines.append((f"[{first}]".rjust(label_width) + " " + " ".join(current)).rstrip())
            current, first = [], i
        current.append(part)
    lines.append((f"[{first}]".rjust(label_width) + " " + " ".join(current)).rstrip())
    if len(scalars) > limit:
        lines.append(f" [ reached max_elements -- omitted {len(scalars) - limit} entries ]")
    return "\n".join(lines)


# ----------------- Pretty printer -----------------
def pprint_value(
    sim: Simulator,
    id_: ValueId,
    options: dict = DEFAULT_OPTIONS,
    _prefix: str = "",
    _current_depth: int = 0,
) -> str:
    value = sim.store.get(sim.force(id_))
    kind = value.kind

    if kind is ValueKind.NULL:
        return "NULL"
    if kind.is_atomic:
        return format_atomic(kind, sim.view(value.id), options)
    if kind is ValueKind.STRING:
        return format_scalar(ValueKind.CHARACTER, value.payload)
    if kind is ValueKind.ENVIRONMENT:
        return f"<environment: {sim.trace_id(value.id)[1:-1]}>"
    if kind is ValueKind.CLOSURE:
        closure: Closure = value.payload
        return str(closure)
    if kind is ValueKind.LIST:
        if not value.payload:
            return EMPTY_VECTORS[kind]
        if _current_depth >= options.get("max_depth", 5):
            return "…"
        blocks = []
        for i, element in enumerate(value.payload, start=1):
            label = f"{_prefix}[[{i}]]"
            body = pprint_value(sim, element, options, label, _current_depth + 1)
            blocks.append(f"{label}\n{body}\n")
        return "\n".join(blocks).rstrip("\n")
    return f"<{kind.value}>"
