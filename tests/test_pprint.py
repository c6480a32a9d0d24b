import pytest

from rmem.debug_utils.pprint import format_atomic, format_scalar, pprint_value
from rmem.types.value import ValueKind


@pytest.mark.parametrize(
    "kind,scalar,expected",
    [
        (ValueKind.DOUBLE, 3.0, "3"),
        (ValueKind.DOUBLE, 0.125, "0.125"),
        (ValueKind.DOUBLE, float("inf"), "Inf"),
        (ValueKind.DOUBLE, float("nan"), "NaN"),
        (ValueKind.DOUBLE, None, "NA"),
        (ValueKind.LOGICAL, False, "FALSE"),
        (ValueKind.INTEGER, 7, "7"),
        (ValueKind.CHARACTER, 'say "hi"', '"say \\"hi\\""'),
    ],
)
def test_format_scalar(kind, scalar, expected):
    assert format_scalar(kind, scalar) == expected


@pytest.mark.parametrize(
    "kind,scalars,expected",
    [
        (ValueKind.INTEGER, [1, 2, 3], "[1] 1 2 3"),
        (ValueKind.DOUBLE, [1.0, 2.5], "[1] 1.0 2.5"),
        (ValueKind.DOUBLE, [1.0, None], "[1]  1 NA"),
        (ValueKind.LOGICAL, [True, False, None], "[1]  TRUE FALSE    NA"),
        (ValueKind.CHARACTER, ["a", "bcd"], '[1] "a"   "bcd"'),
        (ValueKind.DOUBLE, [], "numeric(0)"),
        (ValueKind.CHARACTER, [], "character(0)"),
    ],
)
def test_format_atomic(kind, scalars, expected):
    assert format_atomic(kind, scalars) == expected


def test_long_vectors_wrap_with_indices():
    out = format_atomic(ValueKind.INTEGER, list(range(1, 31)), {"max_line_length": 40})
    lines = out.splitlines()
    assert len(lines) > 1
    assert lines[0].startswith(" [1]  1  2")
    assert all(len(line) <= 40 for line in lines)
    second_start = int(lines[1].split("]")[0].strip(" ["))
    assert lines[1].split("]")[1].split()[0] == str(second_start)


def test_element_limit():
    out = format_atomic(ValueKind.INTEGER, list(range(10)), {"max_elements": 4})
    assert out.splitlines()[-1] == " [ reached max_elements -- omitted 6 entries ]"


def test_values(sim):
    assert pprint_value(sim, sim.null) == "NULL"
    assert pprint_value(sim, sim.seq(3, 1)) == "[1] 3 2 1"
    assert pprint_value(sim, sim.new_list()) == "list()"
    f = sim.function(["x"], lambda frame: None, name="f")
    assert pprint_value(sim, f) == "function(x) <f>"
    e = sim.new_env()
    assert pprint_value(sim, e) == f"<environment: {sim.trace_id(e)[1:-1]}>"


def test_nested_lists(sim):
    inner = sim.new_list(1)
    outer = sim.new_list(inner, "x")
    assert pprint_value(sim, outer) == '[[1]]\n[[1]][[1]]\n[1] 1\n\n[[2]]\n[1] "x"'
