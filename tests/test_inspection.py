import re

import pytest
from hypothesis import given, settings, strategies as st

from rmem.config import SimulatorConfig
from rmem.errors import InvalidValue
from rmem.simulator import Simulator


def test_trace_labels(sim):
    x, y = sim.c(1), sim.c(2)
    assert re.fullmatch(r"<0x[0-9a-f]+>", sim.trace_id(x))
    assert sim.trace_id(x) == sim.trace_id(x)
    assert sim.trace_id(x) != sim.trace_id(y)


def test_on_copy_returns_label(sim):
    x = sim.bind("x", sim.c(1))
    assert sim.on_copy(x, lambda old, new: None) == sim.trace_id(x)


def test_on_copy_unknown_identity(sim):
    x = sim.c(1)
    sim.collect()
    with pytest.raises(InvalidValue):
        sim.on_copy(x, lambda old, new: None)


def test_tracing_follows_copies(sim):
    x = sim.bind("x", sim.c(1, 2, 3))
    seen = []
    sim.on_copy(x, lambda old, new: seen.append((old, new)))
    sim.alias("y", "x")
    y1 = sim.mutate("y", 0, 9)
    sim.alias("z", "y")
    z1 = sim.mutate("z", 0, 8)
    assert seen == [(x, y1), (y1, z1)]


def test_untrace(sim):
    x = sim.bind("x", sim.c(1, 2, 3))
    seen = []
    sim.on_copy(x, lambda old, new: seen.append(new))
    sim.untrace(x)
    sim.alias("y", "x")
    sim.mutate("y", 0, 9)
    assert seen == []
    assert not sim.inspector.is_traced(x)


def test_freed_values_lose_their_hooks(sim):
    x = sim.c(1)
    sim.on_copy(x, lambda old, new: None)
    sim.collect()
    assert not sim.inspector.is_traced(x)


def test_string_sizes(sim):
    x = sim.bind("x", sim.character("bananas"))
    assert sim.size_of(x) == 112
    y = sim.bind("y", sim.rep(x, 100))
    assert sim.size_of(y) == 904
    assert sim.size_of(y) < 100 * sim.size_of(x)


def test_disjoint_sizes_add_up(sim):
    x = sim.c(1, 2, 3)
    y = sim.seq(1, 10)
    assert sim.size_of(x) + sim.size_of(y) == sim.size_of(x, y)


def test_shared_sizes_count_once(sim):
    x = sim.c(*range(100))
    l = sim.new_list(x, x, x)
    assert sim.size_of(l) == sim.size_of(x, l)
    assert sim.size_of(x) + sim.size_of(l) > sim.size_of(x, l)


def test_pooled_strings_are_shared(sim):
    a = sim.character("shared")
    b = sim.character("shared")
    assert sim.size_of(a) + sim.size_of(b) > sim.size_of(a, b)


def test_sharing_only_null_costs_nothing(sim):
    a = sim.new_list(sim.null)
    b = sim.new_list(sim.null)
    assert sim.size_of(sim.null) == 0
    assert sim.size_of(a) + sim.size_of(b) == sim.size_of(a, b)


def test_environment_size(sim):
    e = sim.bind("e", sim.new_env())
    assert sim.size_of(e) == 56
    sim.mutate("e", "a", 1)
    assert sim.size_of(e) == 56 + 56 + 56


def test_environment_size_skips_parents(sim):
    sim.bind("big", sim.c(*range(100)))
    e = sim.new_env()
    assert sim.size_of(e) == 56
    assert sim.size_of(sim.global_env.handle) == 0


def test_closure_size_includes_its_environment(sim):
    def make(frame):
        frame.bind("payload", frame.sim.c(1))
        return frame.sim.function(["a"], lambda fr: None, env=frame.env)

    f = sim.call(sim.function([], make))
    # closure with one formal, frame with one binding, the double
    assert sim.size_of(f) == (56 + 56) + (56 + 56) + 56


def test_refs(sim):
    x = sim.c(1)
    assert sim.refs(x) == 0
    sim.bind("x", x)
    assert sim.refs(x) == 1
    sim.alias("y", "x")
    assert sim.refs(x) == "many"


def test_mem_used(sim):
    before = sim.mem_used()
    sim.c(1, 2, 3)
    assert sim.mem_used() == before + 80
    assert sim.mem_used() == sim.store.bytes_in_use


@settings(max_examples=50)
@given(
    st.lists(st.floats(allow_nan=False), min_size=1, max_size=40),
    st.lists(st.integers(-1000, 1000), min_size=1, max_size=40),
)
def test_size_union_without_sharing(xs, ys):
    with Simulator(SimulatorConfig()) as sim:
        x = sim.c(*xs)
        y = sim.integer(*ys)
        assert sim.size_of(x) + sim.size_of(y) == sim.size_of(x, y)
        assert sim.size_of(x, x) == sim.size_of(x)
