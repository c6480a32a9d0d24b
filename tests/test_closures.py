import pytest

from rmem.errors import ArgumentError, MissingArgument, NameNotFound, NotAFunction, RmemError
from rmem.types.bind import match_arguments


def test_lexical_scoping(sim):
    sim.bind("a", 1)
    sim.bind("f", sim.function([], lambda frame: frame.get("a"), name="f"))

    def g(frame):
        frame.bind("a", 2)
        return frame.call("f")

    assert sim.view(sim.call(sim.function([], g))) == [1]


def test_lookup_happens_at_call_time(sim):
    f = sim.bind("f", sim.function([], lambda frame: frame.get("b")))
    with pytest.raises(NameNotFound):
        sim.call(f)
    sim.bind("b", 10)
    assert sim.view(sim.call(f)) == [10]
    sim.bind("b", 20)
    assert sim.view(sim.call("f")) == [20]


def test_call_frame_is_child_of_defining_environment(sim):
    frames = []

    def make(frame):
        return frame.sim.function([], lambda fr: frames.append(fr.env), env=frame.env)

    inner = sim.bind("inner", sim.call(sim.function([], make)))
    defining = sim.store.read(inner).env
    assert sim.call("inner") == sim.null
    assert frames[0].outer is defining
    assert sim.frames == []


def test_fresh_frame_per_call(sim):
    def body(frame):
        assert "n" not in frame.env
        frame.bind("n", 1)

    f = sim.function([], body)
    sim.call(f)
    sim.call(f)


def test_counter_with_superassignment(sim):
    def make_counter(frame):
        frame.bind("i", 0)
        return frame.sim.function(
            [], lambda fr: fr.assign("i", fr.view("i")[0] + 1), env=frame.env,
        )

    sim.bind("counter", sim.call(sim.function([], make_counter)))
    assert sim.view(sim.call("counter")) == [1]
    sim.collect()
    assert sim.view(sim.call("counter")) == [2]
    with pytest.raises(NameNotFound):
        sim.get("i")


def test_lazy_arguments_are_not_evaluated_unless_used(sim):
    calls = []

    def expensive(frame):
        calls.append(1)
        return frame.sim.c(42)

    ignore = sim.function(["x"], lambda frame: None)
    sim.call(ignore, sim.delay(expensive))
    assert calls == []

    twice = sim.function(["x"], lambda frame: (frame.get("x"), frame.get("x"))[1])
    assert sim.view(sim.call(twice, sim.delay(expensive))) == [42]
    assert calls == [1]


def test_errors_in_unused_arguments_never_surface(sim):
    def boom(frame):
        raise RmemError("evaluated")

    f = sim.function(["x"], lambda frame: frame.sim.c(10))
    assert sim.view(sim.call(f, sim.delay(boom))) == [10]
    g = sim.function(["x"], lambda frame: frame.get("x"))
    with pytest.raises(RmemError, match="evaluated"):
        sim.call(g, sim.delay(boom))


def test_defaults_evaluate_in_the_call_frame(sim):
    f = sim.function(
        {"x": None, "y": lambda frame: frame.sim.c(frame.view("x")[0] * 2)},
        lambda frame: frame.get("y"),
    )
    assert sim.view(sim.call(f, 3)) == [6]
    assert sim.view(sim.call(f, 3, y=1)) == [1]


def test_default_can_use_later_local_binding(sim):
    def body(frame):
        frame.bind("y", 5)
        return frame.get("x")

    f = sim.function({"x": lambda frame: frame.get("y")}, body)
    assert sim.view(sim.call(f)) == [5]


def test_recursive_default(sim):
    f = sim.function({"x": lambda frame: frame.get("x")}, lambda frame: frame.get("x"))
    with pytest.raises(RmemError, match="recursive"):
        sim.call(f)


def test_missing_argument(sim):
    f = sim.function(["x"], lambda frame: frame.get("x"))
    with pytest.raises(MissingArgument):
        sim.call(f)
    assert sim.frames == []


def test_missing_predicate(sim):
    f = sim.function(["x"], lambda frame: frame.sim.c(frame.missing("x")))
    assert sim.view(sim.call(f)) == [True]
    assert sim.view(sim.call(f, 1)) == [False]


def test_missing_is_true_when_a_default_is_used(sim):
    def body(frame):
        before = frame.missing("x")
        frame.get("x")
        return frame.sim.c(before, frame.missing("x"))

    f = sim.function({"x": lambda frame: frame.sim.c(10)}, body)
    assert sim.view(sim.call(f)) == [True, True]
    assert sim.view(sim.call(f, 3)) == [False, False]
    assert sim.view(sim.call(f, x=sim.delay(lambda frame: frame.sim.c(1)))) == [False, False]


def test_dots(sim):
    f = sim.function(["first", "..."], lambda frame: frame.sim.new_list(*frame.dots()))
    result = sim.call(f, 1, 2, 3, extra=4)
    assert [sim.view(i) for i in sim.view(result)] == [[2], [3], [4]]


def test_named_arguments(sim):
    f = sim.function(["alpha", "beta"], lambda frame: frame.sim.c(frame.view("alpha")[0], frame.view("beta")[0]))
    assert sim.view(sim.call(f, 1, 2)) == [1, 2]
    assert sim.view(sim.call(f, beta=1, alpha=2)) == [2, 1]
    assert sim.view(sim.call(f, 5, b=6)) == [5, 6]


def test_unused_argument(sim):
    f = sim.function(["x"], lambda frame: None)
    with pytest.raises(ArgumentError, match="unused argument"):
        sim.call(f, 1, 2)
    with pytest.raises(ArgumentError):
        sim.call(f, y=1)
    assert sim.frames == []


def test_not_a_function(sim):
    sim.bind("x", sim.c(1))
    with pytest.raises(NotAFunction):
        sim.call("x")


def test_null_result(sim):
    assert sim.call(sim.function([], lambda frame: None)) == sim.null


def test_closure_str(sim):
    f = sim.function({"x": None, "y": lambda frame: None}, lambda frame: None, name="f")
    assert str(sim.store.read(f)) == "function(x, y = <default>) <f>"


@pytest.mark.parametrize(
    "formals,positional,named,expected,dots",
    [
        (["x", "y"], ["a", "b"], {}, {"x": "a", "y": "b"}, []),
        (["x", "y"], ["a"], {"x": "b"}, {"x": "b", "y": "a"}, []),
        (["alpha", "beta"], [1], {"b": 2}, {"alpha": 1, "beta": 2}, []),
        (["x", "...", "na.rm"], [1, 2, 3], {"na.rm": True, "na": 5},
         {"x": 1, "na.rm": True}, [2, 3, 5]),
        (["...", "verbose"], [], {"verb": 1}, {}, [1]),
        (["x", "y"], [], {}, {}, []),
    ],
)
def test_match_arguments(formals, positional, named, expected, dots):
    matched, collected = match_arguments(formals, positional, named)
    assert matched == expected
    assert collected == dots


def test_ambiguous_partial_match():
    with pytest.raises(ArgumentError, match="multiple"):
        match_arguments(["bar", "baz"], [], {"ba": 1})


def test_exact_match_beats_partial():
    matched, _ = match_arguments(["f", "foo"], [], {"f": 1, "fo": 2})
    assert matched == {"f": 1, "foo": 2}
