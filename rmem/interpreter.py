"""Line-oriented host for the simulator.

Reads one command per line, runs it against a single Simulator so that
bindings persist between commands, and returns what to print: identities as
address labels, sizes in bytes, copy notifications in tracemem's format, and
R-style values for `show`.
"""

from __future__ import annotations

import logging
from typing import Optional

from rmem.config import SimulatorConfig
from rmem.debug_utils.pprint import format_scalar, pprint_value
from rmem.errors import RmemError, RmemSyntaxError
from rmem.memory.vectors import vector
from rmem.reader.commands import Command, parse_command
from rmem.simulator import Simulator
from rmem.types.value import ValueId, ValueKind

logger = logging.getLogger(__name__)

HELP = """\
bind NAME EXPR      NAME <- EXPR
alias NEW OLD       NEW <- OLD (no copy)
mutate NAME I EXPR  NAME[[I]] <- EXPR (1-based), or NAME$field <- EXPR
env NAME            NAME <- new.env()
rm NAME             remove a binding
gc                  run the collector
size NAME...        combined size of the named values
trace NAME          report copies of NAME (tracemem)
untrace NAME        stop reporting copies
refs NAME           reference count: 0, 1 or many
show NAME           print the value
mem                 bytes in use
quit                leave"""

# Precedence when combining scalars in c()
_KIND_ORDER = [ValueKind.LOGICAL, ValueKind.INTEGER, ValueKind.DOUBLE, ValueKind.CHARACTER]


class Repl:
    """
    A command interpreter over one Simulator.
    Copy notifications raised while a command runs are printed before its result.
    """
    def __init__(self, sim: Optional[Simulator] = None):
        self.sim = sim if sim is not None else Simulator()
        self._notices: list[str] = []
        self.done = False

    def _notify_copy(self, old: ValueId, new: ValueId) -> None:
        self._notices.append(f"tracemem[{self.sim.trace_id(old)[1:-1]} -> {self.sim.trace_id(new)[1:-1]}]:")

    # --- expressions ---
    def evaluate(self, node: tuple) -> ValueId:
        """Evaluate an expression node; the result is protected until the
        enclosing command finishes."""
        sim = self.sim
        tag = node[0]
        if tag == "double":
            id_ = sim.c(node[1])
        elif tag == "integer":
            id_ = sim.integer(node[1])
        elif tag == "logical":
            id_ = vector(sim.store, ValueKind.LOGICAL, [node[1]])
        elif tag == "character":
            id_ = sim.character(node[1])
        elif tag == "null":
            id_ = sim.null
        elif tag == "range":
            id_ = sim.seq(node[1], node[2])
        elif tag == "name":
            id_ = sim.get(node[1])
        elif tag == "call":
            id_ = self._evaluate_call(node[1], node[2])
        else:
            raise RmemSyntaxError(f"cannot evaluate {node!r}")
        return sim.store.protect(id_)

    def _evaluate_call(self, fname: str, args: list[tuple]) -> ValueId:
        sim = self.sim
        if fname == "list":
            return sim.new_list(*[self.evaluate(a) for a in args])
        if fname == "env":
            if args:
                raise RmemSyntaxError("env() takes no arguments")
            return sim.new_env()
        if fname == "rep":
            if len(args) != 2 or args[1][0] not in ("double", "integer"):
                raise RmemSyntaxError("usage: rep(x, times)")
            return sim.rep(self.evaluate(args[0]), int(args[1][1]))
        return self._combine([self.evaluate(a) for a in args])

    def _combine(self, ids: list[ValueId]) -> ValueId:
        """c(): concatenate atomic vectors, coercing to the highest type."""
        sim = self.sim
        kinds, scalars = [], []
        for id_ in ids:
            kind = sim.store.kind(id_)
            if kind is ValueKind.NULL:
                continue
            if not kind.is_atomic:
                raise RmemError(f"c() of a {kind.value} is not supported")
            kinds.append(kind)
            scalars.extend((kind, s) for s in sim.view(id_))
        if not kinds:
            return sim.null
        target = max(kinds, key=_KIND_ORDER.index)
        converted = []
        for kind, s in scalars:
            if s is None or kind is target:
                converted.append(s)
            elif target is ValueKind.CHARACTER:
                converted.append(format_scalar(kind, s))
            elif target is ValueKind.DOUBLE:
                converted.append(float(s))
            else:
                converted.append(int(s))
        return vector(sim.store, target, converted)

    # --- commands ---
    def execute(self, line: str) -> str:
        """Run one command line and return the text to print."""
        self._notices.clear()
        try:
            command = parse_command(line)
            if command is None:
                return ""
            with self.sim.store.protected():
                result = self._run(command)
        except RmemError as e:
            result = f"Error: {e}"
        return "\n".join([*self._notices, result] if result else self._notices)

    def _run(self, command: Command) -> str:
        sim = self.sim
        verb, names = command.verb, command.names
        if verb == "bind":
            id_ = sim.bind(names[0], self.evaluate(command.expr))
            return f"{names[0]} -> {sim.trace_id(id_)}"
        if verb == "alias":
            id_ = sim.alias(names[0], names[1])
            return f"{names[0]} -> {sim.trace_id(id_)}"
        if verb == "mutate":
            new = self.evaluate(command.expr)
            target = sim.store.get(sim.get(names[0])).kind
            if target.is_atomic:
                new = self._scalar_for(new, target)
            id_ = sim.mutate(names[0], command.path, new)
            return f"{names[0]} -> {sim.trace_id(id_)}"
        if verb == "env":
            id_ = sim.bind(names[0], sim.new_env())
            return f"{names[0]} -> {sim.trace_id(id_)}"
        if verb == "rm":
            sim.remove(names[0])
            return ""
        if verb == "gc":
            reclaimed = sim.collect()
            return f"reclaimed {reclaimed} value{'s' if reclaimed != 1 else ''}, {sim.mem_used()} B in use"
        if verb == "size":
            return f"{sim.size_of(*[sim.get(n) for n in names])} B"
        if verb == "trace":
            return sim.on_copy(sim.get(names[0]), self._notify_copy)
        if verb == "untrace":
            sim.untrace(sim.get(names[0]))
            return ""
        if verb == "refs":
            return str(sim.refs(sim.get(names[0])))
        if verb == "show":
            return pprint_value(sim, sim.get(names[0]))
        if verb == "mem":
            return f"{sim.mem_used()} B"
        if verb == "help":
            return HELP
        if verb == "quit":
            self.done = True
            return ""
        raise RmemSyntaxError(f"unknown command {verb!r}")

    def _scalar_for(self, id_: ValueId, target: ValueKind):
        """The single element an atomic subassignment stores."""
        value = self.sim.store.get(id_)
        if not value.kind.is_atomic or len(value.payload) != 1:
            raise RmemError("replacement has length other than one")
        scalar = self.sim.view(id_)[0]
        # Literals are doubles; whole ones fit integer vectors
        if target is ValueKind.INTEGER and isinstance(scalar, float) and scalar.is_integer():
            return int(scalar)
        return scalar


def main(config: Optional[SimulatorConfig] = None) -> None:
    config = config if config is not None else SimulatorConfig.from_env()
    logging.basicConfig(level=config.log_level)
    repl = Repl(Simulator(config))
    logger.info("rmem host started (gc trigger %d bytes)", config.gc_trigger)
    while not repl.done:
        try:
            line = input("> ")
        except EOFError:
            break
        output = repl.execute(line)
        if output:
            print(output)
    repl.sim.close()


if __name__ == "__main__":
    main()
