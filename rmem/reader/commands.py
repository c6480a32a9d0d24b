"""
  Command reader for the rmem host.

- One command per line: a verb followed by its operands
- Expressions cover just enough R to build values:

    - numbers      -> ("double", 1.0); 1L -> ("integer", 1)
    - TRUE/FALSE   -> ("logical", True/False); NA -> ("logical", None)
    - "text"       -> ("character", "text")
    - a:b          -> ("range", a, b)
    - NULL         -> ("null",)
    - f(x, y)      -> ("call", "f", [x, y])   for c, list, rep, env
    - name         -> ("name", "name")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

from rmem.errors import RmemSyntaxError


TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<comment>#.*)"  # comment to end of line
    r'|(?P<string>"(?:\\.|[^\\"])*"|\'(?:\\.|[^\\\'])*\')'  # quoted strings
    r"|(?P<number>-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?L?)"  # 1, 2.5, 3L, 1e3
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<comma>,)"
    r"|(?P<colon>:)"
    r"|(?P<dollar>\$)"
    r"|(?P<name>[A-Za-z._][A-Za-z0-9._]*)"
    r")"
)

CONSTANTS = {
    "TRUE": ("logical", True),
    "FALSE": ("logical", False),
    "NA": ("logical", None),
    "NULL": ("null",),
}

FUNCTIONS = {"c", "list", "rep", "env"}

# verb -> operand shape
COMMANDS = {
    "bind": "name expr",
    "alias": "name name",
    "mutate": "name path expr",
    "env": "name",
    "rm": "name",
    "gc": "",
    "size": "names",
    "trace": "name",
    "untrace": "name",
    "refs": "name",
    "show": "name",
    "mem": "",
    "help": "",
    "quit": "",
}


@dataclass
class Command:
    verb: str
    names: list[str] = field(default_factory=list)
    path: Optional[int | str] = None
    expr: Optional[tuple] = None


def lex(source: str) -> Iterator[tuple[str, str]]:
    """Token generator: yields (token_type, token_value) tuples."""
    pos = 0
    n = len(source)
    while pos < n:
        if source[pos].isspace():
            pos += 1
            continue
        match = TOKEN_RE.match(source, pos)
        if not match or match.end() == pos:
            raise RmemSyntaxError(f"unexpected character at {pos}: {source[pos]!r}")
        kind = match.lastgroup
        if kind != "comment":
            yield kind, match.group(kind)
        pos = match.end()


class TokenStream:
    def __init__(self, tokens: Iterator[tuple[str, str]]):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self) -> Optional[tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> tuple[str, str]:
        token = self.peek()
        if token is None:
            raise RmemSyntaxError("unexpected end of input")
        self.pos += 1
        return token

    def expect(self, kind: str) -> str:
        token_kind, value = self.next()
        if token_kind != kind:
            raise RmemSyntaxError(f"expected {kind}, got {value!r}")
        return value

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    # --- expressions ---
    def parse_expr(self) -> tuple:
        left = self.parse_atom()
        token = self.peek()
        if token is not None and token[0] == "colon":
            self.next()
            right = self.parse_atom()
            return ("range", _range_bound(left), _range_bound(right))
        return left

    def parse_atom(self) -> tuple:
        kind, value = self.next()
        if kind == "number":
            if value.endswith("L"):
                return ("integer", int(float(value[:-1])))
            return ("double", float(value))
        if kind == "string":
            return ("character", _unescape(value[1:-1]))
        if kind == "name":
            if value in CONSTANTS:
                return CONSTANTS[value]
            token = self.peek()
            if token is not None and token[0] == "lparen":
                return self.parse_call(value)
            return ("name", value)
        raise RmemSyntaxError(f"unexpected {value!r}")

    def parse_call(self, fname: str) -> tuple:
        if fname not in FUNCTIONS:
            raise RmemSyntaxError(f"could not find function \"{fname}\"")
        self.expect("lparen")
        args: list[tuple] = []
        token = self.peek()
        if token is not None and token[0] == "rparen":
            self.next()
            return ("call", fname, args)
        while True:
            args.append(self.parse_expr())
            kind, value = self.next()
            if kind == "rparen":
                return ("call", fname, args)
            if kind != "comma":
                raise RmemSyntaxError(f"expected ',' or ')', got {value!r}")

    # --- operands ---
    def parse_path(self) -> int | str:
        kind, value = self.next()
        if kind == "dollar":
            return self.expect("name")
        if kind == "number" and re.fullmatch(r"\d+L?", value):
            index = int(value.rstrip("L"))
            if index < 1:
                raise RmemSyntaxError("subscripts start at 1")
            # 1-based on the command line, 0-based in the engine
            return index - 1
        raise RmemSyntaxError(f"expected an index or $name, got {value!r}")


def _range_bound(node: tuple) -> int:
    if node[0] in ("double", "integer") and float(node[1]).is_integer():
        return int(node[1])
    raise RmemSyntaxError("range bounds must be whole numbers")


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", lambda m: {"n": "\n", "t": "\t"}.get(m.group(1), m.group(1)), text)


def parse_command(line: str) -> Optional[Command]:
    """Parse one command line; returns None for blank lines and comments."""
    stream = TokenStream(lex(line))
    if stream.at_end():
        return None
    verb = stream.expect("name")
    if verb == "q":
        verb = "quit"
    if verb not in COMMANDS:
        raise RmemSyntaxError(f"unknown command {verb!r}")

    command = Command(verb)
    for operand in COMMANDS[verb].split():
        if operand == "name":
            command.names.append(stream.expect("name"))
        elif operand == "names":
            command.names.append(stream.expect("name"))
            while not stream.at_end():
                command.names.append(stream.expect("name"))
        elif operand == "path":
            command.path = stream.parse_path()
        elif operand == "expr":
            command.expr = stream.parse_expr()
    if not stream.at_end():
        raise RmemSyntaxError(f"unexpected {stream.next()[1]!r} after {verb}")
    return command
