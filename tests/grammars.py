"""Hand-written parsers for the test grammars.

They build nodes shaped like py-tree-sitter's Node (type, byte range,
children, field accessors), which is all a generated visitor touches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass
class Node:
    type: str
    start_byte: int
    end_byte: int
    source: bytes = field(repr=False)
    is_named: bool = True
    children: list[Node] = field(default_factory=list)
    # child index -> field name
    field_names: dict[int, str] = field(default_factory=dict)

    @property
    def text(self) -> bytes:
        return self.source[self.start_byte : self.end_byte]

    @property
    def named_children(self) -> list[Node]:
        return [child for child in self.children if child.is_named]

    def child_by_field_name(self, name: str) -> Node | None:
        for index, child in enumerate(self.children):
            if self.field_names.get(index) == name:
                return child
        return None


# ===--- Arithmetic grammar ---=== #

_ARITH_TOKEN_RE = re.compile(
    rb"(?P<number>\d+(?:\.\d*)?)|(?P<op>[-+*/()])|(?P<space>\s+)"
)
_BINARY_OPS = {
    b"+": ("add_expr", 1),
    b"-": ("sub_expr", 1),
    b"*": ("mul_expr", 2),
    b"/": ("div_expr", 2),
}


class _ArithmeticParser:
    def __init__(self, source: bytes):
        self.source = source
        self.tokens: list[tuple[str, int, int]] = []
        self.pos = 0

        offset = 0
        while offset < len(source):
            match = _ARITH_TOKEN_RE.match(source, offset)
            if match is None:
                raise SyntaxError(f"unexpected byte at offset {offset}")
            if match.lastgroup != "space":
                self.tokens.append((match.lastgroup, match.start(), match.end()))
            offset = match.end()

    def _peek_text(self) -> bytes | None:
        if self.pos >= len(self.tokens):
            return None
        _, start, end = self.tokens[self.pos]
        return self.source[start:end]

    def _token_node(self) -> Node:
        _, start, end = self.tokens[self.pos]
        self.pos += 1
        return Node(
            self.source[start:end].decode(), start, end, self.source, is_named=False
        )

    def parse(self) -> Node:
        expr = self.expr(1)
        if self.pos != len(self.tokens):
            raise SyntaxError(f"trailing input at token {self.pos}")
        return Node("root", expr.start_byte, expr.end_byte, self.source, children=[expr])

    def expr(self, min_prec: int) -> Node:
        lhs = self.primary()
        while True:
            op = self._peek_text()
            if op not in _BINARY_OPS or _BINARY_OPS[op][1] < min_prec:
                return lhs
            kind, prec = _BINARY_OPS[op]
            op_node = self._token_node()
            rhs = self.expr(prec + 1)
            lhs = Node(
                kind,
                lhs.start_byte,
                rhs.end_byte,
                self.source,
                children=[lhs, op_node, rhs],
                field_names={0: "lhs", 2: "rhs"},
            )

    def primary(self) -> Node:
        if self.pos >= len(self.tokens):
            raise SyntaxError("unexpected end of input")
        group, start, end = self.tokens[self.pos]
        if group == "number":
            self.pos += 1
            return Node("number", start, end, self.source)
        if self._peek_text() == b"(":
            open_node = self._token_node()
            body = self.expr(1)
            if self._peek_text() != b")":
                raise SyntaxError("expected ')'")
            close_node = self._token_node()
            return Node(
                "paren_expr",
                open_node.start_byte,
                close_node.end_byte,
                self.source,
                children=[open_node, body, close_node],
                field_names={1: "body"},
            )
        raise SyntaxError(f"unexpected token at offset {start}")


def parse_arithmetic(source: bytes) -> Node:
    return _ArithmeticParser(source).parse()


# ===--- Fizz/buzz token-sequence grammar ---=== #

_WORD_RE = re.compile(rb"\S+")


def parse_fizzbuzz(source: bytes) -> Node:
    children = []
    for match in _WORD_RE.finditer(source):
        word = match.group().decode()
        if word not in ("fizz", "buzz"):
            raise SyntaxError(f"unexpected word {word!r} at offset {match.start()}")
        children.append(Node(word, match.start(), match.end(), source))
    return Node("source_file", 0, len(source), source, children=children)
