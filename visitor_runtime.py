"""Runtime support for generated visitor modules.

Generated visitors import their node protocol and failure types from here,
so callers can catch one exception family regardless of grammar.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NodeHandle(Protocol):
    """The slice of a parser node the generated dispatch relies on.

    py-tree-sitter's Node satisfies this protocol as-is. Field and child
    accessors are used by visitor implementations, never by dispatch.
    Anonymous token nodes (is_named false) are never dispatch targets, even
    when a named kind shares their type string.
    """

    @property
    def type(self) -> str: ...

    @property
    def start_byte(self) -> int: ...

    @property
    def end_byte(self) -> int: ...

    @property
    def is_named(self) -> bool: ...

def node_span(node: NodeHandle) -> tuple[int, int]:
    return (node.start_byte, node.end_byte)


class VisitError(Exception):
    """Base class for failures raised while dispatching a visitor."""


class NotImplementedVisit(VisitError, NotImplementedError):
    """Dispatch reached a node kind whose visit method was never overridden."""

    def __init__(self, kind: str, span: tuple[int, int]):
        super().__init__(
            f"visit method for node kind {kind!r} is not implemented "
            f"(bytes {span[0]}..{span[1]})"
        )
        self.kind = kind
        self.span = span


class UnknownNodeKind(VisitError, LookupError):
    """Dispatch met a node kind absent from the schema the visitor was built from."""

    def __init__(self, kind: str):
        super().__init__(
            f"unknown node kind: {kind!r} (visitor was generated from a "
            "different node-types schema)"
        )
        self.kind = kind
