"""Syntax tree data structures for D2 source.

The tree is built bottom-up by the parser and never mutated afterwards: every
node is a frozen dataclass and children are held in tuples. Spans are kept out
of equality, so two trees parsed from differently formatted text compare equal
when their structure matches.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import ClassVar, Union

from d2_syntax.types import NO_SPAN, Direction, FenceStyle, LiteralKind, Span


@dataclass(frozen=True)
class Comment:
    node_type: ClassVar[str] = "comment"

    text: str  # without the leading '#' and the line break
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class BlockComment:
    node_type: ClassVar[str] = "block_comment"

    text: str
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Import:
    node_type: ClassVar[str] = "import"

    path: str
    spread: bool = False  # ...@path
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Identifier:
    """A name, optionally quoted, with a flat chain of field accessors."""

    node_type: ClassVar[str] = "identifier"

    name: str
    quote: str = ""  # '"' or "'" when written quoted
    fields: tuple[Identifier, ...] = ()
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    @classmethod
    def chain(cls, *names: str) -> Identifier:
        """Build an unquoted identifier from a dotted path."""
        head, *rest = names
        return cls(name=head, fields=tuple(cls(name=n) for n in rest))

    @property
    def path(self) -> tuple[str, ...]:
        return (self.name, *(f.name for f in self.fields))

    @property
    def is_chain(self) -> bool:
        return bool(self.fields)


@dataclass(frozen=True)
class Connection:
    node_type: ClassVar[str] = "connection"

    op: str
    direction: Direction
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    @classmethod
    def new(cls, op: str) -> Connection:
        return cls(op=op, direction=Direction.from_op(op))


@dataclass(frozen=True)
class Expression:
    """Identifiers joined by connections: a, a -> b, a -> b <- c ..."""

    node_type: ClassVar[str] = "expression"

    identifiers: tuple[Identifier, ...]
    connections: tuple[Connection, ...] = ()
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    @property
    def is_connection(self) -> bool:
        return bool(self.connections)

    def edges(self) -> Iterator[tuple[Identifier, Connection, Identifier]]:
        """Yield (source, connection, target) for each hop of the chain."""
        for i, conn in enumerate(self.connections):
            yield self.identifiers[i], conn, self.identifiers[i + 1]


@dataclass(frozen=True)
class ConnectionReference:
    """(expr)[index] with optional field accessors."""

    node_type: ClassVar[str] = "connection_reference"

    expression: Expression
    index: int
    fields: tuple[Identifier, ...] = ()
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


# ─── Labels ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CodeBlock:
    node_type: ClassVar[str] = "label_codeblock"

    style: FenceStyle
    language: str
    content: str  # verbatim, between the language tag and the closing fence
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Literal:
    node_type: ClassVar[str] = "label"

    kind: LiteralKind
    value: int | float | bool | str
    raw: str
    quoted: bool = False
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    @classmethod
    def text(cls, value: str) -> Literal:
        return cls(kind=LiteralKind.Text, value=value, raw=value)


@dataclass(frozen=True)
class ConstraintList:
    node_type: ClassVar[str] = "label_constraints"

    constraints: tuple[str, ...]
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


# ─── Declarations ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Argument:
    node_type: ClassVar[str] = "argument"

    name: str
    type: str | None = None
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class MethodDeclaration:
    node_type: ClassVar[str] = "method_declaration"

    name: Identifier
    arguments: tuple[Argument, ...] = ()
    returns: tuple[Argument, ...] | None = None
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Block:
    node_type: ClassVar[str] = "block"

    children: tuple[BlockItem, ...] = ()
    closed: bool = True  # False only in partial trees
    span: Span = field(default=NO_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Declaration:
    node_type: ClassVar[str] = "declaration"

    target: Target
    has_colon: bool = False
    label: Label | None = None
    block: Block | None = None
    imported: Import | None = None
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    @property
    def is_connection(self) -> bool:
        return isinstance(self.target, ConnectionReference) or self.target.is_connection


@dataclass(frozen=True)
class SourceFile:
    node_type: ClassVar[str] = "source_file"

    children: tuple[BlockItem, ...] = ()
    span: Span = field(default=NO_SPAN, compare=False, repr=False)

    def declarations(self) -> list[Declaration]:
        return [c for c in self.children if isinstance(c, Declaration)]


Label = Union[CodeBlock, Literal, ConstraintList]
Target = Union[Expression, ConnectionReference]
BlockItem = Union[Declaration, Import, MethodDeclaration, Comment, BlockComment]
Node = Union[
    SourceFile,
    Declaration,
    Block,
    MethodDeclaration,
    Argument,
    Expression,
    ConnectionReference,
    Identifier,
    Connection,
    Import,
    CodeBlock,
    Literal,
    ConstraintList,
    Comment,
    BlockComment,
]

_NODE_CLASSES = (
    SourceFile,
    Declaration,
    Block,
    MethodDeclaration,
    Argument,
    Expression,
    ConnectionReference,
    Identifier,
    Connection,
    Import,
    CodeBlock,
    Literal,
    ConstraintList,
    Comment,
    BlockComment,
)


def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of node in field order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, _NODE_CLASSES):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, _NODE_CLASSES):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal with an explicit stack (no recursion)."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children(current))))
