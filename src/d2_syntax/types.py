"""Shared type definitions for d2-syntax.

Enums and small value types used across the tokenizer, parser, syntax tree
and renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto


class TokenKind(Enum):
    Ident = auto()
    QuotedString = auto()
    Number = auto()
    Boolean = auto()
    ConnectionOp = auto()  # <-> <- -> --
    Punct = auto()  # single character: { } ( ) : . [ ] , ;
    Eol = auto()  # \n \r ;
    Comment = auto()  # # ... \n
    BlockComment = auto()  # """ ... """
    ImportRef = auto()  # @path ...@path
    Text = auto()  # free-form label run
    CodeBlock = auto()  # |lang ...| and the other fences
    Eof = auto()


class LexMode(Enum):
    """Which token classes the tokenizer may produce at the cursor."""

    Declaration = auto()
    Label = auto()
    Arguments = auto()
    Constraints = auto()


class Priority(IntEnum):
    """Recognition priority when several token classes match at one offset."""

    Ident = 0
    Label = 1
    LabelPredefined = 2  # integer, float, boolean
    String = 4
    Punct = 5
    Import = 6
    Fence = 7
    Connection = 9
    Terminator = 10
    Comment = 11


class Direction(Enum):
    Forward = auto()  # ->
    Reverse = auto()  # <-
    Bidirectional = auto()  # <->
    Undirected = auto()  # --

    @classmethod
    def from_op(cls, op: str) -> Direction:
        if op.startswith("<") and op.endswith(">"):
            return cls.Bidirectional
        if op.startswith("<"):
            return cls.Reverse
        if op.endswith(">"):
            return cls.Forward
        return cls.Undirected


class LiteralKind(Enum):
    Integer = auto()
    Float = auto()
    Boolean = auto()
    Text = auto()


class FenceStyle(Enum):
    Backtick = auto()  # |`lang ...`|
    Triple = auto()  # |||lang ...|||
    Double = auto()  # ||lang ...||
    Single = auto()  # |lang ...|

    @property
    def opener(self) -> str:
        return _FENCE_DELIMITERS[self][0]

    @property
    def closer(self) -> str:
        return _FENCE_DELIMITERS[self][1]


_FENCE_DELIMITERS: dict[FenceStyle, tuple[str, str]] = {
    FenceStyle.Backtick: ("|`", "`|"),
    FenceStyle.Triple: ("|||", "|||"),
    FenceStyle.Double: ("||", "||"),
    FenceStyle.Single: ("|", "|"),
}


@dataclass(frozen=True)
class Span:
    """A region of the source: character offsets plus 1-based line/column of start."""

    start: int
    end: int
    line: int = 1
    column: int = 1

    def cover(self, other: Span) -> Span:
        """Span from the start of self to the end of other."""
        return Span(self.start, max(self.end, other.end), self.line, self.column)


NO_SPAN = Span(0, 0)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    span: Span

    def is_punct(self, *chars: str) -> bool:
        return self.kind is TokenKind.Punct and self.text in chars

    def describe(self) -> str:
        """Human-readable form for error messages."""
        if self.kind is TokenKind.Eof:
            return "end of input"
        if self.kind is TokenKind.Eol:
            return "end of line" if self.text != ";" else "';'"
        return repr(self.text)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.span.line}:{self.span.column})"
