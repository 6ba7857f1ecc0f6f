"""Parser entry points: text in, syntax tree (or a structured error) out."""

from __future__ import annotations

from dataclasses import dataclass

from d2_syntax.config import ParseConfig
from d2_syntax.errors import ParseError
from d2_syntax.ir.tree import SourceFile
from d2_syntax.parsers.base import Parser
from d2_syntax.parsers.d2 import D2Parser


@dataclass
class ParseResult:
    """A tree together with the error that stopped the parse, if any.

    On failure the tree holds every node completed before the error; blocks
    still open at that point appear with ``closed=False``.
    """

    tree: SourceFile
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse(src: str, config: ParseConfig | None = None) -> SourceFile:
    """Parse D2 source text into a SourceFile.

    Raises:
        ParseError: a subclass describing the first failure; ``partial`` holds
            the tree built before it.
    """
    parser: Parser = D2Parser(config)
    return parser.parse(src)


def parse_partial(src: str, config: ParseConfig | None = None) -> ParseResult:
    """Parse D2 source text, returning the error as a value instead of raising it."""
    try:
        return ParseResult(tree=parse(src, config))
    except ParseError as e:
        return ParseResult(tree=e.partial or SourceFile(), error=e)
