"""d2-syntax: D2 diagram source to a syntax tree."""

from d2_syntax.config import ParseConfig
from d2_syntax.errors import (
    LexError,
    MalformedConnectionReferenceError,
    MalformedMethodSignatureError,
    NestingTooDeepError,
    ParseError,
    UnbalancedBlockError,
    UnexpectedTokenError,
)
from d2_syntax.parsers import ParseResult, parse, parse_partial
from d2_syntax.parsers.tokenizer import Tokenizer, tokenize
from d2_syntax.renderers.d2 import D2Renderer
from d2_syntax.renderers.sexp import SexpRenderer
from d2_syntax.types import Direction, LexMode, LiteralKind, Token, TokenKind


def format_d2(src: str, indent: str = "  ", config: ParseConfig | None = None) -> str:
    """Parse D2 source and print it back in canonical form.

    Args:
        src: D2 source string.
        indent: Indentation used for each block level.
        config: Parse options; None uses the defaults.

    Returns:
        The canonical source text, or an empty string for an empty tree.

    Raises:
        ParseError: If the input cannot be parsed.
    """
    return D2Renderer(indent=indent).render(parse(src, config))


def to_sexp(src: str, config: ParseConfig | None = None) -> str:
    """Parse D2 source and dump the tree as an S-expression."""
    return SexpRenderer().render(parse(src, config))


__all__ = [
    "D2Renderer",
    "Direction",
    "LexError",
    "LexMode",
    "LiteralKind",
    "MalformedConnectionReferenceError",
    "MalformedMethodSignatureError",
    "NestingTooDeepError",
    "ParseConfig",
    "ParseError",
    "ParseResult",
    "SexpRenderer",
    "Token",
    "TokenKind",
    "Tokenizer",
    "UnbalancedBlockError",
    "UnexpectedTokenError",
    "format_d2",
    "parse",
    "parse_partial",
    "to_sexp",
    "tokenize",
]
