"""Label sub-grammar: everything that may follow ``name:`` before a block.

    label       = code_block / literal / constraints
    literal     = integer / float / boolean / quoted_string / text
    constraints = "[" (name ";"?)+ "]"

Integer, float and boolean win over free text: the tokenizer only offers them
when they are followed by whitespace, ';', a line break or end of input, and a
token recognised as one is never folded back into text.
"""

from __future__ import annotations

from d2_syntax.errors import UnexpectedTokenError
from d2_syntax.ir.tree import CodeBlock, ConstraintList, Label, Literal
from d2_syntax.parsers.stream import TokenStream
from d2_syntax.parsers.tokenizer import split_code_block, unquote
from d2_syntax.types import LexMode, LiteralKind, Token, TokenKind


def parse_label(stream: TokenStream) -> Label | None:
    """Parse a label at the cursor, or return None when no label starts here."""
    tok = stream.peek(LexMode.Label)
    if tok.kind is TokenKind.CodeBlock:
        return _code_block(stream.advance(LexMode.Label))
    if tok.kind in (TokenKind.Number, TokenKind.Boolean, TokenKind.QuotedString, TokenKind.Text):
        return _literal(stream.advance(LexMode.Label))
    if tok.is_punct("["):
        return parse_constraints(stream)
    return None


def _code_block(tok: Token) -> CodeBlock:
    style, language, content = split_code_block(tok.text, tok.span)
    return CodeBlock(style=style, language=language, content=content, span=tok.span)


def _literal(tok: Token) -> Literal:
    raw = tok.text
    if tok.kind is TokenKind.Number:
        if "." in raw:
            return Literal(LiteralKind.Float, float(raw), raw, span=tok.span)
        return Literal(LiteralKind.Integer, int(raw), raw, span=tok.span)
    if tok.kind is TokenKind.Boolean:
        return Literal(LiteralKind.Boolean, raw == "true", raw, span=tok.span)
    if tok.kind is TokenKind.QuotedString:
        return Literal(LiteralKind.Text, unquote(raw), raw, quoted=True, span=tok.span)
    return Literal(LiteralKind.Text, raw, raw, span=tok.span)


def parse_constraints(stream: TokenStream) -> ConstraintList:
    """Parse ``[c1; c2 c3]``: one or more names, ';' optional between them."""
    open_tok = stream.expect(LexMode.Label, "[")
    names: list[str] = []
    while True:
        tok = stream.peek(LexMode.Constraints)
        if tok.kind is TokenKind.Ident:
            names.append(stream.advance(LexMode.Constraints).text)
            if stream.peek(LexMode.Constraints).is_punct(";"):
                stream.advance(LexMode.Constraints)
            continue
        if tok.is_punct("]") and names:
            break
        expected = ("constraint name", "']'") if names else ("constraint name",)
        raise UnexpectedTokenError(expected, tok)
    close_tok = stream.advance(LexMode.Constraints)
    return ConstraintList(constraints=tuple(names), span=open_tok.span.cover(close_tok.span))
