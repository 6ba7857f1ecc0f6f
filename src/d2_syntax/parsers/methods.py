"""Method declarations: ``name(arguments)`` with an optional ``: (returns)``.

An argument list is a comma-separated run of segments, each either a bare
``name`` or ``name type``. Three shapes are accepted:

    (a int)                 one typed argument
    (a int, b string)       every name carries its own type
    (a, b int, c, d bool)   bulk typing: bare names take the next segment's type

A list without any type at all, such as ``(err)``, is a list of untyped names.
"""

from __future__ import annotations

import re

from d2_syntax.errors import MalformedMethodSignatureError, UnexpectedTokenError
from d2_syntax.ir.tree import Argument, Identifier, MethodDeclaration
from d2_syntax.parsers.stream import TokenStream
from d2_syntax.types import LexMode, Token, TokenKind

_ARGUMENT_NAME_RE = re.compile(r"[A-Za-z0-9_]+")


def parse_method_declaration(stream: TokenStream, name: Identifier) -> MethodDeclaration:
    """Parse the signature following an already parsed method name."""
    arguments, close_tok = parse_argument_list(stream)
    returns: tuple[Argument, ...] | None = None
    tok = stream.peek_same_line(LexMode.Declaration)
    if tok is not None and tok.is_punct(":"):
        stream.advance(LexMode.Declaration)
        returns, close_tok = parse_argument_list(stream)
    return MethodDeclaration(
        name=name,
        arguments=arguments,
        returns=returns,
        span=name.span.cover(close_tok.span),
    )


def parse_argument_list(stream: TokenStream) -> tuple[tuple[Argument, ...], Token]:
    """Parse ``( ... )`` and return the arguments with the closing paren token."""
    open_tok = stream.expect(LexMode.Arguments, "(")
    segments: list[list[Token]] = [[]]
    while True:
        tok = stream.peek(LexMode.Arguments)
        if tok.is_punct(")"):
            close_tok = stream.advance(LexMode.Arguments)
            break
        if tok.is_punct(","):
            stream.advance(LexMode.Arguments)
            segments.append([])
            continue
        if tok.kind is TokenKind.Ident:
            segments[-1].append(stream.advance(LexMode.Arguments))
            continue
        raise UnexpectedTokenError(("argument name", "','", "')'"), tok)
    return _resolve_arguments(segments, open_tok), close_tok


def _resolve_arguments(segments: list[list[Token]], open_tok: Token) -> tuple[Argument, ...]:
    if segments == [[]]:
        return ()
    if len(segments) > 1 and not segments[-1]:
        segments = segments[:-1]  # trailing comma

    for seg in segments:
        if not seg:
            raise MalformedMethodSignatureError("empty argument in argument list", open_tok.span)
        if len(seg) > 2:
            raise MalformedMethodSignatureError(
                f"expected 'name type', found {' '.join(t.text for t in seg)!r}",
                seg[2].span,
            )
        if not _ARGUMENT_NAME_RE.fullmatch(seg[0].text):
            raise MalformedMethodSignatureError(f"invalid argument name {seg[0].text!r}", seg[0].span)

    if all(len(seg) == 1 for seg in segments):
        return tuple(Argument(name=seg[0].text, span=seg[0].span) for seg in segments)

    result: list[Argument] = []
    pending: list[Token] = []
    for seg in segments:
        if len(seg) == 1:
            pending.append(seg[0])
            continue
        name_tok, type_tok = seg
        for bare in pending:
            result.append(Argument(name=bare.text, type=type_tok.text, span=bare.span))
        pending = []
        result.append(Argument(name=name_tok.text, type=type_tok.text, span=name_tok.span.cover(type_tok.span)))
    if pending:
        names = ", ".join(t.text for t in pending)
        raise MalformedMethodSignatureError(f"no type given for argument(s) {names}", pending[0].span)
    return tuple(result)
