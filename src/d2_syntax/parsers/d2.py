"""D2 parser: hand-rolled recursive descent.

Parses D2 diagram source into the syntax tree types from ir.tree:

    source_file = (declaration / import / method / comment / eol)*
    declaration = (expression / connection_reference) (":" (import / label? block?))? eol?
    expression  = identifier (connection identifier)*
    identifier  = (ident / quoted) ("." (ident / quoted))*
    connection_reference = "(" expression ")" "[" digits "]" ("." identifier)*
    block       = "{" (declaration / import / method / comment / eol)* "}"
    method      = identifier "(" arguments ")" (":" "(" arguments ")")?

Labels live in labels.py, method signatures in methods.py. Blocks do not recurse:
an open block is a _Frame on the parser's stack until its closing brace.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from d2_syntax.config import ParseConfig
from d2_syntax.errors import (
    MalformedConnectionReferenceError,
    NestingTooDeepError,
    ParseError,
    UnbalancedBlockError,
    UnexpectedTokenError,
)
from d2_syntax.ir.tree import (
    Block,
    BlockComment,
    BlockItem,
    Comment,
    Connection,
    ConnectionReference,
    Declaration,
    Expression,
    Identifier,
    Import,
    Label,
    SourceFile,
    Target,
)
from d2_syntax.parsers.labels import parse_label
from d2_syntax.parsers.methods import parse_method_declaration
from d2_syntax.parsers.stream import TokenStream
from d2_syntax.parsers.tokenizer import Tokenizer, unquote
from d2_syntax.types import Direction, LexMode, Span, Token, TokenKind

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"[0-9]+")

_DECL = LexMode.Declaration


@dataclass
class _Frame:
    """An open scope: the source file, or a block still waiting for its '}'."""

    children: list[BlockItem] = field(default_factory=list)
    open_brace: Token | None = None
    target: Target | None = None
    label: Label | None = None


class _Parser:
    """Parser state for a single parse of one source text."""

    def __init__(self, src: str, config: ParseConfig) -> None:
        self.src = src
        self.config = config
        self.tokenizer = Tokenizer(src)
        self.stream = TokenStream(self.tokenizer)
        self.frames: list[_Frame] = []

    # ── Scopes ────────────────────────────────────────────────────────────────

    def parse_source_file(self) -> SourceFile:
        """Parse scope items until Eof.

        Blocks are opened and closed on ``self.frames`` instead of the call
        stack, so only ParseConfig.max_depth bounds their nesting.
        """
        self.frames.append(_Frame())
        while True:
            frame = self.frames[-1]
            tok = self.stream.peek(_DECL)
            self._flush_comments(frame)
            if tok.kind is TokenKind.Eol:
                self.stream.advance(_DECL)
                continue
            if tok.kind is TokenKind.Eof:
                if frame.open_brace is not None:
                    raise UnbalancedBlockError(frame.open_brace.span)
                break
            if tok.is_punct("}"):
                if frame.open_brace is None:
                    raise UnexpectedTokenError(("declaration", "import"), tok)
                self._close_block()
                continue
            item = self.parse_item()
            if item is not None:
                frame.children.append(item)
        root = self.frames.pop()
        return SourceFile(children=tuple(root.children), span=self.tokenizer.span(0, len(self.src)))

    def parse_item(self) -> BlockItem | None:
        """Parse one scope item; None when it opened a block still being filled."""
        tok = self.stream.peek(_DECL)
        if tok.kind is TokenKind.ImportRef:
            node = self._import(self.stream.advance(_DECL))
            self._finish_statement(("end of line",))
            return node
        if tok.is_punct("("):
            return self.parse_declaration()

        first = self.parse_identifier()
        if _is_punct(self.stream.peek_same_line(_DECL), "("):
            method = parse_method_declaration(self.stream, first)
            self._finish_statement(("end of line",))
            return method
        return self.parse_declaration(first)

    def _open_block(self, target: Target, label: Label | None) -> None:
        open_tok = self.stream.expect(LexMode.Label, "{")
        if len(self.frames) > self.config.max_depth:
            raise NestingTooDeepError(f"blocks nested deeper than {self.config.max_depth} levels", open_tok.span)
        self.frames.append(_Frame(open_brace=open_tok, target=target, label=label))

    def _close_block(self) -> None:
        close_tok = self.stream.advance(_DECL)
        frame = self.frames.pop()
        block = Block(children=tuple(frame.children), span=frame.open_brace.span.cover(close_tok.span))
        self.frames[-1].children.append(
            Declaration(
                target=frame.target,
                has_colon=True,
                label=frame.label,
                block=block,
                span=frame.target.span.cover(block.span),
            )
        )
        self._finish_statement(("end of line",), after_block=True)

    # ── Declarations ──────────────────────────────────────────────────────────

    def parse_declaration(self, first: Identifier | None = None) -> Declaration | None:
        if first is None and self.stream.peek(_DECL).is_punct("("):
            target: Target = self.parse_connection_reference()
        else:
            target = self.parse_expression(first)

        has_colon = False
        label: Label | None = None
        imported: Import | None = None
        end = target.span
        expected: tuple[str, ...] = ("connection", "':'", "end of line")

        if _is_punct(self.stream.peek_same_line(_DECL), ":"):
            end = self.stream.advance(_DECL).span
            has_colon = True
            tok = self.stream.peek_same_line(LexMode.Label)
            if _is_kind(tok, TokenKind.ImportRef):
                imported = self._import(self.stream.advance(LexMode.Label))
                end = imported.span
                expected = ("end of line",)
            elif tok is not None:
                label = parse_label(self.stream)
                expected = ("'{'", "end of line") if label else ("label", "'{'", "end of line")
                if label is not None:
                    end = label.span
                if _is_punct(self.stream.peek_same_line(LexMode.Label), "{"):
                    self._open_block(target, label)
                    return None

        self._finish_statement(expected)
        return Declaration(
            target=target,
            has_colon=has_colon,
            label=label,
            imported=imported,
            span=target.span.cover(end),
        )

    def _finish_statement(self, expected: tuple[str, ...], after_block: bool = False) -> None:
        tok = self.stream.peek(_DECL)
        if tok.kind is TokenKind.Eol:
            self.stream.advance(_DECL)
            return
        if tok.kind is TokenKind.Eof or tok.is_punct("}") or self.stream.line_break or after_block:
            return
        raise UnexpectedTokenError(expected, tok)

    # ── Expressions ───────────────────────────────────────────────────────────

    def parse_expression(self, first: Identifier | None = None) -> Expression:
        identifiers = [first if first is not None else self.parse_identifier()]
        connections: list[Connection] = []
        while _is_kind(self.stream.peek_same_line(_DECL), TokenKind.ConnectionOp):
            tok = self.stream.advance(_DECL)
            connections.append(Connection(op=tok.text, direction=Direction.from_op(tok.text), span=tok.span))
            identifiers.append(self.parse_identifier())
        return Expression(
            identifiers=tuple(identifiers),
            connections=tuple(connections),
            span=identifiers[0].span.cover(identifiers[-1].span),
        )

    def parse_identifier(self) -> Identifier:
        head = self._identifier_part()
        fields = self._parse_fields()
        if not fields:
            return head
        return Identifier(name=head.name, quote=head.quote, fields=fields, span=head.span.cover(fields[-1].span))

    def _identifier_part(self) -> Identifier:
        tok = self.stream.peek(_DECL)
        if tok.kind is TokenKind.Ident:
            self.stream.advance(_DECL)
            return Identifier(name=tok.text, span=tok.span)
        if tok.kind is TokenKind.QuotedString:
            self.stream.advance(_DECL)
            return Identifier(name=unquote(tok.text), quote=tok.text[0], span=tok.span)
        raise UnexpectedTokenError(("identifier", "quoted string"), tok)

    def _parse_fields(self) -> tuple[Identifier, ...]:
        fields: list[Identifier] = []
        while _is_punct(self.stream.peek_same_line(_DECL), "."):
            self.stream.advance(_DECL)
            fields.append(self._identifier_part())
        return tuple(fields)

    def parse_connection_reference(self) -> ConnectionReference:
        open_tok = self.stream.expect(_DECL, "(")
        expression = self.parse_expression()
        tok = self.stream.peek(_DECL)
        if not tok.is_punct(")"):
            raise UnexpectedTokenError(("connection", "')'"), tok)
        self.stream.advance(_DECL)

        tok = self.stream.peek(_DECL)
        if not tok.is_punct("["):
            raise MalformedConnectionReferenceError(
                f"expected '[index]' after connection reference, found {tok.describe()}", tok.span
            )
        self.stream.advance(_DECL)
        index_tok = self.stream.peek(_DECL)
        if index_tok.kind is not TokenKind.Ident or not _INDEX_RE.fullmatch(index_tok.text):
            raise MalformedConnectionReferenceError(
                f"connection reference index must be a number, found {index_tok.describe()}", index_tok.span
            )
        self.stream.advance(_DECL)
        close_tok = self.stream.peek(_DECL)
        if not close_tok.is_punct("]"):
            raise MalformedConnectionReferenceError(
                f"expected ']' after connection reference index, found {close_tok.describe()}", close_tok.span
            )
        self.stream.advance(_DECL)

        fields = self._parse_fields()
        end = fields[-1].span if fields else close_tok.span
        return ConnectionReference(
            expression=expression,
            index=int(index_tok.text),
            fields=fields,
            span=open_tok.span.cover(end),
        )

    # ── Trivia & leaves ───────────────────────────────────────────────────────

    def _import(self, tok: Token) -> Import:
        spread = tok.text.startswith("...")
        return Import(path=tok.text[4:] if spread else tok.text[1:], spread=spread, span=tok.span)

    def _flush_comments(self, frame: _Frame) -> None:
        for tok in self.stream.take_comments():
            if not self.config.keep_comments:
                continue
            if tok.kind is TokenKind.Comment:
                frame.children.append(Comment(text=tok.text[1:].rstrip("\r\n"), span=tok.span))
            else:
                frame.children.append(BlockComment(text=tok.text[3:-3], span=tok.span))

    # ── Partial results ───────────────────────────────────────────────────────

    def partial_tree(self) -> SourceFile:
        """Fold the open scopes into a tree of everything completed so far."""
        span = self.tokenizer.span(0, len(self.src))
        if not self.frames:
            return SourceFile(span=span)
        self._flush_comments(self.frames[-1])
        node: Declaration | None = None
        for frame in reversed(self.frames):
            children = list(frame.children)
            if node is not None:
                children.append(node)
            if frame.open_brace is None or frame.target is None:
                return SourceFile(children=tuple(children), span=span)
            block = Block(children=tuple(children), closed=False, span=frame.open_brace.span)
            node = Declaration(
                target=frame.target,
                has_colon=True,
                label=frame.label,
                block=block,
                span=frame.target.span.cover(block.span),
            )
        return SourceFile(span=span)


def _is_punct(tok: Token | None, char: str) -> bool:
    return tok is not None and tok.is_punct(char)


def _is_kind(tok: Token | None, kind: TokenKind) -> bool:
    return tok is not None and tok.kind is kind


def _location(span: Span | None) -> str:
    return f"{span.line}:{span.column}" if span is not None else "?"


class D2Parser:
    """D2 diagram parser."""

    def __init__(self, config: ParseConfig | None = None) -> None:
        self.config = config or ParseConfig()

    def parse(self, src: str) -> SourceFile:
        """Parse src, raising a ParseError (with ``partial`` set) on the first failure."""
        logger.debug("parsing %d characters (max_depth=%d)", len(src), self.config.max_depth)
        parser = _Parser(src, self.config)
        try:
            tree = parser.parse_source_file()
        except ParseError as e:
            e.partial = parser.partial_tree()
            logger.debug("parse failed at %s: %s", _location(e.span), e.message)
            raise
        logger.debug("parsed %d top-level nodes", len(tree.children))
        return tree
