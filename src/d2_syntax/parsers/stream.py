"""One-token lookahead over the tokenizer, for the recursive-descent parser."""

from __future__ import annotations

from d2_syntax.errors import UnexpectedTokenError
from d2_syntax.parsers.tokenizer import Tokenizer
from d2_syntax.types import LexMode, Token, TokenKind

_COMMENT_KINDS = (TokenKind.Comment, TokenKind.BlockComment)


class TokenStream:
    """Pulls tokens on demand in the mode the parser asks for.

    Comments are trivia to the grammar: they are skipped here and collected in
    ``comments`` for the parser to place in the enclosing scope. A lookahead
    lexed in one mode is re-lexed from its start offset when asked for in
    another.
    """

    def __init__(self, tokenizer: Tokenizer) -> None:
        self.tokenizer = tokenizer
        self.comments: list[Token] = []
        self._lookahead: Token | None = None
        self._mode: LexMode | None = None
        self._line_break = False

    def peek(self, mode: LexMode) -> Token:
        if self._lookahead is not None:
            if self._mode is mode:
                return self._lookahead
            self.tokenizer.reset(self._lookahead.span.start)
            self._lookahead = None
        while True:
            tok = self.tokenizer.next_token(mode)
            if tok.kind not in _COMMENT_KINDS:
                break
            self.comments.append(tok)
            if tok.kind is TokenKind.Comment and tok.text.endswith(("\n", "\r")):
                self._line_break = True
        self._lookahead = tok
        self._mode = mode
        return tok

    def peek_same_line(self, mode: LexMode) -> Token | None:
        """Peek, or return None when a line comment ended the line first."""
        tok = self.peek(mode)
        return None if self._line_break else tok

    def advance(self, mode: LexMode) -> Token:
        tok = self.peek(mode)
        if tok.kind is not TokenKind.Eof:
            self._lookahead = None
            self._line_break = False
        return tok

    def expect(self, mode: LexMode, punct: str) -> Token:
        tok = self.peek(mode)
        if not tok.is_punct(punct):
            raise UnexpectedTokenError((repr(punct),), tok)
        return self.advance(mode)

    @property
    def line_break(self) -> bool:
        """True when a line comment ended the line before the current lookahead."""
        return self._line_break

    def take_comments(self) -> list[Token]:
        taken, self.comments = self.comments, []
        return taken
