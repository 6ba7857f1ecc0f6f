"""D2 tokenizer: lazy, restartable, mode driven.

The parser pulls one token at a time and says which LexMode applies at the
cursor, the same way a context-aware lexer only offers the token classes that
are valid at the current point of the grammar. Within a mode, every scanner is
tried at the cursor and the winner is picked by Priority, ties going to the
longest match.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import partial

from d2_syntax.errors import LexError
from d2_syntax.types import FenceStyle, LexMode, Priority, Span, Token, TokenKind

# ─── Patterns ────────────────────────────────────────────────────────────────

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_INLINE_WS_RE = re.compile(r"[^\S\r\n]+")
_ANY_WS_RE = re.compile(r"\s+")

_EOL_RE = re.compile(r"\r\n|\r|\n|;")
_COMMENT_RE = re.compile(r"#[^\r\n]*(?:\r\n|\r|\n)?")
_IMPORT_RE = re.compile(r"(?:\.\.\.)?@\S+")

# Longer/more specific first
_CONNECTION_RE = re.compile(r"<-+>|<-+|-+>|--+")

_IDENT_BASE_RE = re.compile(r"(?:[\w/*+\-]|\\#)+")
_IDENT_SEP_RE = re.compile(r"(?:[^\S\r\n]|[',])+")

_DOUBLE_QUOTED_RE = re.compile(r'"(?:\\"|[^"\\]|\\(?!"))*"')
_SINGLE_QUOTED_RE = re.compile(r"'(?:\\'|[^'\\]|\\(?!'))*'")

_NUMBER_RE = re.compile(r"[-+]?[0-9]+(?:\.[0-9]+)?")
_BOOLEAN_RE = re.compile(r"true|false")
_LABEL_BASE_RE = re.compile(r"(?:\\[#{]|[\w/*+\-()\\:.%&?',])+")

_LANGUAGE_RE = re.compile(r"[ \t]*([A-Za-z0-9]+)")
_FENCE_ORDER = (FenceStyle.Backtick, FenceStyle.Triple, FenceStyle.Double, FenceStyle.Single)

_ARGUMENT_WORD_RE = re.compile(r"[A-Za-z0-9_\[\]]+")
_CONSTRAINT_WORD_RE = re.compile(r"[A-Za-z0-9_]+")

_SKIP_RE: dict[LexMode, re.Pattern[str]] = {
    LexMode.Declaration: _INLINE_WS_RE,
    LexMode.Label: _INLINE_WS_RE,
    LexMode.Arguments: _ANY_WS_RE,
    LexMode.Constraints: _ANY_WS_RE,
}


@dataclass(frozen=True)
class _Match:
    kind: TokenKind
    end: int
    priority: Priority


_Scanner = Callable[[int], "_Match | None"]


class Tokenizer:
    """Cursor over the source text producing one Token per call."""

    def __init__(self, src: str) -> None:
        self.src = src
        self.pos = 0
        self._line_starts = [0] + [m.end() for m in _NEWLINE_RE.finditer(src)]
        self._scanners: dict[LexMode, tuple[_Scanner, ...]] = {
            LexMode.Declaration: (
                self._scan_eol,
                self._scan_comment,
                self._scan_block_comment,
                self._scan_import,
                self._scan_connection,
                partial(self._scan_quoted, quotes="\"'"),
                partial(self._scan_punct, chars="{}():.[]"),
                self._scan_ident,
            ),
            LexMode.Label: (
                self._scan_eol,
                self._scan_comment,
                self._scan_block_comment,
                self._scan_import,
                partial(self._scan_quoted, quotes='"'),
                partial(self._scan_punct, chars="{}["),
                self._scan_code_block,
                self._scan_literal,
                self._scan_text,
            ),
            LexMode.Arguments: (
                self._scan_comment,
                partial(self._scan_punct, chars="(),:"),
                partial(self._scan_word, pattern=_ARGUMENT_WORD_RE),
            ),
            LexMode.Constraints: (
                self._scan_comment,
                partial(self._scan_punct, chars="[];"),
                partial(self._scan_word, pattern=_CONSTRAINT_WORD_RE),
            ),
        }

    # ── Cursor ────────────────────────────────────────────────────────────────

    def reset(self, pos: int) -> None:
        """Move the cursor back (or forward) to an absolute offset."""
        self.pos = max(0, min(pos, len(self.src)))

    def span(self, start: int, end: int) -> Span:
        line = bisect_right(self._line_starts, start)
        return Span(start, end, line, start - self._line_starts[line - 1] + 1)

    def next_token(self, mode: LexMode = LexMode.Declaration) -> Token:
        ws = _SKIP_RE[mode].match(self.src, self.pos)
        if ws:
            self.pos = ws.end()
        start = self.pos
        if start >= len(self.src):
            return Token(TokenKind.Eof, "", self.span(start, start))

        best: _Match | None = None
        for scan in self._scanners[mode]:
            m = scan(start)
            if m is not None and (best is None or (m.priority, m.end) > (best.priority, best.end)):
                best = m
        if best is None:
            raise LexError(f"unexpected character {self.src[start]!r}", self.span(start, start + 1))

        self.pos = best.end
        return Token(best.kind, self.src[start : best.end], self.span(start, best.end))

    def tokens(self, mode: LexMode = LexMode.Declaration) -> Iterator[Token]:
        """Yield tokens in a single mode up to and including Eof."""
        while True:
            tok = self.next_token(mode)
            yield tok
            if tok.kind is TokenKind.Eof:
                return

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    # ── Scanners ──────────────────────────────────────────────────────────────

    def _scan_eol(self, pos: int) -> _Match | None:
        m = _EOL_RE.match(self.src, pos)
        return _Match(TokenKind.Eol, m.end(), Priority.Terminator) if m else None

    def _scan_comment(self, pos: int) -> _Match | None:
        m = _COMMENT_RE.match(self.src, pos)
        return _Match(TokenKind.Comment, m.end(), Priority.Comment) if m else None

    def _scan_block_comment(self, pos: int) -> _Match | None:
        if not self.src.startswith('"""', pos):
            return None
        search = pos + 3
        while True:
            close = self.src.find('"""', search)
            if close == -1:
                raise LexError("unterminated block comment", self.span(pos, pos + 3))
            if self.src[close - 1] != "\\":
                break
            search = close + 1
        return _Match(TokenKind.BlockComment, close + 3, Priority.Comment)

    def _scan_import(self, pos: int) -> _Match | None:
        m = _IMPORT_RE.match(self.src, pos)
        return _Match(TokenKind.ImportRef, m.end(), Priority.Import) if m else None

    def _scan_connection(self, pos: int) -> _Match | None:
        m = _CONNECTION_RE.match(self.src, pos)
        return _Match(TokenKind.ConnectionOp, m.end(), Priority.Connection) if m else None

    def _scan_quoted(self, pos: int, quotes: str) -> _Match | None:
        ch = self.src[pos]
        if ch not in quotes:
            return None
        pattern = _DOUBLE_QUOTED_RE if ch == '"' else _SINGLE_QUOTED_RE
        m = pattern.match(self.src, pos)
        if m is None:
            raise LexError("unterminated string", self.span(pos, pos + 1))
        return _Match(TokenKind.QuotedString, m.end(), Priority.String)

    def _scan_punct(self, pos: int, chars: str) -> _Match | None:
        if self.src[pos] in chars:
            return _Match(TokenKind.Punct, pos + 1, Priority.Punct)
        return None

    def _base_run(self, pos: int) -> tuple[int, bool]:
        """End of the identifier base run at pos, and whether a connection cut it short."""
        m = _IDENT_BASE_RE.match(self.src, pos)
        if m is None:
            return pos, False
        for i in range(pos, m.end()):
            if self.src[i] == "-" and _CONNECTION_RE.match(self.src, i):
                return i, True
        return m.end(), False

    def _scan_ident(self, pos: int) -> _Match | None:
        end, cut = self._base_run(pos)
        if end == pos:
            return None
        # Separator runs belong to the identifier only when more base text follows.
        while not cut:
            sep = _IDENT_SEP_RE.match(self.src, end)
            if sep is None:
                break
            nxt, cut = self._base_run(sep.end())
            if nxt == sep.end():
                break
            end = nxt
        return _Match(TokenKind.Ident, end, Priority.Ident)

    def _at_literal_boundary(self, pos: int) -> bool:
        return pos >= len(self.src) or self.src[pos].isspace() or self.src[pos] == ";"

    def _scan_literal(self, pos: int) -> _Match | None:
        for pattern, kind in ((_NUMBER_RE, TokenKind.Number), (_BOOLEAN_RE, TokenKind.Boolean)):
            m = pattern.match(self.src, pos)
            if m and self._at_literal_boundary(m.end()):
                return _Match(kind, m.end(), Priority.LabelPredefined)
        return None

    def _scan_text(self, pos: int) -> _Match | None:
        m = _LABEL_BASE_RE.match(self.src, pos)
        if m is None:
            return None
        end = m.end()
        while True:
            ws = _INLINE_WS_RE.match(self.src, end)
            if ws is None:
                break
            nxt = _LABEL_BASE_RE.match(self.src, ws.end())
            if nxt is None:
                break
            end = nxt.end()
        return _Match(TokenKind.Text, end, Priority.Label)

    def _scan_code_block(self, pos: int) -> _Match | None:
        if self.src[pos] != "|":
            return None
        style = next(s for s in _FENCE_ORDER if self.src.startswith(s.opener, pos))
        opener_end = pos + len(style.opener)
        lang = _LANGUAGE_RE.match(self.src, opener_end)
        if lang is None:
            raise LexError(f"expected a language tag after {style.opener!r}", self.span(pos, opener_end))
        close = self.src.find(style.closer, lang.end())
        if close == -1:
            raise LexError(
                f"unterminated code block, expected closing {style.closer!r}",
                self.span(pos, opener_end),
            )
        return _Match(TokenKind.CodeBlock, close + len(style.closer), Priority.Fence)

    def _scan_word(self, pos: int, pattern: re.Pattern[str]) -> _Match | None:
        m = pattern.match(self.src, pos)
        return _Match(TokenKind.Ident, m.end(), Priority.Ident) if m else None


# ─── Helpers ─────────────────────────────────────────────────────────────────


def tokenize(src: str, mode: LexMode = LexMode.Declaration) -> Iterator[Token]:
    """Lazily tokenize src in a single lexing mode, ending with an Eof token."""
    return Tokenizer(src).tokens(mode)


def unquote(text: str) -> str:
    """Strip the quotes of a quoted-string token and unescape the quote character."""
    q = text[0]
    return text[1:-1].replace("\\" + q, q)


def quote(value: str, q: str = '"') -> str:
    """Inverse of unquote."""
    return q + value.replace(q, "\\" + q) + q


def split_code_block(text: str, span: Span | None = None) -> tuple[FenceStyle, str, str]:
    """Split a CodeBlock token's text into (style, language, content)."""
    style = next(s for s in _FENCE_ORDER if text.startswith(s.opener))
    lang = _LANGUAGE_RE.match(text, len(style.opener))
    if lang is None:
        raise LexError(f"expected a language tag after {style.opener!r}", span)
    return style, lang.group(1), text[lang.end() : len(text) - len(style.closer)]
