"""
Error types for D2 tokenizing and parsing.

Every error carries the source span it refers to. When raised out of a parse,
``partial`` holds the syntax tree built before the failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from d2_syntax.types import Span, Token

if TYPE_CHECKING:
    from d2_syntax.ir.tree import SourceFile


class ParseError(Exception):
    """Base exception for all d2-syntax errors."""

    def __init__(self, message: str, span: Span | None = None):
        self.message = message
        self.span = span
        self.partial: SourceFile | None = None
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.span is not None:
            return f"{self.span.line}:{self.span.column}: {self.message}"
        return self.message

    def format(self, src: str, filename: str = "<input>") -> str:
        """
        Format the error with a location and a snippet of the source.

        Returns:
            A string like "diagram.d2:3:7: message" followed by up to two lines
            of context before the error line and a marker under the column.
        """
        if self.span is None:
            return f"{filename}: {self.message}"

        lines = src.splitlines()
        line = self.span.line
        start_line = max(1, line - 2)
        formatted = [f"{filename}:{line}:{self.span.column}: {self.message}"]
        for line_num in range(start_line, min(line, len(lines)) + 1):
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + lines[line_num - 1])
            if line_num == line:
                width = max(1, min(self.span.end, len(src)) - self.span.start)
                if "\n" in src[self.span.start : self.span.end]:
                    width = 1
                formatted.append(" " * (len(prefix) + self.span.column - 1) + "^" * width)
        return "\n".join(formatted)


class LexError(ParseError):
    """
    Raised when the source cannot be split into tokens.

    Examples:
    - Unterminated quoted string or block comment
    - Unterminated code fence, or a fence without a language tag
    - A character no token class accepts
    """


class UnexpectedTokenError(ParseError):
    """Raised when the parser expected one of a set of tokens and found another."""

    def __init__(self, expected: tuple[str, ...], found: Token):
        self.expected = expected
        self.found = found
        if len(expected) == 1:
            wanted = expected[0]
        else:
            wanted = ", ".join(expected[:-1]) + f" or {expected[-1]}"
        super().__init__(f"expected {wanted}, found {found.describe()}", found.span)


class UnbalancedBlockError(ParseError):
    """Raised when a block reaches the end of input without its closing brace."""

    def __init__(self, open_span: Span):
        self.open_span = open_span
        super().__init__(
            f"expected '}}' to close the block opened at {open_span.line}:{open_span.column}",
            open_span,
        )


class MalformedConnectionReferenceError(ParseError):
    """Raised when a connection reference has a missing or non-numeric index."""


class MalformedMethodSignatureError(ParseError):
    """Raised when a method argument list does not fit any argument shape."""


class NestingTooDeepError(ParseError):
    """Raised when blocks nest deeper than ParseConfig.max_depth."""
