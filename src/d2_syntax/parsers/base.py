"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from d2_syntax.ir.tree import SourceFile


class Parser(Protocol):
    """Protocol that all D2 parsers must implement."""

    def parse(self, src: str) -> SourceFile:
        """Parse source text into a SourceFile tree, raising ParseError on failure."""
        ...
