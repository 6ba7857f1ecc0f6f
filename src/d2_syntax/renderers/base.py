"""Base renderer protocol."""

from __future__ import annotations

from typing import Protocol

from d2_syntax.ir.tree import SourceFile


class Renderer(Protocol):
    """Protocol that all tree renderers must implement."""

    def render(self, tree: SourceFile) -> str:
        """Render a syntax tree to an output string."""
        ...
