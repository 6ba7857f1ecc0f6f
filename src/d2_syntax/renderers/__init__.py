"""Renderers: turn a syntax tree back into text."""

from d2_syntax.renderers.base import Renderer
from d2_syntax.renderers.d2 import D2Renderer
from d2_syntax.renderers.sexp import SexpRenderer

__all__ = ["D2Renderer", "Renderer", "SexpRenderer"]
