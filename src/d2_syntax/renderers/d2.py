"""Canonical D2 printer.

Prints one item per line, blocks indented, a single space around connections
and after ':'. Parsing the output yields a tree equal to the input tree; only
layout (and the placement of comments written mid-declaration) changes. A text
label that reads as a number or boolean, as in ``{x: 1}``, stays glued to the
'}', '{' or comment that ended it.
"""

from __future__ import annotations

import re

from d2_syntax.ir.tree import (
    Argument,
    BlockComment,
    BlockItem,
    CodeBlock,
    Comment,
    ConnectionReference,
    ConstraintList,
    Declaration,
    Expression,
    Identifier,
    Import,
    Label,
    Literal,
    MethodDeclaration,
    SourceFile,
    Target,
)
from d2_syntax.parsers.tokenizer import quote
from d2_syntax.types import LiteralKind

_BARE_LITERAL_RE = re.compile(r"[-+]?[0-9]+(?:\.[0-9]+)?|true|false")


class D2Renderer:
    """Renders a syntax tree as canonical D2 source."""

    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent

    def render(self, tree: SourceFile) -> str:
        lines: list[str] = []
        self._items(tree.children, lines)
        return "".join(line + "\n" for line in lines)

    # ── Scopes ────────────────────────────────────────────────────────────────

    def _items(self, items: tuple[BlockItem, ...], lines: list[str]) -> None:
        """Append the lines for items and everything nested in them.

        Open scopes are kept on an explicit stack as (items, next index, level).
        ``glue`` is set when the last line ends in a bare text label that must
        be closed on the same line by the enclosing '}'.
        """
        stack: list[tuple[tuple[BlockItem, ...], int, int]] = [(items, 0, 0)]
        glue = False
        while stack:
            scope, i, level = stack.pop()
            if i == len(scope):
                if level > 0:
                    if glue:
                        lines[-1] += "}"
                    else:
                        lines.append(self.indent * (level - 1) + "}")
                glue = False
                continue
            item = scope[i]
            pad = self.indent * level
            glue = False
            i += 1
            if isinstance(item, Declaration):
                if self._declaration(item, level, lines):
                    stack.append((scope, i, level))
                    stack.append((item.block.children, 0, level + 1))
                    continue
                if item.block is None and _is_bare_literal_text(item.label):
                    # Text such as "1" only stays text when not followed by a line break.
                    nxt = scope[i] if i < len(scope) else None
                    if isinstance(nxt, (Comment, BlockComment)):
                        lines[-1] += self.comment_text(nxt)
                        i += 1
                    else:
                        glue = True
            elif isinstance(item, MethodDeclaration):
                lines.append(pad + self.method_text(item))
            elif isinstance(item, Import):
                lines.append(pad + self.import_text(item))
            elif isinstance(item, (Comment, BlockComment)):
                lines.append(pad + self.comment_text(item))
            stack.append((scope, i, level))

    def _declaration(self, decl: Declaration, level: int, lines: list[str]) -> bool:
        """Append the declaration's first line; True when its block items follow."""
        pad = self.indent * level
        head = self.target_text(decl.target)
        if decl.imported is not None:
            lines.append(f"{pad}{head}: {self.import_text(decl.imported)}")
            return False
        if not decl.has_colon:
            lines.append(pad + head)
            return False

        text = head + ":"
        if decl.label is not None:
            text += " " + self.label_text(decl.label)
        if decl.block is None:
            lines.append(pad + text)
            return False
        brace = "{" if _is_bare_literal_text(decl.label) else " {"
        if not decl.block.children:
            lines.append(pad + text + brace + "}")
            return False
        lines.append(pad + text + brace)
        return True

    # ── Pieces ────────────────────────────────────────────────────────────────

    def identifier_text(self, ident: Identifier) -> str:
        return ".".join(_name(part) for part in (ident, *ident.fields))

    def expression_text(self, expr: Expression) -> str:
        parts = [self.identifier_text(expr.identifiers[0])]
        for _, conn, target in expr.edges():
            parts.append(conn.op)
            parts.append(self.identifier_text(target))
        return " ".join(parts)

    def target_text(self, target: Target) -> str:
        if isinstance(target, ConnectionReference):
            text = f"({self.expression_text(target.expression)})[{target.index}]"
            return "".join([text, *(f".{_name(f)}" for f in target.fields)])
        return self.expression_text(target)

    def label_text(self, label: Label) -> str:
        if isinstance(label, CodeBlock):
            return f"{label.style.opener}{label.language}{label.content}{label.style.closer}"
        if isinstance(label, ConstraintList):
            return "[" + "; ".join(label.constraints) + "]"
        if isinstance(label, Literal) and label.quoted:
            return quote(str(label.value))
        return label.raw

    def import_text(self, imp: Import) -> str:
        return ("...@" if imp.spread else "@") + imp.path

    def comment_text(self, comment: Comment | BlockComment) -> str:
        if isinstance(comment, Comment):
            return "#" + comment.text
        return f'"""{comment.text}"""'

    def method_text(self, method: MethodDeclaration) -> str:
        text = f"{self.identifier_text(method.name)}({_arguments(method.arguments)})"
        if method.returns is not None:
            text += f": ({_arguments(method.returns)})"
        return text


def _name(ident: Identifier) -> str:
    return quote(ident.name, ident.quote) if ident.quote else ident.name


def _arguments(args: tuple[Argument, ...]) -> str:
    return ", ".join(a.name if a.type is None else f"{a.name} {a.type}" for a in args)


def _is_bare_literal_text(label: Label | None) -> bool:
    return (
        isinstance(label, Literal)
        and label.kind is LiteralKind.Text
        and not label.quoted
        and _BARE_LITERAL_RE.fullmatch(label.raw) is not None
    )
