"""S-expression dump of a syntax tree, one node per line.

Node names follow the tree-sitter D2 grammar (source_file, declaration,
label_codeblock, ...), leaves carry their text as a JSON string:

    (source_file
      (declaration
        (expression
          (identifier "a")
          (connection "->")
          (identifier "b"))))
"""

from __future__ import annotations

import json
from typing import Union

from d2_syntax.ir.tree import (
    Argument,
    Block,
    BlockComment,
    CodeBlock,
    Comment,
    Connection,
    ConnectionReference,
    ConstraintList,
    Declaration,
    Expression,
    Identifier,
    Import,
    Literal,
    MethodDeclaration,
    Node,
    SourceFile,
)
from d2_syntax.types import LiteralKind

_LITERAL_NAMES: dict[LiteralKind, str] = {
    LiteralKind.Integer: "integer",
    LiteralKind.Float: "float",
    LiteralKind.Boolean: "boolean",
    LiteralKind.Text: "text",
}

# A node, a finished leaf line, or a (head, children) group with no node behind it.
_Item = Union[Node, str, tuple[str, list]]


def _leaf(name: str, text: str) -> str:
    return f"({name} {json.dumps(text, ensure_ascii=False)})"


class SexpRenderer:
    """Renders a syntax tree as an indented S-expression."""

    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent

    def render(self, tree: SourceFile) -> str:
        return "\n".join(self._lines(tree)) + "\n"

    def _lines(self, root: _Item) -> list[str]:
        lines: list[str] = []
        # (item, level, number of ')' owed after its last line)
        stack: list[tuple[_Item, int, int]] = [(root, 0, 0)]
        while stack:
            item, level, closers = stack.pop()
            pad = self.indent * level
            if isinstance(item, str):
                lines.append(pad + item + ")" * closers)
                continue
            head, children = item if isinstance(item, tuple) else self._describe(item)
            if not children:
                lines.append(pad + head + ")" * (closers + 1))
                continue
            lines.append(pad + head)
            last = len(children) - 1
            for i in range(last, -1, -1):
                stack.append((children[i], level + 1, closers + 1 if i == last else 0))
        return lines

    def _describe(self, node: Node) -> tuple[str, list[_Item]]:
        """Opening text of the node (without ')') and its children."""
        if isinstance(node, SourceFile):
            return "(source_file", list(node.children)
        if isinstance(node, Declaration):
            parts: list[_Item] = [node.target]
            parts.extend(c for c in (node.imported, node.label, node.block) if c is not None)
            return "(declaration", parts
        if isinstance(node, Expression):
            parts = [node.identifiers[0]]
            for _, conn, target in node.edges():
                parts.extend((conn, target))
            return "(expression", parts
        if isinstance(node, Identifier):
            head = f"(identifier {json.dumps(node.name, ensure_ascii=False)}"
            return head, [_leaf("field", f.name) for f in node.fields]
        if isinstance(node, Connection):
            return f"(connection {json.dumps(node.op)}", []
        if isinstance(node, ConnectionReference):
            parts = [node.expression, _leaf("connection_identifier", str(node.index))]
            parts.extend(_leaf("field", f.name) for f in node.fields)
            return "(connection_reference", parts
        if isinstance(node, Literal):
            name = "string" if node.quoted else _LITERAL_NAMES[node.kind]
            return "(label", [_leaf(name, node.raw)]
        if isinstance(node, CodeBlock):
            fence = (
                "(label_codeblock",
                [_leaf("codeblock_language", node.language), _leaf("codeblock_content", node.content)],
            )
            return "(label", [fence]
        if isinstance(node, ConstraintList):
            return "(label", [_leaf("label_constraint", c) for c in node.constraints]
        if isinstance(node, Block):
            parts = list(node.children)
            if not node.closed:
                parts.append('(MISSING "}")')
            return "(block", parts
        if isinstance(node, MethodDeclaration):
            parts = [node.name, ("(arguments", list(node.arguments))]
            if node.returns is not None:
                parts.append(("(returns", list(node.returns)))
            return "(method_declaration", parts
        if isinstance(node, Argument):
            parts = [_leaf("argument_name", node.name)]
            if node.type is not None:
                parts.append(_leaf("argument_type", node.type))
            return "(argument", parts
        if isinstance(node, Import):
            return _leaf("import", ("...@" if node.spread else "@") + node.path)[:-1], []
        if isinstance(node, Comment):
            return _leaf("comment", node.text)[:-1], []
        if isinstance(node, BlockComment):
            return _leaf("block_comment", node.text)[:-1], []
        raise TypeError(f"not a syntax node: {node!r}")
