"""Intermediate representation: the D2 syntax tree."""

from d2_syntax.ir.tree import (
    Argument,
    Block,
    BlockComment,
    BlockItem,
    CodeBlock,
    Comment,
    Connection,
    ConnectionReference,
    ConstraintList,
    Declaration,
    Expression,
    Identifier,
    Import,
    Label,
    Literal,
    MethodDeclaration,
    Node,
    SourceFile,
    Target,
    iter_children,
    walk,
)

__all__ = [
    "Argument",
    "Block",
    "BlockComment",
    "BlockItem",
    "CodeBlock",
    "Comment",
    "Connection",
    "ConnectionReference",
    "ConstraintList",
    "Declaration",
    "Expression",
    "Identifier",
    "Import",
    "Label",
    "Literal",
    "MethodDeclaration",
    "Node",
    "SourceFile",
    "Target",
    "iter_children",
    "walk",
]
