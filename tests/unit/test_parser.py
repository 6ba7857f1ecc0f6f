"""Tests for the D2 declaration/block parser."""

import pytest

from d2_syntax import ParseConfig, UnexpectedTokenError, parse
from d2_syntax.ir import (
    Argument,
    Block,
    BlockComment,
    Comment,
    Connection,
    ConnectionReference,
    Declaration,
    Expression,
    Identifier,
    Import,
    Literal,
    MethodDeclaration,
    SourceFile,
)
from d2_syntax.types import Direction, LiteralKind


def ident(*names: str) -> Expression:
    return Expression(identifiers=(Identifier.chain(*names),))


def edge(src: str, op: str, dst: str) -> Expression:
    return Expression(identifiers=(Identifier(src), Identifier(dst)), connections=(Connection.new(op),))


# ─── Expressions ─────────────────────────────────────────────────────────────


def test_parse_simple_connection():
    tree = parse("a -> b")
    assert tree == SourceFile(children=(Declaration(target=edge("a", "->", "b")),))
    decl = tree.children[0]
    assert decl.is_connection
    assert decl.target.connections[0].direction is Direction.Forward


def test_parse_connection_chain():
    decl = parse("a -> b <- c -- d <-> e").children[0]
    expr = decl.target
    assert [i.name for i in expr.identifiers] == ["a", "b", "c", "d", "e"]
    assert [c.direction for c in expr.connections] == [
        Direction.Forward,
        Direction.Reverse,
        Direction.Undirected,
        Direction.Bidirectional,
    ]
    assert [(s.name, d.name) for s, _, d in expr.edges()] == [("a", "b"), ("b", "c"), ("c", "d"), ("d", "e")]


def test_long_connection_keeps_dashes():
    decl = parse("a ----> b").children[0]
    assert decl.target.connections[0] == Connection(op="---->", direction=Direction.Forward)


def test_field_chain_with_quoted_label():
    decl = parse('x.y.z: "label"').children[0]
    assert decl.target.identifiers[0].path == ("x", "y", "z")
    assert decl.has_colon
    assert decl.label == Literal(LiteralKind.Text, "label", '"label"', quoted=True)
    assert decl.block is None


def test_quoted_identifiers():
    decl = parse("\"my node\" -> 'b'").children[0]
    assert decl.target.identifiers == (Identifier("my node", quote='"'), Identifier("b", quote="'"))


def test_identifier_with_spaces():
    decl = parse("cell tower -> base station").children[0]
    assert decl.target == edge("cell tower", "->", "base station")


def test_unicode_identifier_and_label():
    decl = parse("ñandú: größe").children[0]
    assert decl == Declaration(target=ident("ñandú"), has_colon=True, label=Literal.text("größe"))
    assert (decl.label.span.line, decl.label.span.column) == (1, 8)


def test_declaration_without_colon():
    assert parse("a").children[0] == Declaration(target=ident("a"))


def test_empty_body_after_colon():
    decl = parse("a:").children[0]
    assert decl == Declaration(target=ident("a"), has_colon=True)


# ─── Labels ──────────────────────────────────────────────────────────────────


def test_number_and_boolean_labels():
    labels = [d.label for d in parse("a: 42\nb: 1.5\nc: true\nd: 123abc").declarations()]
    assert labels[0] == Literal(LiteralKind.Integer, 42, "42")
    assert labels[1] == Literal(LiteralKind.Float, 1.5, "1.5")
    assert labels[2] == Literal(LiteralKind.Boolean, True, "true")
    assert labels[3] == Literal.text("123abc")


def test_label_before_block():
    decl = parse("network: Network {\n  x\n}").children[0]
    assert decl.label == Literal.text("Network")
    assert decl.block == Block(children=(Declaration(target=ident("x")),))


def test_connection_with_label_and_block():
    decl = parse("a -> b: hi {x}").children[0]
    assert decl.target == edge("a", "->", "b")
    assert decl.label == Literal.text("hi")
    assert decl.block.children == (Declaration(target=ident("x")),)


# ─── Blocks ──────────────────────────────────────────────────────────────────


def test_nested_blocks():
    tree = parse("shape: {a -> b; c: {d}}")
    expected = Declaration(
        target=ident("shape"),
        has_colon=True,
        block=Block(
            children=(
                Declaration(target=edge("a", "->", "b")),
                Declaration(
                    target=ident("c"),
                    has_colon=True,
                    block=Block(children=(Declaration(target=ident("d")),)),
                ),
            )
        ),
    )
    assert tree.children == (expected,)


def test_empty_block():
    decl = parse("a: {}").children[0]
    assert decl.block == Block()


def test_blank_lines_inside_block():
    decl = parse("a: {\n\n  b\n\n  c\n}\n").children[0]
    assert decl.block.children == (Declaration(target=ident("b")), Declaration(target=ident("c")))


def test_field_chain_inside_block():
    decl = parse("a: {b.c: x}").children[0]
    inner = decl.block.children[0]
    assert inner.target == ident("b", "c")
    assert inner.label == Literal.text("x")


def test_semicolons_separate_declarations():
    tree = parse("a; b; c")
    assert [d.target.identifiers[0].name for d in tree.declarations()] == ["a", "b", "c"]


def test_max_depth_allows_exact_nesting():
    tree = parse("a: {b: {c}}", ParseConfig(max_depth=2))
    assert tree.children[0].block.children[0].block.children == (Declaration(target=ident("c")),)


# ─── Connection references ───────────────────────────────────────────────────


def test_connection_reference_with_field():
    decl = parse("(a -> b)[1].weight").children[0]
    assert decl.target == ConnectionReference(
        expression=edge("a", "->", "b"),
        index=1,
        fields=(Identifier("weight"),),
    )
    assert decl.is_connection


def test_connection_reference_with_label():
    decl = parse("(a -> b)[0].style.stroke: red").children[0]
    assert decl.target.index == 0
    assert [f.name for f in decl.target.fields] == ["style", "stroke"]
    assert decl.label == Literal.text("red")


# ─── Methods ─────────────────────────────────────────────────────────────────


def test_method_declaration():
    method = parse("f(a, b int): (err)").children[0]
    assert method == MethodDeclaration(
        name=Identifier("f"),
        arguments=(Argument("a", "int"), Argument("b", "int")),
        returns=(Argument("err"),),
    )


def test_method_declaration_inside_block():
    decl = parse("Account: {\n  deposit(amount int)\n}").children[0]
    assert decl.block.children == (
        MethodDeclaration(name=Identifier("deposit"), arguments=(Argument("amount", "int"),)),
    )


# ─── Imports ─────────────────────────────────────────────────────────────────


def test_top_level_imports():
    tree = parse("@shapes\n...@vars")
    assert tree.children == (Import("shapes"), Import("vars", spread=True))


def test_declaration_import():
    decl = parse("x: @shapes/x.d2").children[0]
    assert decl.imported == Import("shapes/x.d2")
    assert decl.label is None


# ─── Comments ────────────────────────────────────────────────────────────────


def test_comments_keep_their_position():
    tree = parse("# top\na -> b # trailing\nc")
    assert tree.children == (
        Comment(" top"),
        Declaration(target=edge("a", "->", "b")),
        Comment(" trailing"),
        Declaration(target=ident("c")),
    )


def test_comment_after_label_ends_the_line():
    tree = parse("a: hello # c\nb: world")
    assert tree.children == (
        Declaration(target=ident("a"), has_colon=True, label=Literal.text("hello")),
        Comment(" c"),
        Declaration(target=ident("b"), has_colon=True, label=Literal.text("world")),
    )


def test_comment_inside_declaration_moves_after_it():
    tree = parse("a -> # c\n b")
    assert tree.children == (Declaration(target=edge("a", "->", "b")), Comment(" c"))


def test_comment_after_colon_leaves_body_empty():
    tree = parse("a: # c\nb: 2")
    assert tree.children == (
        Declaration(target=ident("a"), has_colon=True),
        Comment(" c"),
        Declaration(target=ident("b"), has_colon=True, label=Literal(LiteralKind.Integer, 2, "2")),
    )


def test_connection_does_not_continue_past_line_comment():
    with pytest.raises(UnexpectedTokenError) as exc_info:
        parse("a # c\n-> b")
    assert exc_info.value.found.text == "->"


def test_paren_after_line_comment_is_not_a_method():
    tree = parse("f # c\n(a -> b)[0]")
    assert tree.children[0] == Declaration(target=ident("f"))
    assert isinstance(tree.children[2].target, ConnectionReference)


def test_block_comment():
    tree = parse('"""\nnotes\n"""\na')
    assert tree.children == (BlockComment("\nnotes\n"), Declaration(target=ident("a")))


def test_drop_comments():
    tree = parse("# top\na # x\n\"\"\"b\"\"\"", ParseConfig(keep_comments=False))
    assert tree.children == (Declaration(target=ident("a")),)


# ─── Whole files ─────────────────────────────────────────────────────────────


def test_empty_source():
    assert parse("") == SourceFile()
    assert parse("\n\n  \n;") == SourceFile()


def test_spans():
    tree = parse("a -> b\nc: {d}")
    first, second = tree.children
    assert (first.span.start, first.span.end) == (0, 6)
    assert (second.span.line, second.span.column) == (2, 1)
    assert second.block.span.start == 10
    assert second.block.span.end == 13
