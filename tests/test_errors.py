"""Tests for parse errors: kinds, spans, messages, partial trees."""

import pytest

from d2_syntax import (
    LexError,
    MalformedConnectionReferenceError,
    MalformedMethodSignatureError,
    NestingTooDeepError,
    ParseConfig,
    ParseError,
    UnbalancedBlockError,
    UnexpectedTokenError,
    parse,
    parse_partial,
)
from d2_syntax.ir import Block, Declaration, Expression, Identifier, SourceFile


def decl(name: str, **kwargs) -> Declaration:
    return Declaration(target=Expression(identifiers=(Identifier(name),)), **kwargs)


# ─── Unbalanced blocks ───────────────────────────────────────────────────────


def test_unbalanced_block_points_at_open_brace():
    with pytest.raises(UnbalancedBlockError) as exc_info:
        parse("a: {b")
    err = exc_info.value
    assert (err.span.start, err.span.line, err.span.column) == (3, 1, 4)
    assert err.open_span == err.span
    assert str(err) == "1:4: expected '}' to close the block opened at 1:4"


def test_unbalanced_block_partial_tree():
    with pytest.raises(UnbalancedBlockError) as exc_info:
        parse("x\na: {b")
    assert exc_info.value.partial == SourceFile(
        children=(
            decl("x"),
            decl("a", has_colon=True, block=Block(children=(decl("b"),), closed=False)),
        )
    )


def test_parse_partial_returns_error_value():
    result = parse_partial("a: {b: {c")
    assert not result.ok
    assert isinstance(result.error, UnbalancedBlockError)
    outer = result.tree.children[0]
    assert not outer.block.closed
    inner = outer.block.children[0]
    assert not inner.block.closed
    assert inner.block.children == (decl("c"),)


def test_parse_partial_success():
    result = parse_partial("a -> b")
    assert result.ok
    assert result.error is None
    assert len(result.tree.children) == 1


# ─── Unexpected tokens ───────────────────────────────────────────────────────


def test_stray_closing_brace():
    with pytest.raises(UnexpectedTokenError) as exc_info:
        parse("a\n}")
    err = exc_info.value
    assert err.found.text == "}"
    assert (err.span.line, err.span.column) == (2, 1)
    assert err.expected == ("declaration", "import")


def test_missing_connection_target():
    with pytest.raises(UnexpectedTokenError, match="expected identifier or quoted string, found end of input"):
        parse("a -> ")


def test_text_after_quoted_label():
    with pytest.raises(UnexpectedTokenError) as exc_info:
        parse('a: "x" y')
    assert exc_info.value.found.text == "y"


def test_unclosed_connection_reference_parens():
    with pytest.raises(UnexpectedTokenError, match="expected connection or '\\)', found ';'"):
        parse("(a -> b;")


# ─── Connection references ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    "src,message",
    [
        ("(a -> b)", "expected '\\[index\\]'"),
        ("(a -> b)[x]", "index must be a number"),
        ("(a -> b)[-1]", "index must be a number"),
        ("(a -> b)[1", "expected '\\]'"),
    ],
)
def test_malformed_connection_reference(src: str, message: str):
    with pytest.raises(MalformedConnectionReferenceError, match=message):
        parse(src)


# ─── Nesting ─────────────────────────────────────────────────────────────────


def test_nesting_too_deep():
    with pytest.raises(NestingTooDeepError) as exc_info:
        parse("a: {b: {c: {d}}}", ParseConfig(max_depth=2))
    err = exc_info.value
    assert err.span.start == 11
    assert err.partial.children[0].block.children[0] == decl("b", has_colon=True, block=Block(closed=False))


def test_default_depth_limit():
    ok = "a: {" * 100 + "}" * 100
    assert parse(ok).children
    with pytest.raises(NestingTooDeepError):
        parse("a: {" * 101 + "}" * 101)


def test_large_depth_limit_is_honoured():
    depth = 1500
    tree = parse("a: {" * depth + "}" * depth, ParseConfig(max_depth=depth))
    node = tree.children[0]
    levels = 1
    while node.block.children:
        node = node.block.children[0]
        levels += 1
    assert levels == depth


def test_large_depth_limit_reports_error():
    with pytest.raises(NestingTooDeepError) as exc_info:
        parse("a: {" * 1501 + "}" * 1501, ParseConfig(max_depth=1500))
    err = exc_info.value
    assert err.span.start == 4 * 1500 + 3
    assert err.partial.children[0].block.closed is False


# ─── Lexing errors through the parser ────────────────────────────────────────


def test_lex_error_carries_partial_tree():
    with pytest.raises(LexError) as exc_info:
        parse('x\na: "unterminated')
    err = exc_info.value
    assert (err.span.line, err.span.column) == (2, 4)
    assert err.partial == SourceFile(children=(decl("x"),))


# ─── Presentation ────────────────────────────────────────────────────────────


def test_format_with_snippet():
    src = "a: {b"
    err = parse_partial(src).error
    assert err.format(src, "d.d2") == (
        "d.d2:1:4: expected '}' to close the block opened at 1:4\n" "   1 | a: {b\n" + " " * 10 + "^"
    )


def test_format_shows_preceding_lines():
    src = "x\ny\nz: {\n"
    lines = parse_partial(src).error.format(src).splitlines()
    assert lines[0] == "<input>:3:4: expected '}' to close the block opened at 3:4"
    assert lines[1:4] == ["   1 | x", "   2 | y", "   3 | z: {"]
    assert lines[4] == " " * 10 + "^"


def test_error_without_span():
    err = ParseError("boom")
    assert str(err) == "boom"
    assert err.format("x") == "<input>: boom"
    assert err.partial is None


def test_error_hierarchy():
    for cls in (
        LexError,
        UnexpectedTokenError,
        UnbalancedBlockError,
        MalformedConnectionReferenceError,
        MalformedMethodSignatureError,
        NestingTooDeepError,
    ):
        assert issubclass(cls, ParseError)
