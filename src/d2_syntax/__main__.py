"""CLI entry point for d2-syntax."""

import logging
import sys

import click

from d2_syntax.config import ParseConfig
from d2_syntax.errors import ParseError
from d2_syntax.parsers import parse
from d2_syntax.parsers.tokenizer import tokenize
from d2_syntax.renderers.base import Renderer
from d2_syntax.renderers.d2 import D2Renderer
from d2_syntax.renderers.sexp import SexpRenderer


def _dump_tokens(text: str) -> str:
    lines = []
    for tok in tokenize(text):
        lines.append(f"{tok.span.line}:{tok.span.column}\t{tok.kind.name}\t{tok.text!r}")
    return "\n".join(lines) + "\n"


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["sexp", "d2", "tokens"]),
    default="sexp",
    help="Output: syntax tree (sexp), canonical source (d2) or token list (tokens)",
)
@click.option("--max-depth", "max_depth", type=int, default=ParseConfig.max_depth, help="Maximum block nesting")
@click.option("--no-comments", "no_comments", is_flag=True, help="Drop comments from the tree")
@click.option("--verbose", "-v", "verbose", is_flag=True, help="Log parser debug output to stderr")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def main(
    input: str | None,
    output_format: str,
    max_depth: int,
    no_comments: bool,
    verbose: bool,
    output: str | None,
) -> None:
    """Parse D2 diagram source and print its syntax tree."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if input:
        try:
            with open(input, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    config = ParseConfig(max_depth=max_depth, keep_comments=not no_comments)
    try:
        if output_format == "tokens":
            rendered = _dump_tokens(text)
        else:
            renderer: Renderer = D2Renderer() if output_format == "d2" else SexpRenderer()
            rendered = renderer.render(parse(text, config))
    except ParseError as e:
        click.echo(f"parse error:\n{e.format(text, input or '<stdin>')}", err=True)
        sys.exit(1)

    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
