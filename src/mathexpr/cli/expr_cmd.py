"""Expression CLI commands: eval, tokens and ast."""

from pathlib import Path

import click

from mathexpr.config import ExpressionConfig
from mathexpr.errors import ExpressionError
from mathexpr.expression import Expression
from mathexpr.lexer import Lexer, TokenType
from mathexpr.parser import format_ast, format_number


def _parse_assignment(text: str) -> tuple[str, float]:
    """Turn ``name=value`` into a (name, number) pair."""
    name, sep, raw = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got '{text}'")
    try:
        value = float(raw)
    except ValueError:
        raise click.BadParameter(f"'{raw}' is not a number") from None
    return name, value


def _load_config(config_path: Path | None, force_semicolon: bool) -> ExpressionConfig:
    if config_path is not None:
        config = ExpressionConfig.from_file(config_path)
    else:
        config = ExpressionConfig.from_env()
    if force_semicolon:
        config = ExpressionConfig(force_semicolon=True)
    return config


def _fail(error: ExpressionError) -> None:
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    raise SystemExit(1)


@click.command("eval")
@click.argument("expression")
@click.option(
    "--var",
    "-v",
    "assignments",
    multiple=True,
    metavar="NAME=VALUE",
    help="Provide a variable value; may be repeated.",
)
@click.option("--optimize", is_flag=True, default=False, help="Fold constants first.")
@click.option(
    "--compiled",
    is_flag=True,
    default=False,
    help="Evaluate through the compiled closure instead of the interpreter.",
)
@click.option(
    "--force-semicolon",
    is_flag=True,
    default=False,
    help="Require ';' between statements.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with parser options.",
)
def eval_cmd(
    expression: str,
    assignments: tuple[str, ...],
    optimize: bool,
    compiled: bool,
    force_semicolon: bool,
    config_path: Path | None,
):
    """Evaluate EXPRESSION and print its value."""
    variables = dict(_parse_assignment(a) for a in assignments)
    try:
        config = _load_config(config_path, force_semicolon)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    try:
        expr = Expression(expression, config)
        if optimize:
            expr.optimize()
        if compiled:
            result = expr.compile()(variables)
        else:
            result = expr.evaluate(variables)
    except ExpressionError as e:
        _fail(e)

    click.echo(format_number(result))


@click.command("tokens")
@click.argument("expression")
def tokens_cmd(expression: str):
    """Print the tokens of EXPRESSION, one per line."""
    try:
        tokens = Lexer(expression).tokenize()
    except ExpressionError as e:
        _fail(e)

    for token in tokens:
        if token.type == TokenType.EOF:
            break
        click.echo(f"{token.position:>4}  {token.type.name:<10} {token.value}")


@click.command("ast")
@click.argument("expression")
@click.option("--optimize", is_flag=True, default=False, help="Fold constants first.")
@click.option(
    "--force-semicolon",
    is_flag=True,
    default=False,
    help="Require ';' between statements.",
)
def ast_cmd(expression: str, optimize: bool, force_semicolon: bool):
    """Print the syntax tree of EXPRESSION."""
    try:
        expr = Expression(expression, {"force_semicolon": force_semicolon})
        if optimize:
            expr.optimize()
    except ExpressionError as e:
        _fail(e)

    click.echo(format_ast(expr.ast))
    click.echo(f"nodes: {expr.ast_node_count()}")
    names = sorted(expr.list_variables())
    click.echo(f"variables: {', '.join(names) if names else '(none)'}")
