"""mathexpr CLI entry point."""

import logging

import click


@click.group()
@click.option("--verbose", "-V", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """mathexpr: evaluate and inspect mathematical expressions."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


# Register subcommands
from mathexpr.cli.expr_cmd import ast_cmd, eval_cmd, tokens_cmd  # noqa: E402
from mathexpr.cli.functions_cmd import functions  # noqa: E402

cli.add_command(eval_cmd)
cli.add_command(tokens_cmd)
cli.add_command(ast_cmd)
cli.add_command(functions)
