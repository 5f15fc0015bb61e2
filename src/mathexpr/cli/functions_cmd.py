"""Function listing CLI command."""

import json

import click

from mathexpr.functions import FunctionCategory, FunctionRegistry


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON.")
def functions(as_json: bool):
    """List the built-in functions."""
    if as_json:
        click.echo(json.dumps(FunctionRegistry.export_documentation(), indent=2))
        return

    for category in FunctionCategory:
        defs = FunctionRegistry.list_by_category(category)
        if not defs:
            continue
        click.echo(click.style(category.value.capitalize(), bold=True))
        for func_def in sorted(defs, key=lambda d: d.name):
            signature = f"{func_def.name}({', '.join(func_def.parameters)})"
            click.echo(f"  {signature:<12} {func_def.description}")
