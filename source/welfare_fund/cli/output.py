"""This module holds the output helpers shared by the CLI command groups."""

import json
from collections.abc import Iterable, Sequence
from typing import Any, NoReturn

import click
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from welfare_fund.exceptions.review import WelfareFundError


class Context:
    """A context object to pass global options to subcommands."""

    def __init__(self, output_format: str):
        """Initializes the context.

        Args:
            output_format: The desired output format (e.g., 'text', 'json').
        """
        self.output_format = output_format


def output_format(ctx: click.Context) -> str:
    """Returns the output format chosen on the root command.

    Args:
        ctx: The click context.

    Returns:
        `text` or `json`.
    """
    obj = ctx.find_object(Context)
    return obj.output_format if obj else "text"


def echo_json(data: BaseModel | Iterable[BaseModel] | dict[str, Any]) -> None:
    """Prints models as indented JSON.

    Args:
        data: A model, an iterable of models, or a plain dictionary.
    """
    if isinstance(data, BaseModel):
        payload: Any = data.model_dump(mode="json")
    elif isinstance(data, dict):
        payload = data
    else:
        payload = [item.model_dump(mode="json") for item in data]
    click.echo(json.dumps(payload, indent=2, default=str))


def print_table(title: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Renders rows as a rich table.

    Args:
        title: The table title.
        columns: The column headers.
        rows: The rows; every value is rendered with `str`, None as empty.
    """
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if value is None else str(value) for value in row))
    Console().print(table)


def fail(error: WelfareFundError) -> NoReturn:
    """Reports a rejected action and aborts the command.

    Args:
        error: The rejection raised by the core.

    Raises:
        click.Abort: Always.
    """
    click.secho(f"Rejected ({error.kind}): {error.remarks}", fg="red", err=True)
    raise click.Abort()
