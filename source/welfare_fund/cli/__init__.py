"""This module initializes the CLI application."""

import click

from welfare_fund.cli.applications import applications_group
from welfare_fund.cli.db import db_group
from welfare_fund.cli.fund import fund_group
from welfare_fund.cli.output import Context
from welfare_fund.providers.logging import LoggingProvider


def create_cli() -> click.Group:
    """Create and configure the main CLI group with all subcommands.

    This function acts as a factory for the CLI application. It imports
    command groups from other modules and adds them to a root group.

    Returns:
        The main Click command group for the application.
    """

    @click.group()
    @click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        help="Override the default log level for this command.",
    )
    @click.option(
        "--output",
        type=click.Choice(["text", "json"], case_sensitive=False),
        default="text",
        help="Set the output format.",
    )
    @click.pass_context
    def cli(ctx: click.Context, log_level: str | None, output: str) -> None:
        """A command-line interface for the student welfare fund.

        It manages the database, records money received by the fund, and
        reports on the ledger and on applications under review.

        Args:
            ctx: The Click context object.
            log_level: The desired logging level.
            output: The desired output format.
        """
        LoggingProvider().get_logger(level_override=log_level)
        ctx.obj = Context(output_format=output.lower())

    cli.add_command(db_group)
    cli.add_command(fund_group)
    cli.add_command(applications_group)

    return cli
