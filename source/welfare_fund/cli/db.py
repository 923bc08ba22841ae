"""This module defines the 'db' command group for the welfare fund CLI."""

import os
import subprocess  # nosec B404

import click

from welfare_fund.cli.factory import build_ledger_service
from welfare_fund.cli.output import fail
from welfare_fund.exceptions.review import WelfareFundError
from welfare_fund.models.categories import DEFAULT_CATEGORIES
from welfare_fund.providers.database import DatabaseManager
from welfare_fund.repositories.categories import CategoriesRepository


def _alembic(*args: str) -> None:
    """Runs an alembic command through poetry.

    Args:
        *args: The alembic arguments, e.g. `upgrade head`.

    Raises:
        subprocess.CalledProcessError: If alembic exits with an error.
    """
    subprocess.run(["poetry", "run", "alembic", *args], check=True)  # nosec B603, B607


@click.group("db")
@click.option("--schema", default=None, help="The database schema to use.")
def db_group(schema: str | None) -> None:
    """Groups commands related to database management.

    Args:
        schema: The database schema to use.
    """
    if schema:
        os.environ["POSTGRES_DB_SCHEMA"] = schema


@db_group.command("migrate")
def migrate() -> None:
    """Runs database migrations to the latest version."""
    click.echo("Running database migrations...")
    try:
        _alembic("upgrade", "head")
        click.secho("Migrations completed successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during migration: {e}", fg="red")
        raise click.Abort()


@db_group.command("downgrade")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def downgrade(yes: bool) -> None:
    """Downgrades the database to the previous version.

    Args:
        yes: Skip confirmation prompt.
    """
    if not yes:
        click.confirm(
            "Warning: This drops the welfare fund tables, including the ledger. "
            "Are you sure you want to continue?",
            abort=True,
        )

    click.echo("Downgrading database...")
    try:
        _alembic("downgrade", "-1")
        click.secho("Downgrade completed successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during downgrade: {e}", fg="red")
        raise click.Abort()


@db_group.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def reset(yes: bool) -> None:
    """Resets the database by downgrading all migrations and then upgrading to the latest.

    Warning: This is a destructive operation and will result in data loss.

    Args:
        yes: Skip confirmation prompt.
    """
    if not yes:
        click.confirm(
            "Are you sure you want to reset the database? This will delete all data.",
            abort=True,
        )
    click.echo("Resetting database...")
    try:
        click.echo("Downgrading to base...")
        _alembic("downgrade", "base")
        click.echo("Upgrading to head...")
        _alembic("upgrade", "head")
        click.secho("Database reset successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during reset: {e}", fg="red")
        raise click.Abort()


@db_group.command("seed")
@click.option(
    "--opening-balance",
    type=str,
    default=None,
    help="Record an initial inflow so that the fund can disburse.",
)
@click.option("--processed-by", default="system", show_default=True, help="The operator recorded on the inflow.")
def seed(opening_balance: str | None, processed_by: str) -> None:
    """Loads the default funding categories, and optionally an opening balance.

    Args:
        opening_balance: The amount of the initial inflow.
        processed_by: The operator recorded on the inflow.
    """
    repository = CategoriesRepository(DatabaseManager.get_engine())
    for category in DEFAULT_CATEGORIES:
        repository.upsert_category(category)
        click.echo(f"Seeded {category.id} (ceiling {category.max_amount}).")

    if opening_balance is not None:
        try:
            transaction = build_ledger_service().record_inflow(
                opening_balance,
                "Initial Fund",
                processed_by,
                description="Opening balance",
            )
        except WelfareFundError as e:
            fail(e)
        click.echo(f"Recorded opening balance {transaction.amount} as {transaction.id}.")

    click.secho("Seeding completed successfully!", fg="green")
