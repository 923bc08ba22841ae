"""This module defines the 'fund' command group for the welfare fund CLI."""

from datetime import datetime, timezone

import click

from welfare_fund.cli.factory import build_ledger_service
from welfare_fund.cli.output import echo_json, fail, output_format, print_table
from welfare_fund.exceptions.review import WelfareFundError
from welfare_fund.models.enums import TransactionType
from welfare_fund.models.ledger import LedgerFilter
from welfare_fund.providers.config import ConfigProvider

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


def _as_utc(value: datetime | None) -> datetime | None:
    """Interprets a date given on the command line as UTC.

    Args:
        value: The parsed date.

    Returns:
        The timezone-aware date, or None.
    """
    return value.replace(tzinfo=timezone.utc) if value is not None else None


@click.group("fund")
def fund_group() -> None:
    """Groups commands related to the welfare fund ledger."""
    pass


@fund_group.command("balance")
@click.pass_context
def balance(ctx: click.Context) -> None:
    """Shows the current fund balance.

    Args:
        ctx: The click context.
    """
    current = build_ledger_service().current_balance()
    if output_format(ctx) == "json":
        echo_json({"balance": str(current)})
        return
    click.echo(f"Current balance: {ConfigProvider.get_config().FUND_CURRENCY}{current}")


@fund_group.command("deposit")
@click.option("--amount", required=True, help="The amount received.")
@click.option("--category", default="Donation", show_default=True, help="The source of the money.")
@click.option("--processed-by", required=True, help="The operator recording the inflow.")
@click.option("--description", default=None, help="A short description.")
@click.option("--receipt-number", default=None, help="An external receipt reference.")
@click.option("--remarks", default=None, help="Free-text remarks.")
@click.pass_context
def deposit(
    ctx: click.Context,
    amount: str,
    category: str,
    processed_by: str,
    description: str | None,
    receipt_number: str | None,
    remarks: str | None,
) -> None:
    """Records money received by the fund.

    Args:
        ctx: The click context.
        amount: The amount received.
        category: The source of the money.
        processed_by: The operator recording the inflow.
        description: A short description.
        receipt_number: An external receipt reference.
        remarks: Free-text remarks.
    """
    try:
        transaction = build_ledger_service().record_inflow(
            amount,
            category,
            processed_by,
            description=description,
            remarks=remarks,
            receipt_number=receipt_number,
        )
    except WelfareFundError as e:
        fail(e)

    if output_format(ctx) == "json":
        echo_json(transaction)
        return
    click.secho(
        f"Recorded {transaction.id}: +{transaction.amount}, balance {transaction.balance_after}.",
        fg="green",
    )


@fund_group.command("history")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([t.value for t in TransactionType]),
    default=None,
    help="Only inflows or only outflows.",
)
@click.option("--category", default=None, help="Only transactions of this category.")
@click.option("--application-id", default=None, help="Only transactions linked to this application.")
@click.option("--since", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Inclusive start (UTC).")
@click.option("--until", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Exclusive end (UTC).")
@click.pass_context
def history(
    ctx: click.Context,
    transaction_type: str | None,
    category: str | None,
    application_id: str | None,
    since: datetime | None,
    until: datetime | None,
) -> None:
    """Lists ledger transactions in posting order.

    Args:
        ctx: The click context.
        transaction_type: Only inflows or only outflows.
        category: Only transactions of this category.
        application_id: Only transactions linked to this application.
        since: The inclusive start of the range.
        until: The exclusive end of the range.
    """
    try:
        ledger_filter = LedgerFilter(
            transaction_type=TransactionType(transaction_type) if transaction_type else None,
            category=category,
            linked_application_id=application_id,
            start=_as_utc(since),
            end=_as_utc(until),
        )
    except ValueError as e:
        click.secho(f"Invalid filter: {e}", fg="red", err=True)
        raise click.Abort()

    transactions = build_ledger_service().history(ledger_filter)
    if output_format(ctx) == "json":
        echo_json(transactions)
        return
    print_table(
        "Ledger history",
        ["ID", "Posted at", "Type", "Amount", "Balance after", "Category", "Application"],
        (
            (
                t.id,
                t.posted_at.strftime("%Y-%m-%d %H:%M:%S"),
                t.transaction_type,
                t.amount,
                t.balance_after,
                t.category,
                t.linked_application_id,
            )
            for t in transactions
        ),
    )


@fund_group.command("summary")
@click.option("--since", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Inclusive start (UTC).")
@click.option("--until", type=click.DateTime(formats=DATE_FORMATS), default=None, help="Exclusive end (UTC).")
@click.pass_context
def summary(ctx: click.Context, since: datetime | None, until: datetime | None) -> None:
    """Summarizes inflows and outflows over a date range.

    Args:
        ctx: The click context.
        since: The inclusive start of the range.
        until: The exclusive end of the range.
    """
    try:
        result = build_ledger_service().summary(_as_utc(since), _as_utc(until))
    except ValueError as e:
        click.secho(f"Invalid range: {e}", fg="red", err=True)
        raise click.Abort()

    if output_format(ctx) == "json":
        echo_json(result)
        return
    currency = ConfigProvider.get_config().FUND_CURRENCY
    click.echo(f"Opening balance: {currency}{result.opening_balance}")
    click.echo(f"Total inflow:    {currency}{result.total_inflow}")
    click.echo(f"Total outflow:   {currency}{result.total_outflow}")
    click.echo(f"Closing balance: {currency}{result.closing_balance}")
    click.echo(f"Transactions:    {result.transaction_count}")


@fund_group.command("compensate")
@click.argument("application_id")
@click.option("--processed-by", required=True, help="The operator recording the correction.")
@click.option("--remarks", required=True, help="The reason for the correction.")
@click.pass_context
def compensate(ctx: click.Context, application_id: str, processed_by: str, remarks: str) -> None:
    """Reverses the disbursement of an application with a compensating inflow.

    Args:
        ctx: The click context.
        application_id: The application whose disbursement is reversed.
        processed_by: The operator recording the correction.
        remarks: The reason for the correction.
    """
    try:
        transaction = build_ledger_service().compensate(application_id, processed_by, remarks)
    except WelfareFundError as e:
        fail(e)

    if output_format(ctx) == "json":
        echo_json(transaction)
        return
    click.secho(
        f"Compensated {application_id} with {transaction.id}: +{transaction.amount}, "
        f"balance {transaction.balance_after}.",
        fg="green",
    )
