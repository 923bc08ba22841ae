"""This module defines the 'applications' command group for the welfare fund CLI."""

import click

from welfare_fund.cli.factory import build_review_service
from welfare_fund.cli.output import echo_json, fail, output_format, print_table
from welfare_fund.exceptions.review import WelfareFundError
from welfare_fund.models.enums import ApplicationStatus


@click.group("applications")
def applications_group() -> None:
    """Groups read-only commands over financial-aid applications."""
    pass


@applications_group.command("show")
@click.argument("application_id")
@click.pass_context
def show(ctx: click.Context, application_id: str) -> None:
    """Shows one application.

    Args:
        ctx: The click context.
        application_id: The application identifier.
    """
    try:
        application = build_review_service().get_application(application_id)
    except WelfareFundError as e:
        fail(e)

    if output_format(ctx) == "json":
        echo_json(application)
        return
    click.echo(f"Application:  {application.id}")
    click.echo(f"Student:      {application.student_id}")
    click.echo(f"Category:     {application.category_id}")
    click.echo(f"Purpose:      {application.purpose or '-'}")
    click.echo(f"Status:       {application.status}")
    click.echo(f"Requested:    {application.requested_amount} (ceiling {application.ceiling_amount})")
    if application.committee_amount is not None:
        click.echo(f"Committee:    {application.committee_amount}")
    if application.approved_amount is not None:
        click.echo(f"Approved:     {application.approved_amount}")


@applications_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ApplicationStatus], case_sensitive=False),
    default=None,
    help="Only applications currently in this status.",
)
@click.option("--limit", type=int, default=100, show_default=True, help="The maximum number of applications.")
@click.pass_context
def list_applications(ctx: click.Context, status: str | None, limit: int) -> None:
    """Lists applications, oldest first.

    Args:
        ctx: The click context.
        status: Only applications currently in this status.
        limit: The maximum number of applications.
    """
    applications = build_review_service().list_applications(
        ApplicationStatus(status.upper()) if status else None,
        limit,
    )
    if output_format(ctx) == "json":
        echo_json(applications)
        return
    print_table(
        "Applications",
        ["ID", "Student", "Category", "Status", "Requested", "Approved"],
        ((a.id, a.student_id, a.category_id, a.status, a.requested_amount, a.approved_amount) for a in applications),
    )


@applications_group.command("trail")
@click.argument("application_id")
@click.pass_context
def trail(ctx: click.Context, application_id: str) -> None:
    """Shows the audit trail of an application.

    Args:
        ctx: The click context.
        application_id: The application identifier.
    """
    try:
        entries = build_review_service().audit_trail(application_id)
    except WelfareFundError as e:
        fail(e)

    if output_format(ctx) == "json":
        echo_json(entries)
        return
    print_table(
        f"Audit trail of {application_id}",
        ["#", "Timestamp", "From", "To", "Role", "Actor", "Remarks"],
        (
            (
                entry.sequence_no,
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.from_status or "-",
                entry.to_status,
                entry.actor_role,
                entry.actor_id,
                entry.remarks,
            )
            for entry in entries
        ),
    )


@applications_group.command("stats")
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Shows counts per status and the total approved amount.

    Args:
        ctx: The click context.
    """
    statistics = build_review_service().statistics()
    if output_format(ctx) == "json":
        echo_json(statistics)
        return
    click.echo(f"Total applications: {statistics.total}")
    click.echo(f"Pending review:     {statistics.pending}")
    click.echo(f"Awaiting receipt:   {statistics.awaiting_receipt}")
    click.echo(f"Completed:          {statistics.completed}")
    click.echo(f"Total approved:     {statistics.total_approved_amount}")
    for status, count in sorted(statistics.by_status.items()):
        click.echo(f"  {status}: {count}")
