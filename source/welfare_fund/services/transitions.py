"""This module holds the transition table of the review workflow.

Reviewer decisions are looked up by the pair of the current status and the
role of the actor, so a role can never act on a status it does not own.
"""

from decimal import Decimal

from welfare_fund.exceptions.review import InvalidTransition
from welfare_fund.models.applications import Application
from welfare_fund.models.enums import ActorRole, ApplicationStatus, Decision

DECISIONS: dict[tuple[ApplicationStatus, ActorRole], dict[Decision, ApplicationStatus]] = {
    (ApplicationStatus.COMMITTEE_PENDING, ActorRole.COMMITTEE): {
        Decision.APPROVE: ApplicationStatus.COMMITTEE_APPROVED,
        Decision.REJECT: ApplicationStatus.COMMITTEE_REJECTED,
    },
    (ApplicationStatus.ADMIN_PENDING, ActorRole.ADMIN): {
        Decision.APPROVE: ApplicationStatus.APPROVED,
        Decision.REJECT: ApplicationStatus.ADMIN_REJECTED,
    },
}

CANCELLABLE_STATUSES = frozenset(
    {
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.COMMITTEE_PENDING,
        ApplicationStatus.ADMIN_PENDING,
    }
)

TERMINAL_STATUSES = frozenset(
    {
        ApplicationStatus.COMMITTEE_REJECTED,
        ApplicationStatus.ADMIN_REJECTED,
        ApplicationStatus.COMPLETED,
        ApplicationStatus.CANCELLED,
    }
)


def resolve_decision(application: Application, actor_role: ActorRole, decision: Decision) -> ApplicationStatus:
    """Returns the status a reviewer decision leads to.

    Args:
        application: The application being decided.
        actor_role: The role of the deciding actor.
        decision: The verdict.

    Returns:
        The target status.

    Raises:
        InvalidTransition: If the current status does not accept a decision
            from `actor_role`.
    """
    outcomes = DECISIONS.get((application.status, actor_role))
    if outcomes is None:
        raise InvalidTransition(
            f"Application {application.id} in status {application.status} does not accept a decision "
            f"from {actor_role}.",
            application_id=application.id,
            status=application.status.value,
            actor_role=actor_role.value,
        )
    return outcomes[decision]


def approval_ceiling(application: Application, actor_role: ActorRole) -> Decimal:
    """Returns the highest amount a reviewer may approve.

    The committee is bound by the ceiling snapshotted at submission. The
    administration is bound by the committee's amount when the committee
    decided first. Neither may exceed the amount requested.

    Args:
        application: The application being decided.
        actor_role: The role of the deciding actor.

    Returns:
        The inclusive upper bound.
    """
    ceiling = application.ceiling_amount
    if actor_role == ActorRole.ADMIN and application.committee_amount is not None:
        ceiling = application.committee_amount
    return min(ceiling, application.requested_amount)


def ensure_cancellable(application: Application) -> None:
    """Checks that the student may still withdraw an application.

    Args:
        application: The application to cancel.

    Raises:
        InvalidTransition: If the status does not allow cancellation, or a
            reviewer already recorded a decision.
    """
    if application.status not in CANCELLABLE_STATUSES:
        raise InvalidTransition(
            f"Application {application.id} cannot be cancelled in status {application.status}.",
            application_id=application.id,
            status=application.status.value,
        )
    if application.has_reviewer_decision:
        raise InvalidTransition(
            f"Application {application.id} cannot be cancelled after a reviewer decision.",
            application_id=application.id,
            status=application.status.value,
        )
