"""This module defines the transition event handed to notifiers."""


from pydantic import BaseModel, ConfigDict

from welfare_fund.models.audit import AuditEntry
from welfare_fund.models.enums import ActorRole, ApplicationStatus
from welfare_fund.models.timestamps import UtcDatetime


class TransitionEvent(BaseModel):
    """Describes an accepted status transition for the notification collaborator.

    Attributes:
        application_id: The application whose status changed.
        from_status: The status before the transition.
        to_status: The status after the transition.
        actor_role: The role of whoever performed the transition.
        timestamp: When the transition was accepted.
    """

    model_config = ConfigDict(frozen=True)

    application_id: str
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    actor_role: ActorRole
    timestamp: UtcDatetime

    @classmethod
    def from_audit_entry(cls, entry: AuditEntry) -> "TransitionEvent":
        """Builds the event that corresponds to an audit entry.

        Args:
            entry: The audit entry recorded for the transition.

        Returns:
            The transition event.
        """
        return cls(
            application_id=entry.application_id,
            from_status=entry.from_status,
            to_status=entry.to_status,
            actor_role=entry.actor_role,
            timestamp=entry.timestamp,
        )
