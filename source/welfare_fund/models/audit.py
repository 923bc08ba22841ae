"""This module defines the Pydantic model for audit trail entries."""


from pydantic import BaseModel, ConfigDict

from welfare_fund.models.enums import ActorRole, ApplicationStatus
from welfare_fund.models.timestamps import UtcDatetime


class AuditEntry(BaseModel):
    """Represents one accepted status transition of an application.

    Entries are only ever appended. A rejected transition attempt never
    produces an entry.

    Attributes:
        id: The unique identifier of the entry.
        application_id: The application whose status changed.
        sequence_no: The position of the entry within the application's trail.
        from_status: The status before the transition.
        to_status: The status after the transition.
        actor_role: The role of whoever performed the transition.
        actor_id: The identifier of whoever performed the transition.
        timestamp: When the transition was accepted.
        remarks: Optional free-text remarks.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    application_id: str
    sequence_no: int
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    actor_role: ActorRole
    actor_id: str
    timestamp: UtcDatetime
    remarks: str | None = None
