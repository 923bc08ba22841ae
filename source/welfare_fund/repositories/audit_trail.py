"""This module defines the repository for the application audit trail."""

import uuid
from datetime import datetime

from sqlalchemy import Connection, Engine, func, insert, select

from welfare_fund.models.audit import AuditEntry
from welfare_fund.models.enums import ActorRole, ApplicationStatus
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.repositories.schema import application_audit_entries


class AuditTrailRepository:
    """Handles database operations for the audit trail of applications.

    This repository is responsible for creating records in the
    `application_audit_entries` table, which serves as an audit trail for the
    lifecycle of each application. It deliberately offers no way to change or
    remove an entry.

    Args:
        engine: An SQLAlchemy Engine instance for database communication.
    """

    logger: Logger
    engine: Engine

    def __init__(self, engine: Engine) -> None:
        """Initializes the repository with a database engine.

        Args:
            engine: The SQLAlchemy Engine to be used for all database
                communications.
        """
        self.logger = LoggingProvider().get_logger()
        self.engine = engine

    def append(
        self,
        conn: Connection,
        application_id: str,
        from_status: ApplicationStatus | None,
        to_status: ApplicationStatus,
        actor_role: ActorRole,
        actor_id: str,
        timestamp: datetime,
        remarks: str | None = None,
    ) -> AuditEntry:
        """Appends a new entry to an application's trail.

        Args:
            conn: The connection of the surrounding transaction.
            application_id: The application whose status changed.
            from_status: The status before the transition.
            to_status: The status after the transition.
            actor_role: The role of whoever performed the transition.
            actor_id: The identifier of whoever performed the transition.
            timestamp: When the transition was accepted.
            remarks: Optional free-text remarks.

        Returns:
            The recorded entry.
        """
        self.logger.info(f"Recording transition {from_status} -> {to_status} for application {application_id}.")
        last_sequence = conn.execute(
            select(func.max(application_audit_entries.c.sequence_no)).where(
                application_audit_entries.c.application_id == application_id
            )
        ).scalar_one_or_none()

        entry = AuditEntry(
            id=str(uuid.uuid4()),
            application_id=application_id,
            sequence_no=(last_sequence or 0) + 1,
            from_status=from_status,
            to_status=to_status,
            actor_role=actor_role,
            actor_id=actor_id,
            timestamp=timestamp,
            remarks=remarks,
        )
        conn.execute(insert(application_audit_entries).values(**entry.model_dump(mode="python")))
        return entry

    def list_for_application(self, application_id: str) -> list[AuditEntry]:
        """Returns the full trail of an application in the order it was written.

        Args:
            application_id: The application identifier.

        Returns:
            The entries ordered by timestamp.
        """
        stmt = (
            select(application_audit_entries)
            .where(application_audit_entries.c.application_id == application_id)
            .order_by(application_audit_entries.c.timestamp, application_audit_entries.c.sequence_no)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().fetchall()
        return [AuditEntry.model_validate(dict(row)) for row in rows]
