"""This module defines the repository for financial-aid applications."""

from decimal import Decimal

from sqlalchemy import Connection, Engine, func, insert, select, update

from welfare_fund.exceptions.review import ApplicationNotFound, InvalidTransition
from welfare_fund.models.applications import Application, ApplicationStatistics
from welfare_fund.models.enums import ApplicationStatus
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.repositories.schema import applications

PENDING_STATUSES = (
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.COMMITTEE_PENDING,
    ApplicationStatus.COMMITTEE_APPROVED,
    ApplicationStatus.ADMIN_PENDING,
)
AWAITING_RECEIPT_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.NEED_RECEIPT)

_DECISION_COLUMNS = (
    "status",
    "updated_at",
    "committee_amount",
    "approved_amount",
    "admin_id",
    "admin_decided_at",
    "admin_remarks",
    "committee_id",
    "committee_decided_at",
    "committee_remarks",
)


class ApplicationsRepository:
    """Handles database operations for applications.

    Applications are never deleted. Writes take an explicit connection so the
    review service can combine them with audit and ledger writes in a single
    transaction.

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

    def create(self, conn: Connection, application: Application) -> None:
        """Inserts a newly submitted application.

        Args:
            conn: The connection of the surrounding transaction.
            application: The application to insert.
        """
        conn.execute(insert(applications).values(**application.model_dump(mode="python")))
        self.logger.info(f"Inserted application {application.id} in status {application.status}.")

    def get(self, application_id: str) -> Application:
        """Retrieves an application by its identifier.

        Args:
            application_id: The application identifier.

        Returns:
            The application.

        Raises:
            ApplicationNotFound: If no application has that identifier.
        """
        with self.engine.connect() as conn:
            return self._fetch(conn, application_id, for_update=False)

    def get_for_update(self, conn: Connection, application_id: str) -> Application:
        """Retrieves an application and locks its row for the current transaction.

        Args:
            conn: The connection of the surrounding transaction.
            application_id: The application identifier.

        Returns:
            The application.

        Raises:
            ApplicationNotFound: If no application has that identifier.
        """
        return self._fetch(conn, application_id, for_update=True)

    def _fetch(self, conn: Connection, application_id: str, for_update: bool) -> Application:
        """Runs the lookup shared by `get` and `get_for_update`.

        Args:
            conn: The connection to use.
            application_id: The application identifier.
            for_update: Whether to lock the row.

        Returns:
            The application.

        Raises:
            ApplicationNotFound: If no application has that identifier.
        """
        stmt = select(applications).where(applications.c.id == application_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = conn.execute(stmt).mappings().first()
        if row is None:
            raise ApplicationNotFound(f"Application {application_id} does not exist.", application_id=application_id)
        return Application.model_validate(dict(row))

    def save_transition(self, conn: Connection, application: Application, expected_status: ApplicationStatus) -> None:
        """Persists the outcome of a transition.

        The update only applies while the stored status still equals
        `expected_status`, so two reviewers racing on the same application
        cannot both succeed.

        Args:
            conn: The connection of the surrounding transaction.
            application: The application carrying its new state.
            expected_status: The status the transition started from.

        Raises:
            InvalidTransition: If the stored status changed in the meantime.
        """
        values = {column: getattr(application, column) for column in _DECISION_COLUMNS}
        stmt = (
            update(applications)
            .where(applications.c.id == application.id)
            .where(applications.c.status == expected_status.value)
            .values(**values)
        )
        result = conn.execute(stmt)
        if result.rowcount != 1:
            raise InvalidTransition(
                f"Application {application.id} is no longer in status {expected_status}.",
                application_id=application.id,
                expected_status=expected_status.value,
            )

    def list_by_status(self, status: ApplicationStatus | None = None, limit: int = 100) -> list[Application]:
        """Lists applications, oldest submission first.

        Args:
            status: If given, only applications currently in this status.
            limit: The maximum number of applications to return.

        Returns:
            A list of applications.
        """
        stmt = select(applications).order_by(applications.c.submitted_at, applications.c.id).limit(limit)
        if status is not None:
            stmt = stmt.where(applications.c.status == status.value)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().fetchall()
        return [Application.model_validate(dict(row)) for row in rows]

    def get_statistics(self) -> ApplicationStatistics:
        """Aggregates application counts and the approved total.

        Returns:
            The statistics over all applications.
        """
        stmt = select(
            applications.c.status,
            func.count().label("count"),
            func.coalesce(func.sum(applications.c.approved_amount), 0).label("approved_total"),
        ).group_by(applications.c.status)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().fetchall()

        statistics = ApplicationStatistics()
        total_approved = Decimal("0.00")
        for row in rows:
            status = ApplicationStatus(row["status"])
            count = int(row["count"])
            statistics.by_status[status] = count
            statistics.total += count
            total_approved += Decimal(str(row["approved_total"]))
            if status in PENDING_STATUSES:
                statistics.pending += count
            elif status in AWAITING_RECEIPT_STATUSES:
                statistics.awaiting_receipt += count
            elif status == ApplicationStatus.COMPLETED:
                statistics.completed += count
        statistics.total_approved_amount = total_approved.quantize(Decimal("0.01"))
        return statistics
