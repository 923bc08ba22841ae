"""This module defines the repository for handling welfare fund ledger operations."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Connection, Engine, Select, func, insert, select, text

from welfare_fund.models.enums import TransactionType
from welfare_fund.models.ledger import LedgerFilter, LedgerSummary, LedgerTransaction
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.repositories.schema import ledger_transactions


class LedgerRepository:
    """Handles all database operations related to the welfare fund ledger.

    The ledger table is append-only: there are inserts and reads, nothing
    else. The balance is never stored on its own; it is the `balance_after`
    of the row with the highest `sequence_no`.

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

    def acquire_posting_lock(self, conn: Connection, lock_key: int) -> None:
        """Takes the database-level posting lock for the current transaction.

        On PostgreSQL this is a transaction-scoped advisory lock, released on
        commit or rollback, which serializes posts across processes. Other
        backends rely on the in-process lock held by the ledger service.

        Args:
            conn: The connection of the surrounding transaction.
            lock_key: The advisory lock key shared by every writer.
        """
        if conn.dialect.name == "postgresql":
            conn.execute(text("SELECT pg_advisory_xact_lock(:lock_key)"), {"lock_key": lock_key})

    def get_last_transaction(self, conn: Connection | None = None) -> LedgerTransaction | None:
        """Returns the most recently posted transaction.

        Args:
            conn: An optional connection of a surrounding transaction. When
                omitted, a short-lived connection is used.

        Returns:
            The latest transaction, or None if the ledger is empty.
        """
        stmt = select(ledger_transactions).order_by(ledger_transactions.c.sequence_no.desc()).limit(1)
        if conn is not None:
            row = conn.execute(stmt).mappings().first()
        else:
            with self.engine.connect() as own_conn:
                row = own_conn.execute(stmt).mappings().first()
        return LedgerTransaction.model_validate(dict(row)) if row else None

    def save_transaction(self, conn: Connection, transaction: LedgerTransaction) -> None:
        """Appends a transaction to the ledger.

        Args:
            conn: The connection of the surrounding transaction.
            transaction: The fully computed transaction to insert.
        """
        conn.execute(insert(ledger_transactions).values(**transaction.model_dump(mode="python")))
        self.logger.info(
            f"Posted {transaction.transaction_type} {transaction.id} of {transaction.amount}; "
            f"balance after is {transaction.balance_after}."
        )

    def get_max_sequence_no(self) -> int:
        """Returns the sequence number of the latest transaction.

        Returns:
            The highest sequence number, or 0 if the ledger is empty.
        """
        with self.engine.connect() as conn:
            result = conn.execute(select(func.max(ledger_transactions.c.sequence_no))).scalar_one_or_none()
        return result or 0

    def get_page(
        self,
        ledger_filter: LedgerFilter,
        after_sequence_no: int,
        up_to_sequence_no: int,
        limit: int,
    ) -> list[LedgerTransaction]:
        """Fetches one page of history using keyset pagination.

        Args:
            ledger_filter: The criteria to apply.
            after_sequence_no: Only transactions after this position.
            up_to_sequence_no: Only transactions up to and including this position.
            limit: The maximum number of transactions to return.

        Returns:
            The transactions in posting order.
        """
        stmt = self._apply_filter(select(ledger_transactions), ledger_filter)
        stmt = (
            stmt.where(ledger_transactions.c.sequence_no > after_sequence_no)
            .where(ledger_transactions.c.sequence_no <= up_to_sequence_no)
            .order_by(ledger_transactions.c.sequence_no)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().fetchall()
        return [LedgerTransaction.model_validate(dict(row)) for row in rows]

    def find_for_application(
        self,
        application_id: str,
        transaction_type: TransactionType,
        conn: Connection | None = None,
    ) -> LedgerTransaction | None:
        """Finds the transaction of a given direction linked to an application.

        Args:
            application_id: The linked application.
            transaction_type: The direction to look for.
            conn: An optional connection of a surrounding transaction.

        Returns:
            The transaction, or None if there is none.
        """
        stmt = (
            select(ledger_transactions)
            .where(ledger_transactions.c.linked_application_id == application_id)
            .where(ledger_transactions.c.transaction_type == transaction_type.value)
        )
        if conn is not None:
            row = conn.execute(stmt).mappings().first()
        else:
            with self.engine.connect() as own_conn:
                row = own_conn.execute(stmt).mappings().first()
        return LedgerTransaction.model_validate(dict(row)) if row else None

    def get_summary(self, start: datetime | None = None, end: datetime | None = None) -> LedgerSummary:
        """Calculates inflow and outflow totals and the balances bounding a range.

        Args:
            start: The inclusive start of the range.
            end: The exclusive end of the range.

        Returns:
            The summary of the range.
        """
        ledger_filter = LedgerFilter(start=start, end=end)
        totals_stmt = self._apply_filter(
            select(
                ledger_transactions.c.transaction_type,
                func.count().label("count"),
                func.coalesce(func.sum(ledger_transactions.c.amount), 0).label("total"),
            ),
            ledger_filter,
        ).group_by(ledger_transactions.c.transaction_type)

        with self.engine.connect() as conn:
            totals = conn.execute(totals_stmt).mappings().fetchall()
            opening = self._balance_before(conn, ledger_filter.start)
            closing = self._balance_before(conn, ledger_filter.end)

        summary = LedgerSummary(start=start, end=end, opening_balance=opening, closing_balance=closing)
        for row in totals:
            total = Decimal(str(row["total"])).quantize(Decimal("0.01"))
            summary.transaction_count += int(row["count"])
            if row["transaction_type"] == TransactionType.INFLOW.value:
                summary.total_inflow = total
            else:
                summary.total_outflow = total
        return summary

    def _balance_before(self, conn: Connection, instant: datetime | None) -> Decimal:
        """Returns the balance after the last transaction posted before an instant.

        Args:
            conn: The connection to use.
            instant: The instant; None means the current balance.

        Returns:
            The balance, or 0 if nothing was posted before the instant.
        """
        stmt = select(ledger_transactions.c.balance_after).order_by(ledger_transactions.c.sequence_no.desc()).limit(1)
        if instant is not None:
            stmt = stmt.where(ledger_transactions.c.posted_at < instant)
        balance = conn.execute(stmt).scalar_one_or_none()
        return Decimal(str(balance)).quantize(Decimal("0.01")) if balance is not None else Decimal("0.00")

    @staticmethod
    def _apply_filter(stmt: Select, ledger_filter: LedgerFilter) -> Select:
        """Adds the WHERE clauses of a filter to a statement.

        Args:
            stmt: The statement to restrict.
            ledger_filter: The criteria to apply.

        Returns:
            The restricted statement.
        """
        if ledger_filter.transaction_type is not None:
            stmt = stmt.where(ledger_transactions.c.transaction_type == ledger_filter.transaction_type.value)
        if ledger_filter.category is not None:
            stmt = stmt.where(ledger_transactions.c.category == ledger_filter.category)
        if ledger_filter.linked_application_id is not None:
            stmt = stmt.where(ledger_transactions.c.linked_application_id == ledger_filter.linked_application_id)
        if ledger_filter.start is not None:
            stmt = stmt.where(ledger_transactions.c.posted_at >= ledger_filter.start)
        if ledger_filter.end is not None:
            stmt = stmt.where(ledger_transactions.c.posted_at < ledger_filter.end)
        return stmt
