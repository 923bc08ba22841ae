"""This module defines the service that owns the welfare fund balance.

Every posting reads the latest transaction, computes the new balance and
appends the result while holding the posting lock, so that no two postings
can ever be computed from the same previous balance.
"""

import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import Connection

from welfare_fund.exceptions.review import InsufficientFunds, InvalidAmount, InvalidTransition
from welfare_fund.models.enums import TransactionType
from welfare_fund.models.ledger import LedgerFilter, LedgerSummary, LedgerTransaction, NewLedgerTransaction
from welfare_fund.models.money import ZERO
from welfare_fund.providers.clock import ClockProvider
from welfare_fund.providers.config import Config, ConfigProvider
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.repositories.ledger import LedgerRepository


class LedgerHistory:
    """A lazy, finite and restartable view over the ledger.

    Each iteration takes a snapshot of the latest sequence number when it
    starts and then reads pages up to that position, so transactions posted
    while iterating are not included and the iteration always ends. Iterating
    again starts a new snapshot.

    Args:
        ledger_repo: The repository to read from.
        ledger_filter: The criteria to apply.
        page_size: The number of transactions fetched per query.
    """

    def __init__(self, ledger_repo: LedgerRepository, ledger_filter: LedgerFilter, page_size: int) -> None:
        """Initializes the view.

        Args:
            ledger_repo: The repository to read from.
            ledger_filter: The criteria to apply.
            page_size: The number of transactions fetched per query.
        """
        self.ledger_repo = ledger_repo
        self.ledger_filter = ledger_filter
        self.page_size = page_size

    def __iter__(self) -> Iterator[LedgerTransaction]:
        """Yields the matching transactions in posting order.

        Yields:
            The transactions, oldest first.
        """
        up_to = self.ledger_repo.get_max_sequence_no()
        after = 0
        while True:
            page = self.ledger_repo.get_page(self.ledger_filter, after, up_to, self.page_size)
            yield from page
            if len(page) < self.page_size:
                return
            after = page[-1].sequence_no


class FundLedgerService:
    """Posts and reads transactions of the single shared welfare fund.

    The in-process lock is shared by every instance, so all services built
    in one process serialize on the same balance. On PostgreSQL a
    transaction-scoped advisory lock extends this to every process.
    """

    ledger_repo: LedgerRepository
    clock: ClockProvider
    logger: Logger
    config: Config

    _posting_lock = threading.RLock()

    def __init__(self, ledger_repo: LedgerRepository, clock: ClockProvider | None = None) -> None:
        """Initializes the service with its dependencies.

        Args:
            ledger_repo: The repository for ledger transactions.
            clock: The clock used to stamp postings.
        """
        self.ledger_repo = ledger_repo
        self.clock = clock or ClockProvider()
        self.logger = LoggingProvider().get_logger()
        self.config = ConfigProvider.get_config()

    @contextmanager
    def serialized(self) -> Iterator[Connection]:
        """Opens a database transaction that holds the posting lock.

        Everything done on the yielded connection commits together, and no
        other posting can start until it has committed or rolled back.

        Yields:
            The connection of the serialized transaction.
        """
        with self._posting_lock:
            with self.ledger_repo.engine.begin() as conn:
                self.ledger_repo.acquire_posting_lock(conn, self.config.LEDGER_ADVISORY_LOCK_KEY)
                yield conn

    def current_balance(self) -> Decimal:
        """Returns the current fund balance.

        Returns:
            The `balance_after` of the latest transaction, or zero.
        """
        last = self.ledger_repo.get_last_transaction()
        return last.balance_after if last else ZERO

    def post(
        self,
        transaction_type: TransactionType,
        amount: Decimal | str | int,
        category: str,
        linked_application_id: str | None = None,
        description: str | None = None,
        processed_by: str | None = None,
        remarks: str | None = None,
        receipt_number: str | None = None,
    ) -> LedgerTransaction:
        """Appends a transaction in its own serialized database transaction.

        Args:
            transaction_type: Whether money enters or leaves the fund.
            amount: The positive amount to move.
            category: The ledger category.
            linked_application_id: The application the transaction belongs to.
            description: A short description.
            processed_by: The operator or actor causing the transaction.
            remarks: Optional free-text remarks.
            receipt_number: An optional external receipt reference.

        Returns:
            The posted transaction.

        Raises:
            InvalidAmount: If the amount is not a positive two-place decimal.
            InsufficientFunds: If an outflow would drive the balance below zero.
        """
        new_transaction = self._build(
            transaction_type=transaction_type,
            amount=amount,
            category=category,
            linked_application_id=linked_application_id,
            description=description,
            processed_by=processed_by,
            remarks=remarks,
            receipt_number=receipt_number,
        )
        with self.serialized() as conn:
            return self.post_in(conn, new_transaction)

    def post_in(self, conn: Connection, new_transaction: NewLedgerTransaction) -> LedgerTransaction:
        """Appends a transaction inside a transaction opened by `serialized`.

        Nothing is committed here; the caller's unit commits or rolls back the
        posting together with its own writes.

        Args:
            conn: The connection yielded by `serialized`.
            new_transaction: The transaction to post.

        Returns:
            The posted transaction.

        Raises:
            InsufficientFunds: If an outflow would drive the balance below zero.
        """
        last = self.ledger_repo.get_last_transaction(conn)
        balance = last.balance_after if last else ZERO

        if new_transaction.transaction_type == TransactionType.OUTFLOW:
            balance_after = balance - new_transaction.amount
            if balance_after < ZERO:
                self.logger.warning(
                    f"Rejected outflow of {new_transaction.amount}; balance is {balance}."
                )
                raise InsufficientFunds(
                    f"Insufficient funds: balance is {self.config.FUND_CURRENCY}{balance}, "
                    f"requested {self.config.FUND_CURRENCY}{new_transaction.amount}.",
                    balance=balance,
                    amount=new_transaction.amount,
                )
        else:
            balance_after = balance + new_transaction.amount

        posted_at = self.clock.now()
        if last is not None and posted_at <= last.posted_at:
            posted_at = last.posted_at + ClockProvider.RESOLUTION

        transaction = LedgerTransaction(
            id=self._new_transaction_id(posted_at),
            sequence_no=(last.sequence_no if last else 0) + 1,
            balance_after=balance_after,
            posted_at=posted_at,
            **new_transaction.model_dump(),
        )
        self.ledger_repo.save_transaction(conn, transaction)
        return transaction

    def history(self, ledger_filter: LedgerFilter | None = None) -> LedgerHistory:
        """Returns the transactions matching a filter.

        Args:
            ledger_filter: The criteria to apply. All transactions when omitted.

        Returns:
            A lazy, restartable iterable in posting order.
        """
        return LedgerHistory(
            self.ledger_repo,
            ledger_filter or LedgerFilter(),
            self.config.LEDGER_HISTORY_PAGE_SIZE,
        )

    def record_inflow(
        self,
        amount: Decimal | str | int,
        category: str,
        processed_by: str,
        description: str | None = None,
        remarks: str | None = None,
        receipt_number: str | None = None,
    ) -> LedgerTransaction:
        """Records money received by the fund, such as a grant or donation.

        Args:
            amount: The positive amount received.
            category: The source of the money, e.g. `Donation`.
            processed_by: The operator recording the inflow.
            description: A short description.
            remarks: Optional free-text remarks.
            receipt_number: An optional external receipt reference.

        Returns:
            The posted transaction.

        Raises:
            InvalidAmount: If the amount is not a positive two-place decimal.
        """
        return self.post(
            TransactionType.INFLOW,
            amount,
            category,
            description=description or f"{category} received",
            processed_by=processed_by,
            remarks=remarks,
            receipt_number=receipt_number,
        )

    def compensate(self, application_id: str, processed_by: str, remarks: str | None = None) -> LedgerTransaction:
        """Reverses the disbursement of an application with a new inflow.

        The original outflow stays in the ledger untouched. Only one
        compensating entry can exist per application.

        Args:
            application_id: The application whose disbursement is reversed.
            processed_by: The operator recording the correction.
            remarks: The reason for the correction.

        Returns:
            The compensating transaction.

        Raises:
            InvalidTransition: If the application has no disbursement or was
                already compensated.
        """
        with LoggingProvider().set_correlation_id(application_id):
            with self.serialized() as conn:
                outflow = self.ledger_repo.find_for_application(application_id, TransactionType.OUTFLOW, conn)
                if outflow is None:
                    raise InvalidTransition(
                        f"Application {application_id} has no disbursement to compensate.",
                        application_id=application_id,
                    )
                if self.ledger_repo.find_for_application(application_id, TransactionType.INFLOW, conn) is not None:
                    raise InvalidTransition(
                        f"The disbursement of application {application_id} was already compensated.",
                        application_id=application_id,
                    )
                transaction = self.post_in(
                    conn,
                    NewLedgerTransaction(
                        transaction_type=TransactionType.INFLOW,
                        amount=outflow.amount,
                        category=outflow.category,
                        linked_application_id=application_id,
                        description=f"Reversal of {outflow.id}",
                        processed_by=processed_by,
                        remarks=remarks,
                    ),
                )
            self.logger.info(f"Compensated disbursement {outflow.id} with {transaction.id}.")
            return transaction

    def summary(self, start: datetime | None = None, end: datetime | None = None) -> LedgerSummary:
        """Summarizes the ledger over a date range.

        Args:
            start: The inclusive start of the range.
            end: The exclusive end of the range.

        Returns:
            The totals and bounding balances of the range.

        Raises:
            ValueError: If `start` is after `end`.
        """
        if start is not None and end is not None and start > end:
            raise ValueError("The start of the range must not be after its end.")
        return self.ledger_repo.get_summary(start, end)

    def _build(self, **fields: object) -> NewLedgerTransaction:
        """Validates the fields of a requested transaction.

        Args:
            **fields: The fields of `NewLedgerTransaction`.

        Returns:
            The validated transaction.

        Raises:
            InvalidAmount: If the amount is not a positive two-place decimal.
        """
        try:
            return NewLedgerTransaction.model_validate(fields)
        except ValidationError as e:
            raise InvalidAmount(
                "Ledger amounts must be positive with at most two decimals.",
                amount=fields.get("amount"),
            ) from e

    def _new_transaction_id(self, posted_at: datetime) -> str:
        """Generates a transaction identifier such as `TXN-20250101-1A2B3C4D`.

        Args:
            posted_at: The posting time, whose date goes into the identifier.

        Returns:
            The identifier.
        """
        return f"{self.config.TRANSACTION_ID_PREFIX}-{posted_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
