from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError

from welfare_fund.models.enums import TransactionType
from welfare_fund.models.ledger import LedgerFilter, LedgerTransaction
from welfare_fund.repositories.ledger import LedgerRepository

START = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _transaction(
    sequence_no: int,
    transaction_type: TransactionType,
    amount: str,
    balance_after: str,
    category: str = "Donation",
    linked_application_id: str | None = None,
) -> LedgerTransaction:
    return LedgerTransaction(
        id=f"TXN-20250301-{sequence_no:08d}",
        sequence_no=sequence_no,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        category=category,
        linked_application_id=linked_application_id,
        balance_after=Decimal(balance_after),
        posted_at=START + timedelta(days=sequence_no),
    )


@pytest.fixture
def repo(engine: Engine) -> LedgerRepository:
    """Provides a LedgerRepository on the SQLite database."""
    return LedgerRepository(engine)


@pytest.fixture
def populated_repo(repo: LedgerRepository, engine: Engine) -> LedgerRepository:
    """Provides a repository holding three inflows and two outflows."""
    with engine.begin() as conn:
        for transaction in (
            _transaction(1, TransactionType.INFLOW, "1000.00", "1000.00"),
            _transaction(2, TransactionType.OUTFLOW, "150.00", "850.00", "CAT-ILLNESS-OUTPATIENT", "APP-1"),
            _transaction(3, TransactionType.INFLOW, "200.00", "1050.00", "Grant"),
            _transaction(4, TransactionType.OUTFLOW, "50.00", "1000.00", "CAT-BEREAVEMENT", "APP-2"),
            _transaction(5, TransactionType.INFLOW, "150.00", "1150.00", "CAT-ILLNESS-OUTPATIENT", "APP-1"),
        ):
            repo.save_transaction(conn, transaction)
    return repo


def test_acquire_posting_lock_on_postgresql() -> None:
    """Tests that the advisory lock is taken on PostgreSQL."""
    conn = MagicMock()
    conn.dialect.name = "postgresql"

    LedgerRepository(MagicMock()).acquire_posting_lock(conn, 42)

    conn.execute.assert_called_once()
    args, _ = conn.execute.call_args
    assert "pg_advisory_xact_lock" in str(args[0])
    assert args[1] == {"lock_key": 42}


def test_acquire_posting_lock_is_a_noop_elsewhere() -> None:
    """Tests that other backends rely on the in-process lock only."""
    conn = MagicMock()
    conn.dialect.name = "sqlite"

    LedgerRepository(MagicMock()).acquire_posting_lock(conn, 42)

    conn.execute.assert_not_called()


def test_empty_ledger(repo: LedgerRepository) -> None:
    """Tests the reads of a ledger without transactions."""
    assert repo.get_last_transaction() is None
    assert repo.get_max_sequence_no() == 0


def test_get_last_transaction_returns_highest_sequence(populated_repo: LedgerRepository) -> None:
    """Tests that the latest transaction carries the current balance."""
    last = populated_repo.get_last_transaction()

    assert last is not None
    assert last.sequence_no == 5
    assert last.balance_after == Decimal("1150.00")
    assert last.posted_at.tzinfo is not None
    assert populated_repo.get_max_sequence_no() == 5


def test_get_page_uses_keyset_bounds(populated_repo: LedgerRepository) -> None:
    """Tests that pages start after and stop at the given sequence numbers."""
    page = populated_repo.get_page(LedgerFilter(), after_sequence_no=1, up_to_sequence_no=4, limit=2)

    assert [t.sequence_no for t in page] == [2, 3]


def test_get_page_applies_filter(populated_repo: LedgerRepository) -> None:
    """Tests filtering by direction, category and date range."""
    outflows = populated_repo.get_page(
        LedgerFilter(transaction_type=TransactionType.OUTFLOW), 0, 5, 10
    )
    outpatient = populated_repo.get_page(LedgerFilter(category="CAT-ILLNESS-OUTPATIENT"), 0, 5, 10)
    in_range = populated_repo.get_page(
        LedgerFilter(start=START + timedelta(days=2), end=START + timedelta(days=4)), 0, 5, 10
    )

    assert [t.sequence_no for t in outflows] == [2, 4]
    assert [t.sequence_no for t in outpatient] == [2, 5]
    assert [t.sequence_no for t in in_range] == [2, 3]


def test_find_for_application(populated_repo: LedgerRepository) -> None:
    """Tests finding the disbursement and reversal of an application."""
    outflow = populated_repo.find_for_application("APP-1", TransactionType.OUTFLOW)
    reversal = populated_repo.find_for_application("APP-1", TransactionType.INFLOW)

    assert outflow is not None and outflow.sequence_no == 2
    assert reversal is not None and reversal.sequence_no == 5
    assert populated_repo.find_for_application("APP-2", TransactionType.INFLOW) is None


def test_get_summary_over_range(populated_repo: LedgerRepository) -> None:
    """Tests totals and bounding balances of a range."""
    summary = populated_repo.get_summary(START + timedelta(days=2), START + timedelta(days=5))

    assert summary.opening_balance == Decimal("1000.00")
    assert summary.total_inflow == Decimal("200.00")
    assert summary.total_outflow == Decimal("200.00")
    assert summary.closing_balance == Decimal("1000.00")
    assert summary.transaction_count == 3


def test_get_summary_of_whole_ledger(populated_repo: LedgerRepository) -> None:
    """Tests that an unbounded summary closes on the current balance."""
    summary = populated_repo.get_summary()

    assert summary.opening_balance == Decimal("0.00")
    assert summary.closing_balance == Decimal("1150.00")
    assert summary.total_inflow - summary.total_outflow == summary.closing_balance
    assert summary.transaction_count == 5


def test_database_rejects_negative_balance(repo: LedgerRepository, engine: Engine) -> None:
    """Tests the non-negative balance constraint."""
    transaction = _transaction(1, TransactionType.OUTFLOW, "10.00", "10.00").model_copy(
        update={"balance_after": Decimal("-10.00")}
    )

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            repo.save_transaction(conn, transaction)


def test_database_rejects_duplicate_sequence(populated_repo: LedgerRepository, engine: Engine) -> None:
    """Tests that two postings cannot share a position in the ledger."""
    duplicate = _transaction(5, TransactionType.INFLOW, "1.00", "1151.00").model_copy(update={"id": "TXN-DUP"})

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            populated_repo.save_transaction(conn, duplicate)


def test_database_rejects_second_disbursement(populated_repo: LedgerRepository, engine: Engine) -> None:
    """Tests that an application can be disbursed only once."""
    second = _transaction(6, TransactionType.OUTFLOW, "10.00", "1140.00", linked_application_id="APP-1")

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            populated_repo.save_transaction(conn, second)
