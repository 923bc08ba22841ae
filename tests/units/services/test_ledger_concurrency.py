"""Concurrent postings and approvals against one shared fund."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from welfare_fund.exceptions.review import InsufficientFunds
from welfare_fund.models.applications import ApplicationSubmission
from welfare_fund.models.enums import ApplicationStatus, TransactionType
from welfare_fund.services.ledger import FundLedgerService
from welfare_fund.services.review import ReviewService


def _check_ledger(ledger_service: FundLedgerService) -> list:
    transactions = list(ledger_service.history())
    balance = Decimal("0.00")
    for expected_sequence, transaction in enumerate(transactions, start=1):
        balance += transaction.signed_amount
        assert transaction.sequence_no == expected_sequence
        assert transaction.balance_after == balance
        assert balance >= 0
    assert [t.posted_at for t in transactions] == sorted(t.posted_at for t in transactions)
    assert len({t.posted_at for t in transactions}) == len(transactions)
    return transactions


def test_concurrent_postings_are_serialized(ledger_service: FundLedgerService) -> None:
    """Tests that parallel postings never compute from the same balance."""
    ledger_service.record_inflow("100.00", "Initial Fund", "bursar")

    def withdraw(_: int) -> bool:
        try:
            ledger_service.post(TransactionType.OUTFLOW, "7.00", "CAT-ILLNESS-OUTPATIENT")
            return True
        except InsufficientFunds:
            return False

    def deposit(_: int) -> bool:
        ledger_service.record_inflow("1.00", "Donation", "bursar")
        return True

    with ThreadPoolExecutor(max_workers=8) as executor:
        withdrawals = list(executor.map(withdraw, range(20)))
        deposits = list(executor.map(deposit, range(10)))

    transactions = _check_ledger(ledger_service)
    succeeded = sum(withdrawals)
    assert succeeded == 14
    assert len(transactions) == 1 + succeeded + len(deposits)
    assert ledger_service.current_balance() == Decimal("100.00") - 7 * succeeded + len(deposits)


def test_concurrent_approvals_never_overdraw(
    review_service: ReviewService, ledger_service: FundLedgerService
) -> None:
    """Tests that approvals racing for the last funds keep the ledger consistent."""
    ledger_service.record_inflow("100.00", "Initial Fund", "bursar")
    applications = [
        review_service.submit(
            ApplicationSubmission(
                student_id=f"S{index:03d}", category_id="CAT-ILLNESS-OUTPATIENT", requested_amount=Decimal("30.00")
            )
        )
        for index in range(6)
    ]

    def approve(application_id: str) -> ApplicationStatus:
        try:
            return review_service.decide(application_id, "admin", "approve").status
        except InsufficientFunds:
            return review_service.get_application(application_id).status

    with ThreadPoolExecutor(max_workers=6) as executor:
        outcomes = list(executor.map(approve, [a.id for a in applications]))

    assert outcomes.count(ApplicationStatus.APPROVED) == 3
    assert outcomes.count(ApplicationStatus.ADMIN_PENDING) == 3
    transactions = _check_ledger(ledger_service)
    outflows = [t for t in transactions if t.transaction_type == TransactionType.OUTFLOW]
    assert len(outflows) == 3
    assert len({t.linked_application_id for t in outflows}) == 3
    assert ledger_service.current_balance() == Decimal("10.00")
