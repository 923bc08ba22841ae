"""Tests for the fund command group."""

import json
from collections.abc import Generator
from decimal import Decimal
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from welfare_fund.cli import create_cli
from welfare_fund.models.enums import TransactionType
from welfare_fund.services.ledger import FundLedgerService


@pytest.fixture
def runner() -> CliRunner:
    """Returns a CliRunner for invoking the CLI."""
    return CliRunner()


@pytest.fixture(autouse=True)
def wired_ledger(ledger_service: FundLedgerService) -> Generator[FundLedgerService, None, None]:
    """Makes the fund commands use the SQLite-backed ledger service."""
    with patch("welfare_fund.cli.fund.build_ledger_service", return_value=ledger_service):
        yield ledger_service


def test_balance_text(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests the balance in text form."""
    ledger_service.record_inflow("120.50", "Donation", "bursar")

    result = runner.invoke(create_cli(), ["fund", "balance"])

    assert result.exit_code == 0
    assert "Current balance: RM120.50" in result.output


def test_balance_json(runner: CliRunner) -> None:
    """Tests the balance in JSON form."""
    result = runner.invoke(create_cli(), ["--output", "json", "fund", "balance"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"balance": "0.00"}


def test_deposit(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests recording a donation."""
    result = runner.invoke(
        create_cli(),
        ["fund", "deposit", "--amount", "250", "--processed-by", "bursar", "--receipt-number", "R-17"],
    )

    assert result.exit_code == 0
    assert "+250.00, balance 250.00" in result.output
    transaction = next(iter(ledger_service.history()))
    assert transaction.category == "Donation"
    assert transaction.receipt_number == "R-17"


def test_deposit_json(runner: CliRunner) -> None:
    """Tests that a deposit can be reported as JSON."""
    result = runner.invoke(
        create_cli(),
        ["--output", "json", "fund", "deposit", "--amount", "10.00", "--category", "Grant", "--processed-by", "bursar"],
    )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["transaction_type"] == "inflow"
    assert payload["category"] == "Grant"
    assert Decimal(payload["balance_after"]) == Decimal("10.00")


@pytest.mark.parametrize("amount", ["0", "abc", "1.234"])
def test_deposit_rejects_invalid_amount(runner: CliRunner, ledger_service: FundLedgerService, amount: str) -> None:
    """Tests that invalid amounts are reported and not posted."""
    result = runner.invoke(create_cli(), ["fund", "deposit", "--amount", amount, "--processed-by", "bursar"])

    assert result.exit_code == 1
    assert "Rejected (invalid_amount)" in result.output
    assert ledger_service.current_balance() == Decimal("0.00")


def test_history_json_with_filter(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests listing the ledger filtered by direction."""
    ledger_service.record_inflow("100.00", "Grant", "bursar")
    ledger_service.post(TransactionType.OUTFLOW, "40.00", "CAT-ILLNESS-OUTPATIENT", linked_application_id="APP-1")

    result = runner.invoke(create_cli(), ["--output", "json", "fund", "history", "--type", "outflow"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert [t["linked_application_id"] for t in payload] == ["APP-1"]


def test_history_table(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests listing the ledger as a table."""
    ledger_service.record_inflow("100.00", "Grant", "bursar")

    result = runner.invoke(create_cli(), ["fund", "history", "--since", "2025-01-01"])

    assert result.exit_code == 0
    assert "Ledger history" in result.output


def test_history_rejects_inverted_range(runner: CliRunner) -> None:
    """Tests that an inverted date range is refused."""
    result = runner.invoke(create_cli(), ["fund", "history", "--since", "2025-02-01", "--until", "2025-01-01"])

    assert result.exit_code == 1
    assert "Invalid filter" in result.output


def test_summary(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests the summary report."""
    ledger_service.record_inflow("100.00", "Grant", "bursar")
    ledger_service.post(TransactionType.OUTFLOW, "40.00", "CAT-ILLNESS-OUTPATIENT", linked_application_id="APP-1")

    text = runner.invoke(create_cli(), ["fund", "summary"])
    as_json = runner.invoke(create_cli(), ["--output", "json", "fund", "summary"])

    assert text.exit_code == 0
    assert "Closing balance: RM60.00" in text.output
    assert json.loads(as_json.output)["transaction_count"] == 2


def test_compensate(runner: CliRunner, ledger_service: FundLedgerService) -> None:
    """Tests reversing a disbursement and refusing to reverse it twice."""
    ledger_service.record_inflow("100.00", "Grant", "bursar")
    ledger_service.post(TransactionType.OUTFLOW, "40.00", "CAT-ILLNESS-OUTPATIENT", linked_application_id="APP-1")
    arguments = ["fund", "compensate", "APP-1", "--processed-by", "bursar", "--remarks", "Bank returned transfer"]

    first = runner.invoke(create_cli(), arguments)
    second = runner.invoke(create_cli(), arguments)

    assert first.exit_code == 0
    assert "Compensated APP-1" in first.output
    assert second.exit_code == 1
    assert "Rejected (invalid_transition)" in second.output
    assert ledger_service.current_balance() == Decimal("100.00")
