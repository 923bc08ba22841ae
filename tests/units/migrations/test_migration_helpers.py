"""Tests for the migration helpers."""

import pytest

from welfare_fund.migrations.helpers import get_table_name


def test_get_table_name_without_schema() -> None:
    """Tests that tables stay unqualified when no schema is configured."""
    assert get_table_name("ledger_transactions") == "ledger_transactions"


def test_get_table_name_with_schema(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests that tables are qualified with the configured schema."""
    monkeypatch.setenv("POSTGRES_DB_SCHEMA", "welfare_test")
    assert get_table_name("applications") == "welfare_test.applications"
