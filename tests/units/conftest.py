"""This module contains shared fixtures for all unit tests."""

from collections.abc import Generator
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine

from welfare_fund.models.categories import FundingCategory
from welfare_fund.providers.clock import ClockProvider
from welfare_fund.repositories.applications import ApplicationsRepository
from welfare_fund.repositories.audit_trail import AuditTrailRepository
from welfare_fund.repositories.ledger import LedgerRepository
from welfare_fund.repositories.schema import metadata
from welfare_fund.services.ledger import FundLedgerService
from welfare_fund.services.review import ReviewService

from fakes import InMemoryCategoryProvider, RecordingNotifier, SteppingClock, StubDocumentConfirmation


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keeps unit tests away from any real database or local .env settings.

    Args:
        monkeypatch: Pytest fixture for mocking.
    """
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("POSTGRES_DB_SCHEMA", raising=False)


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Provides an engine on a fresh, file-backed SQLite database.

    Args:
        tmp_path: Pytest fixture for a temporary directory.

    Yields:
        The engine, with all tables created.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'welfare_fund.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock() -> ClockProvider:
    """Provides a clock that advances one second per reading."""
    return ClockProvider(SteppingClock())


@pytest.fixture
def category_provider() -> InMemoryCategoryProvider:
    """Provides the default categories plus a retired one."""
    provider = InMemoryCategoryProvider()
    provider.put(
        FundingCategory(
            id="CAT-RETIRED",
            name="Retired Category",
            max_amount=Decimal("1000.00"),
            active=False,
        )
    )
    return provider


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Provides a notifier that records every event."""
    return RecordingNotifier()


@pytest.fixture
def document_confirmation() -> StubDocumentConfirmation:
    """Provides a document confirmation that tests can switch on per application."""
    return StubDocumentConfirmation()


@pytest.fixture
def ledger_service(engine: Engine, clock: ClockProvider) -> FundLedgerService:
    """Provides a ledger service on the SQLite database."""
    return FundLedgerService(LedgerRepository(engine), clock=clock)


@pytest.fixture
def review_service(
    engine: Engine,
    ledger_service: FundLedgerService,
    category_provider: InMemoryCategoryProvider,
    notifier: RecordingNotifier,
    document_confirmation: StubDocumentConfirmation,
) -> ReviewService:
    """Provides a review service wired to the SQLite database and test collaborators."""
    return ReviewService(
        applications_repo=ApplicationsRepository(engine),
        audit_repo=AuditTrailRepository(engine),
        category_provider=category_provider,
        ledger_service=ledger_service,
        notifier=notifier,
        document_confirmation=document_confirmation,
    )
