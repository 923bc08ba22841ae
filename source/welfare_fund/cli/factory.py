"""This module wires the services used by the CLI to the configured database."""

from welfare_fund.providers.database import DatabaseManager
from welfare_fund.repositories.applications import ApplicationsRepository
from welfare_fund.repositories.audit_trail import AuditTrailRepository
from welfare_fund.repositories.categories import CategoriesRepository
from welfare_fund.repositories.ledger import LedgerRepository
from welfare_fund.services.ledger import FundLedgerService
from welfare_fund.services.review import ReviewService


def build_ledger_service() -> FundLedgerService:
    """Builds the ledger service on the shared engine.

    Returns:
        The ledger service.
    """
    return FundLedgerService(LedgerRepository(DatabaseManager.get_engine()))


def build_review_service() -> ReviewService:
    """Builds the review service on the shared engine.

    Categories are read from the database, and events are written to the log.

    Returns:
        The review service.
    """
    engine = DatabaseManager.get_engine()
    return ReviewService(
        applications_repo=ApplicationsRepository(engine),
        audit_repo=AuditTrailRepository(engine),
        category_provider=CategoriesRepository(engine),
        ledger_service=build_ledger_service(),
    )
