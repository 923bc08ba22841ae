"""This module initializes the services package.

It also re-exports the services so that host applications can import the
review core from one place, independently of the internal module layout.
"""

from welfare_fund.services.amounts import AmountStrategy, AmountStrategyRegistry
from welfare_fund.services.ledger import FundLedgerService, LedgerHistory
from welfare_fund.services.review import ReviewService

__all__ = [
    "AmountStrategy",
    "AmountStrategyRegistry",
    "FundLedgerService",
    "LedgerHistory",
    "ReviewService",
]
