"""This module defines the typed, recoverable errors raised by the review core.

Every error carries a machine-readable `kind` and human-readable `remarks`,
so that the host application can reject the requested action with both.
"""

from decimal import Decimal
from typing import Any


class WelfareFundError(Exception):
    """Base exception for every rejection produced by the review core.

    Args:
        remarks: A human-readable explanation of the rejection.
        **details: Additional machine-readable context.
    """

    kind: str = "welfare_fund_error"

    def __init__(self, remarks: str, **details: Any) -> None:
        """Initializes the error.

        Args:
            remarks: A human-readable explanation of the rejection.
            **details: Additional machine-readable context.
        """
        super().__init__(remarks)
        self.remarks = remarks
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Returns the machine-readable representation of the error.

        Returns:
            A dictionary with the error kind, remarks and details. Decimal
            values are rendered as strings.
        """
        return {
            "kind": self.kind,
            "remarks": self.remarks,
            "details": {
                key: str(value) if isinstance(value, Decimal) else value for key, value in self.details.items()
            },
        }


class InvalidTransition(WelfareFundError):
    """Raised when an action is not legal from the current status or for the actor."""

    kind = "invalid_transition"


class AmountExceedsLimit(WelfareFundError):
    """Raised when a requested or approved amount is above the applicable ceiling."""

    kind = "amount_exceeds_limit"


class InsufficientFunds(WelfareFundError):
    """Raised when an outflow would drive the fund balance below zero."""

    kind = "insufficient_funds"


class CategoryInactive(WelfareFundError):
    """Raised when a claim is filed under a disabled category."""

    kind = "category_inactive"


class InvalidAmount(WelfareFundError):
    """Raised when an amount is missing, not positive, or not a two-place decimal."""

    kind = "invalid_amount"


class CategoryNotFound(WelfareFundError):
    """Raised when a category id is unknown to the category provider."""

    kind = "category_not_found"


class ApplicationNotFound(WelfareFundError):
    """Raised when an application id is unknown."""

    kind = "application_not_found"
