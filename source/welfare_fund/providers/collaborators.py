"""This module defines the contracts of the host collaborators the core consumes."""

from typing import Protocol, runtime_checkable

from welfare_fund.models.categories import FundingCategory


@runtime_checkable
class CategoryProvider(Protocol):
    """Looks up the rule set of a funding category."""

    def get_category(self, category_id: str) -> FundingCategory:
        """Returns the current rule set of a category.

        Args:
            category_id: The category identifier.

        Returns:
            The category.

        Raises:
            CategoryNotFound: If the category does not exist.
        """
        ...


@runtime_checkable
class DocumentConfirmation(Protocol):
    """Tells whether a receipt file is attached to an application."""

    def is_receipt_attached(self, application_id: str) -> bool:
        """Checks the document store for a confirmed receipt.

        Args:
            application_id: The application to check.

        Returns:
            True if a receipt file is attached and confirmed.
        """
        ...
