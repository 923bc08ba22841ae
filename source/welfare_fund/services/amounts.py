"""This module derives the requested amount of a claim from its category payload.

Each funding category collects its own form fields. Rather than branching on
field names wherever an amount is needed, every category is mapped to one
`AmountStrategy` that knows where its amount lives and how to describe the
claim.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from welfare_fund.exceptions.review import InvalidAmount
from welfare_fund.models.money import to_positive_money


class AmountStrategy(ABC):
    """Extracts the amount and default purpose of a claim from its payload."""

    @abstractmethod
    def extract(self, payload: Mapping[str, Any]) -> Decimal | None:
        """Reads the requested amount from a payload.

        Args:
            payload: The category-specific form fields.

        Returns:
            The amount, or None if the payload does not state one.

        Raises:
            InvalidAmount: If the payload states an amount that is not a
                positive two-place decimal.
        """

    @abstractmethod
    def describe(self, payload: Mapping[str, Any]) -> str:
        """Builds the default purpose text of a claim.

        Args:
            payload: The category-specific form fields.

        Returns:
            A short purpose description.
        """

    @staticmethod
    def _validated(value: Any, source: str) -> Decimal:
        """Validates an amount read from a payload.

        Args:
            value: The raw value.
            source: A name for the value used in the error message.

        Returns:
            The amount as a two-place Decimal.

        Raises:
            InvalidAmount: If the value is not a positive two-place decimal.
        """
        try:
            return to_positive_money(value)
        except ValidationError as e:
            raise InvalidAmount(f"{source} must be a positive amount with at most two decimals.", value=value) from e


class ExplicitAmountStrategy(AmountStrategy):
    """Used for categories whose payload carries no amount of its own."""

    def __init__(self, purpose: str = "Financial Aid Application") -> None:
        """Initializes the strategy.

        Args:
            purpose: The default purpose text.
        """
        self.purpose = purpose

    def extract(self, payload: Mapping[str, Any]) -> Decimal | None:
        """Returns None; the amount must be stated on the submission.

        Args:
            payload: The category-specific form fields.

        Returns:
            Always None.
        """
        return None

    def describe(self, payload: Mapping[str, Any]) -> str:
        """Returns the fixed purpose text.

        Args:
            payload: The category-specific form fields.

        Returns:
            The purpose text.
        """
        return self.purpose


class FieldAmountStrategy(AmountStrategy):
    """Reads the amount from a single payload field, e.g. `total_amount_outpatient`."""

    def __init__(self, field_name: str, purpose: str) -> None:
        """Initializes the strategy.

        Args:
            field_name: The payload field holding the amount.
            purpose: The default purpose text.
        """
        self.field_name = field_name
        self.purpose = purpose

    def extract(self, payload: Mapping[str, Any]) -> Decimal | None:
        """Reads the configured field.

        Args:
            payload: The category-specific form fields.

        Returns:
            The amount, or None if the field is absent or empty.
        """
        value = payload.get(self.field_name)
        if value is None or value == "":
            return None
        return self._validated(value, self.field_name)

    def describe(self, payload: Mapping[str, Any]) -> str:
        """Returns the fixed purpose text.

        Args:
            payload: The category-specific form fields.

        Returns:
            The purpose text.
        """
        return self.purpose


class ScheduledAmountStrategy(AmountStrategy):
    """Pays a fixed amount chosen by one payload field.

    Bereavement claims pay according to the deceased's relationship to the
    student rather than according to a stated expense.
    """

    def __init__(self, selector_field: str, schedule: Mapping[str, Decimal], purpose: str) -> None:
        """Initializes the strategy.

        Args:
            selector_field: The payload field selecting the schedule entry.
            schedule: The amount paid for each selector value.
            purpose: The purpose text prefix.
        """
        self.selector_field = selector_field
        self.schedule = {key.lower(): self._validated(value, key) for key, value in schedule.items()}
        self.purpose = purpose

    def extract(self, payload: Mapping[str, Any]) -> Decimal | None:
        """Looks the selector up in the schedule.

        Args:
            payload: The category-specific form fields.

        Returns:
            The scheduled amount, or None if no selector is given.

        Raises:
            InvalidAmount: If the selector has no scheduled amount.
        """
        selector = payload.get(self.selector_field)
        if not selector:
            return None
        amount = self.schedule.get(str(selector).lower())
        if amount is None:
            raise InvalidAmount(
                f"No scheduled amount for {self.selector_field} '{selector}'.",
                allowed=sorted(self.schedule),
            )
        return amount

    def describe(self, payload: Mapping[str, Any]) -> str:
        """Builds the purpose text including the selector.

        Args:
            payload: The category-specific form fields.

        Returns:
            The purpose text.
        """
        selector = payload.get(self.selector_field)
        return f"{self.purpose} - {str(selector).capitalize()}" if selector else self.purpose


DEFAULT_STRATEGIES: dict[str, AmountStrategy] = {
    "CAT-BEREAVEMENT": ScheduledAmountStrategy(
        "bereavement_type",
        {"student": Decimal("500.00"), "parent": Decimal("200.00"), "sibling": Decimal("100.00")},
        "Bereavement (Khairat)",
    ),
    "CAT-ILLNESS-OUTPATIENT": FieldAmountStrategy("total_amount_outpatient", "Illness & Injuries - Outpatient Treatment"),
    "CAT-ILLNESS-INPATIENT": FieldAmountStrategy("total_amount_inpatient", "Illness & Injuries - Inpatient Treatment"),
    "CAT-ILLNESS-CHRONIC": FieldAmountStrategy("total_amount_injuries", "Illness & Injuries - Chronic Treatment"),
    "CAT-EMERGENCY-NATURAL": FieldAmountStrategy("total_amount_critical_illness", "Emergency - Natural Disaster"),
    "CAT-EMERGENCY-FAMILY": FieldAmountStrategy("total_amount_natural_disaster", "Emergency - Family Emergency"),
    "CAT-EMERGENCY-OTHERS": FieldAmountStrategy("total_amount_others", "Emergency - Other Emergency"),
}


class AmountStrategyRegistry:
    """Maps category ids to their amount strategies.

    Args:
        strategies: The strategies per category id. Defaults to the
            strategies of the standard categories.
        fallback: The strategy for categories without an entry.
    """

    def __init__(
        self,
        strategies: Mapping[str, AmountStrategy] | None = None,
        fallback: AmountStrategy | None = None,
    ) -> None:
        """Initializes the registry.

        Args:
            strategies: The strategies per category id.
            fallback: The strategy for categories without an entry.
        """
        self.strategies = dict(DEFAULT_STRATEGIES if strategies is None else strategies)
        self.fallback = fallback or ExplicitAmountStrategy()

    def for_category(self, category_id: str) -> AmountStrategy:
        """Returns the strategy of a category.

        Args:
            category_id: The category identifier.

        Returns:
            The registered strategy, or the fallback.
        """
        return self.strategies.get(category_id, self.fallback)
