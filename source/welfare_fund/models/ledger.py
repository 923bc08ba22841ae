"""This module defines the Pydantic models for the welfare fund ledger."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from welfare_fund.models.enums import TransactionType
from welfare_fund.models.money import Money, PositiveMoney
from welfare_fund.models.timestamps import UtcDatetime


class NewLedgerTransaction(BaseModel):
    """A transaction that has been requested but not yet posted.

    Attributes:
        transaction_type: Whether money enters or leaves the fund.
        amount: The positive amount moved.
        category: The ledger category, e.g. a funding category id or `Donation`.
        linked_application_id: The application the transaction belongs to.
        description: A short description of the transaction.
        processed_by: The operator or actor that caused the transaction.
        remarks: Optional free-text remarks.
        receipt_number: An optional external receipt reference.
    """

    transaction_type: TransactionType
    amount: PositiveMoney
    category: str
    linked_application_id: str | None = None
    description: str | None = None
    processed_by: str | None = None
    remarks: str | None = None
    receipt_number: str | None = None


class LedgerTransaction(BaseModel):
    """Represents a single posted entry in the welfare fund ledger.

    Attributes:
        id: The transaction identifier, e.g. `TXN-20250101-1A2B3C4D`.
        sequence_no: The strictly increasing position in the ledger.
        transaction_type: Whether money entered or left the fund.
        amount: The positive amount moved.
        category: The ledger category.
        linked_application_id: The application the transaction belongs to.
        balance_after: The fund balance immediately after this posting.
        posted_at: When the transaction was posted.
        description: A short description of the transaction.
        processed_by: The operator or actor that caused the transaction.
        remarks: Optional free-text remarks.
        receipt_number: An optional external receipt reference.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    sequence_no: int
    transaction_type: TransactionType
    amount: PositiveMoney
    category: str
    linked_application_id: str | None = None
    balance_after: Money
    posted_at: UtcDatetime
    description: str | None = None
    processed_by: str | None = None
    remarks: str | None = None
    receipt_number: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """The amount with the sign of its effect on the balance."""
        return self.amount if self.transaction_type == TransactionType.INFLOW else -self.amount


class LedgerFilter(BaseModel):
    """Criteria used by reporting collaborators to select ledger transactions.

    Attributes:
        transaction_type: Only transactions of this direction.
        category: Only transactions of this ledger category.
        linked_application_id: Only transactions linked to this application.
        start: Only transactions posted at or after this instant.
        end: Only transactions posted strictly before this instant.
    """

    transaction_type: TransactionType | None = None
    category: str | None = None
    linked_application_id: str | None = None
    start: UtcDatetime | None = None
    end: UtcDatetime | None = None

    @model_validator(mode="after")
    def check_range(self) -> "LedgerFilter":
        """Ensures the date range is not inverted.

        Returns:
            The validated filter.

        Raises:
            ValueError: If `start` is later than `end`.
        """
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("The start of the range must not be after its end.")
        return self


class LedgerSummary(BaseModel):
    """Totals over a range of the ledger.

    Attributes:
        start: The inclusive start of the range, if bounded.
        end: The exclusive end of the range, if bounded.
        opening_balance: The balance before the first transaction in range.
        total_inflow: The sum of inflows in range.
        total_outflow: The sum of outflows in range.
        closing_balance: The balance after the last transaction in range.
        transaction_count: The number of transactions in range.
    """

    start: UtcDatetime | None = None
    end: UtcDatetime | None = None
    opening_balance: Decimal = Field(default=Decimal("0.00"))
    total_inflow: Decimal = Field(default=Decimal("0.00"))
    total_outflow: Decimal = Field(default=Decimal("0.00"))
    closing_balance: Decimal = Field(default=Decimal("0.00"))
    transaction_count: int = 0
