"""This module defines the Pydantic models for funding categories."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from welfare_fund.models.money import PositiveMoney


class FundingCategory(BaseModel):
    """The rule set applied to every claim filed under a category.

    The core reads categories but never changes them; they are maintained by
    the administrative side of the host application.

    Attributes:
        id: The category identifier, e.g. `CAT-ILLNESS-OUTPATIENT`.
        name: The human-readable category name.
        max_amount: The ceiling payable for one claim.
        requires_committee_approval: Whether a committee decision precedes the
            administration's decision.
        active: Whether new claims may be filed under this category.
        description: An optional description of the category.
        eligibility_criteria: An optional summary of who may apply.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    max_amount: PositiveMoney
    requires_committee_approval: bool = False
    active: bool = True
    description: str | None = None
    eligibility_criteria: str | None = None


class CategoryCeiling(BaseModel):
    """The part of a category snapshotted onto an application at submission.

    Attributes:
        category_id: The category the snapshot was taken from.
        max_amount: The ceiling in force at submission time.
        requires_committee_approval: The routing decision in force at
            submission time.
    """

    model_config = ConfigDict(frozen=True)

    category_id: str
    max_amount: Decimal
    requires_committee_approval: bool

    @classmethod
    def snapshot(cls, category: FundingCategory) -> "CategoryCeiling":
        """Takes a snapshot of a category's ceiling and routing.

        Args:
            category: The category to snapshot.

        Returns:
            The frozen ceiling.
        """
        return cls(
            category_id=category.id,
            max_amount=category.max_amount,
            requires_committee_approval=category.requires_committee_approval,
        )


DEFAULT_CATEGORIES: tuple[FundingCategory, ...] = (
    FundingCategory(
        id="CAT-ILLNESS-INPATIENT",
        name="Medical Treatment (Inpatient)",
        description="For students requiring inpatient medical treatment",
        max_amount=Decimal("10000.00"),
        eligibility_criteria="Must provide hospital admission documents",
        requires_committee_approval=True,
    ),
    FundingCategory(
        id="CAT-ILLNESS-OUTPATIENT",
        name="Medical Treatment (Outpatient)",
        description="For students requiring outpatient medical treatment",
        max_amount=Decimal("30.00"),
        eligibility_criteria="Must provide medical certificates and receipts",
        requires_committee_approval=False,
    ),
    FundingCategory(
        id="CAT-ILLNESS-CHRONIC",
        name="Chronic Illness Treatment",
        description="For students with chronic illnesses requiring ongoing treatment",
        max_amount=Decimal("200.00"),
        eligibility_criteria="Must provide doctor's report and treatment plan",
        requires_committee_approval=True,
    ),
    FundingCategory(
        id="CAT-EMERGENCY-NATURAL",
        name="Natural Disaster",
        description="For students affected by natural disasters",
        max_amount=Decimal("200.00"),
        eligibility_criteria="Must provide evidence of damage and official reports",
        requires_committee_approval=True,
    ),
    FundingCategory(
        id="CAT-EMERGENCY-FAMILY",
        name="Family Emergency",
        description="For students facing family emergencies",
        max_amount=Decimal("200.00"),
        eligibility_criteria="Must provide relevant documentation of emergency",
        requires_committee_approval=True,
    ),
    FundingCategory(
        id="CAT-EMERGENCY-OTHERS",
        name="Other Emergencies",
        description="For other emergency cases requiring immediate assistance",
        max_amount=Decimal("2000.00"),
        eligibility_criteria="Must provide justification and supporting documents",
        requires_committee_approval=True,
    ),
    FundingCategory(
        id="CAT-BEREAVEMENT",
        name="Bereavement (Khairat)",
        description="For bereavement related assistance",
        max_amount=Decimal("500.00"),
        eligibility_criteria="Student, Parent, or Sibling",
        requires_committee_approval=False,
    ),
)
