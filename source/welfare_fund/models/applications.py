"""This module defines the Pydantic models for financial-aid applications."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from welfare_fund.models.enums import ApplicationStatus
from welfare_fund.models.money import Money, PositiveMoney
from welfare_fund.models.timestamps import UtcDatetime


class ApplicationSubmission(BaseModel):
    """A claim as filed by a student, before it enters the review workflow.

    Either `requested_amount` is given directly, or it is derived from the
    category-specific `payload` by the category's amount strategy.

    Attributes:
        student_id: The identifier of the student filing the claim.
        category_id: The funding category the claim is filed under.
        requested_amount: The amount asked for, if stated explicitly.
        payload: Category-specific form fields, opaque to the core beyond
            amount extraction.
        purpose: An optional free-text purpose; a category default is used
            when omitted.
    """

    student_id: str
    category_id: str
    requested_amount: Decimal | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    purpose: str | None = None


class Application(BaseModel):
    """Represents a claim inside the review workflow.

    Attributes:
        id: The opaque application identifier.
        student_id: The identifier of the student who filed the claim.
        category_id: The funding category of the claim.
        requested_amount: The amount asked for.
        ceiling_amount: The category ceiling snapshotted at submission.
        requires_committee_approval: The routing decision taken at submission.
        committee_amount: The committee's suggested amount, which caps the
            administration's decision.
        approved_amount: The disbursed amount, set once by the final approval.
        status: The current workflow status.
        purpose: A short description of what the claim is for.
        payload: The category-specific form fields.
        submitted_at: When the claim was filed.
        updated_at: When the claim last changed status.
        admin_id: The administrator who decided, if any.
        admin_decided_at: When the administrator decided.
        admin_remarks: The administrator's remarks.
        committee_id: The committee member who decided, if any.
        committee_decided_at: When the committee decided.
        committee_remarks: The committee's remarks.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    category_id: str
    requested_amount: PositiveMoney
    ceiling_amount: PositiveMoney
    requires_committee_approval: bool
    committee_amount: Money | None = None
    approved_amount: Money | None = None
    status: ApplicationStatus
    purpose: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    submitted_at: UtcDatetime
    updated_at: UtcDatetime
    admin_id: str | None = None
    admin_decided_at: UtcDatetime | None = None
    admin_remarks: str | None = None
    committee_id: str | None = None
    committee_decided_at: UtcDatetime | None = None
    committee_remarks: str | None = None

    @property
    def has_reviewer_decision(self) -> bool:
        """Whether any reviewer has recorded a decision on this application."""
        return self.committee_decided_at is not None or self.admin_decided_at is not None


class ApplicationStatistics(BaseModel):
    """Aggregated counts over all applications.

    Attributes:
        total: The number of applications ever submitted.
        by_status: The number of applications per current status.
        pending: Applications still waiting for a reviewer.
        awaiting_receipt: Approved applications without confirmed proof of spend.
        completed: Applications whose receipt was confirmed.
        total_approved_amount: The sum of all approved amounts.
    """

    total: int = 0
    by_status: dict[ApplicationStatus, int] = Field(default_factory=dict)
    pending: int = 0
    awaiting_receipt: int = 0
    completed: int = 0
    total_approved_amount: Decimal = Decimal("0.00")
