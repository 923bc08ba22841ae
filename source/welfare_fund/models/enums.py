"""This module defines the enumerations shared by the review workflow and the ledger."""

from enum import StrEnum, auto


class ApplicationStatus(StrEnum):
    """Represents the possible lifecycle statuses of a financial-aid application."""

    @staticmethod
    def _generate_next_value_(
        name: str,
        _start: int,
        _count: int,
        _last_values: list[str],
    ) -> str:
        """Returns the uppercase member name to keep stored values stable.

        Args:
            name: The enum member name being assigned.
            _start: The first automatic value (unused).
            _count: Number of existing members (unused).
            _last_values: Previously assigned values (unused).

        Returns:
            The uppercase member name.
        """
        return name

    SUBMITTED = auto()
    """The student has filed the claim."""

    UNDER_REVIEW = auto()
    """The claim passed intake validation and is being routed."""

    COMMITTEE_PENDING = auto()
    """The claim waits for a committee decision."""

    COMMITTEE_APPROVED = auto()
    """The committee approved the claim and suggested an amount."""

    COMMITTEE_REJECTED = auto()
    """The committee rejected the claim. Terminal."""

    ADMIN_PENDING = auto()
    """The claim waits for the administration's final decision."""

    APPROVED = auto()
    """The administration approved the claim and the amount was disbursed."""

    ADMIN_REJECTED = auto()
    """The administration rejected the claim. Terminal."""

    NEED_RECEIPT = auto()
    """A receipt upload was registered and awaits confirmation."""

    COMPLETED = auto()
    """Proof of spend was confirmed. Terminal."""

    CANCELLED = auto()
    """The student withdrew the claim before any reviewer decision. Terminal."""


class ActorRole(StrEnum):
    """Identifies who performs a transition."""

    STUDENT = "student"
    ADMIN = "admin"
    COMMITTEE = "committee"
    SYSTEM = "system"


class Decision(StrEnum):
    """The verdict a reviewer records on an application."""

    APPROVE = "approve"
    REJECT = "reject"


class TransactionType(StrEnum):
    """Enumeration for the directions of a welfare fund transaction."""

    INFLOW = "inflow"
    OUTFLOW = "outflow"
