"""This module defines the service that drives applications through review.

Every accepted action runs as one database transaction: the status change,
its audit entries and, for a final approval, the disbursement are committed
together or not at all. Transition events are published only after the
transaction committed.
"""

import uuid
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Any, NamedTuple

from pydantic import ValidationError
from sqlalchemy import Connection

from welfare_fund.exceptions.review import (
    AmountExceedsLimit,
    CategoryInactive,
    InvalidAmount,
    InvalidTransition,
)
from welfare_fund.models.applications import Application, ApplicationStatistics, ApplicationSubmission
from welfare_fund.models.audit import AuditEntry
from welfare_fund.models.categories import CategoryCeiling
from welfare_fund.models.enums import ActorRole, ApplicationStatus, Decision, TransactionType
from welfare_fund.models.events import TransitionEvent
from welfare_fund.models.ledger import NewLedgerTransaction
from welfare_fund.models.money import to_positive_money
from welfare_fund.providers.clock import ClockProvider
from welfare_fund.providers.collaborators import CategoryProvider, DocumentConfirmation
from welfare_fund.providers.config import Config, ConfigProvider
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.providers.notifier import LoggingNotifier, Notifier
from welfare_fund.repositories.applications import ApplicationsRepository
from welfare_fund.repositories.audit_trail import AuditTrailRepository
from welfare_fund.services.amounts import AmountStrategyRegistry
from welfare_fund.services.ledger import FundLedgerService
from welfare_fund.services.transitions import approval_ceiling, ensure_cancellable, resolve_decision

SYSTEM_ACTOR_ID = "system"


class _Step(NamedTuple):
    to_status: ApplicationStatus
    actor_role: ActorRole
    actor_id: str
    remarks: str | None = None


class ReviewService:
    """Orchestrates submission, review, disbursement and completion of claims."""

    applications_repo: ApplicationsRepository
    audit_repo: AuditTrailRepository
    category_provider: CategoryProvider
    ledger_service: FundLedgerService
    notifier: Notifier
    document_confirmation: DocumentConfirmation | None
    clock: ClockProvider
    amount_strategies: AmountStrategyRegistry
    logger: Logger
    config: Config

    def __init__(
        self,
        applications_repo: ApplicationsRepository,
        audit_repo: AuditTrailRepository,
        category_provider: CategoryProvider,
        ledger_service: FundLedgerService,
        notifier: Notifier | None = None,
        document_confirmation: DocumentConfirmation | None = None,
        clock: ClockProvider | None = None,
        amount_strategies: AmountStrategyRegistry | None = None,
    ) -> None:
        """Initializes the service with its dependencies.

        Args:
            applications_repo: The repository for applications.
            audit_repo: The repository for the audit trail.
            category_provider: Looks up category ceilings and routing.
            ledger_service: The service owning the fund balance.
            notifier: Receives transition events after commit. Events are
                logged when omitted.
            document_confirmation: Tells whether a receipt is attached. Without
                it, no receipt is ever considered confirmed.
            clock: The clock used to stamp transitions. Defaults to the
                ledger service's clock.
            amount_strategies: Derives requested amounts from payloads.
        """
        self.applications_repo = applications_repo
        self.audit_repo = audit_repo
        self.category_provider = category_provider
        self.ledger_service = ledger_service
        self.notifier = notifier or LoggingNotifier()
        self.document_confirmation = document_confirmation
        self.clock = clock or ledger_service.clock
        self.amount_strategies = amount_strategies or AmountStrategyRegistry()
        self.logger = LoggingProvider().get_logger()
        self.config = ConfigProvider.get_config()

    def submit(self, submission: ApplicationSubmission) -> Application:
        """Files a claim and routes it to its first reviewer.

        The claim is recorded as `SUBMITTED` by the student and moved through
        `UNDER_REVIEW` to `COMMITTEE_PENDING` or `ADMIN_PENDING` in the same
        transaction, depending on the category.

        Args:
            submission: The claim as filed by the student.

        Returns:
            The routed application.

        Raises:
            CategoryNotFound: If the category does not exist.
            CategoryInactive: If the category does not accept new claims.
            InvalidAmount: If no positive two-place amount can be determined.
            AmountExceedsLimit: If the amount is above the category ceiling.
        """
        category = self.category_provider.get_category(submission.category_id)
        if not category.active:
            raise CategoryInactive(
                f"Funding category {category.id} is not accepting applications.",
                category_id=category.id,
            )

        strategy = self.amount_strategies.for_category(category.id)
        raw_amount = submission.requested_amount
        if raw_amount is None:
            raw_amount = strategy.extract(submission.payload)
        if raw_amount is None:
            raise InvalidAmount(
                "The requested amount is missing from the application.",
                category_id=category.id,
            )
        requested_amount = self._validate_amount(raw_amount, "requested_amount")

        ceiling = CategoryCeiling.snapshot(category)
        if requested_amount > ceiling.max_amount:
            raise AmountExceedsLimit(
                f"Requested amount {self.config.FUND_CURRENCY}{requested_amount} exceeds the "
                f"{self.config.FUND_CURRENCY}{ceiling.max_amount} ceiling of {category.id}.",
                requested_amount=requested_amount,
                max_amount=ceiling.max_amount,
            )

        first_reviewer = (
            ApplicationStatus.COMMITTEE_PENDING
            if ceiling.requires_committee_approval
            else ApplicationStatus.ADMIN_PENDING
        )
        submitted_at = self.clock.now()
        application = Application(
            id=self._new_application_id(submitted_at),
            student_id=submission.student_id,
            category_id=category.id,
            requested_amount=requested_amount,
            ceiling_amount=ceiling.max_amount,
            requires_committee_approval=ceiling.requires_committee_approval,
            status=ApplicationStatus.SUBMITTED,
            purpose=submission.purpose or strategy.describe(submission.payload),
            payload=submission.payload,
            submitted_at=submitted_at,
            updated_at=submitted_at,
        )

        with LoggingProvider().set_correlation_id(application.id):
            with self.applications_repo.engine.begin() as conn:
                self.applications_repo.create(conn, application)
                submitted = self.audit_repo.append(
                    conn,
                    application.id,
                    None,
                    ApplicationStatus.SUBMITTED,
                    ActorRole.STUDENT,
                    submission.student_id,
                    submitted_at,
                )
                routing = [
                    _Step(ApplicationStatus.UNDER_REVIEW, ActorRole.SYSTEM, SYSTEM_ACTOR_ID),
                    _Step(first_reviewer, ActorRole.SYSTEM, SYSTEM_ACTOR_ID),
                ]
                entries = [submitted, *self._append_steps(conn, application, routing)]
                application = self._save(conn, application, entries, {})

            self.logger.info(
                f"Application submitted by {submission.student_id} for "
                f"{self.config.FUND_CURRENCY}{requested_amount}; routed to {first_reviewer}."
            )
            self._publish(entries)
        return application

    def decide(
        self,
        application_id: str,
        actor_role: ActorRole | str,
        decision: Decision | str,
        amount: Decimal | str | int | None = None,
        remarks: str | None = None,
        actor_id: str | None = None,
    ) -> Application:
        """Records a reviewer's decision.

        A committee approval records the committee's amount, which caps the
        administration's later decision, and routes the claim to
        `ADMIN_PENDING`. An administration approval sets the approved amount
        and posts the disbursement in the same transaction. Rejections are
        terminal and have no ledger effect.

        Each accepted transition gets its own audit entry, so a committee
        approval writes two: `COMMITTEE_APPROVED` by the committee and the
        system's routing to `ADMIN_PENDING`. Every other decision writes one.

        Args:
            application_id: The application to decide.
            actor_role: The role of the reviewer.
            decision: `approve` or `reject`.
            amount: The amount to approve. Defaults to the committee's amount when
                the committee set one, and to the requested amount otherwise.
            remarks: The reviewer's remarks.
            actor_id: The reviewer's identifier. Defaults to the role name.

        Returns:
            The application after the decision.

        Raises:
            ApplicationNotFound: If the application does not exist.
            InvalidTransition: If the current status does not accept a
                decision from `actor_role`.
            InvalidAmount: If the amount is not a positive two-place decimal.
            AmountExceedsLimit: If the amount is above the applicable ceiling.
            InsufficientFunds: If the fund cannot cover the disbursement.
        """
        try:
            actor_role = ActorRole(actor_role)
            decision = Decision(decision)
        except ValueError as e:
            raise InvalidTransition(
                f"Unknown actor role or decision: {actor_role}, {decision}.",
                application_id=application_id,
            ) from e
        actor_id = actor_id or actor_role.value
        disburses = actor_role == ActorRole.ADMIN and decision == Decision.APPROVE

        with LoggingProvider().set_correlation_id(application_id):
            unit: AbstractContextManager[Connection] = (
                self.ledger_service.serialized() if disburses else self.applications_repo.engine.begin()
            )
            with unit as conn:
                application = self.applications_repo.get_for_update(conn, application_id)
                target = resolve_decision(application, actor_role, decision)
                decided_at = self.clock.now()
                updates: dict[str, Any] = {}
                steps = [_Step(target, actor_role, actor_id, remarks)]

                if actor_role == ActorRole.COMMITTEE:
                    updates.update(committee_id=actor_id, committee_decided_at=decided_at, committee_remarks=remarks)
                else:
                    updates.update(admin_id=actor_id, admin_decided_at=decided_at, admin_remarks=remarks)

                if decision == Decision.APPROVE:
                    approved = self._approved_amount(application, actor_role, amount)
                    if actor_role == ActorRole.COMMITTEE:
                        updates["committee_amount"] = approved
                        steps.append(_Step(ApplicationStatus.ADMIN_PENDING, ActorRole.SYSTEM, SYSTEM_ACTOR_ID))
                    else:
                        updates["approved_amount"] = approved
                        self.ledger_service.post_in(
                            conn,
                            NewLedgerTransaction(
                                transaction_type=TransactionType.OUTFLOW,
                                amount=approved,
                                category=application.category_id,
                                linked_application_id=application.id,
                                description=f"Disbursement for {application.purpose or application.category_id}",
                                processed_by=actor_id,
                                remarks=remarks,
                            ),
                        )

                entries = self._append_steps(conn, application, steps, first_at=decided_at)
                application = self._save(conn, application, entries, updates)

            self.logger.info(f"{actor_role} {decision} recorded; application is now {application.status}.")
            self._publish(entries)
        return application

    def mark_receipt_uploaded(self, application_id: str, actor_id: str | None = None) -> Application:
        """Registers the upload of a receipt for a disbursed claim.

        From `APPROVED` the claim moves to `NEED_RECEIPT`, and on to
        `COMPLETED` in the same transaction when the document confirmation
        reports the receipt as attached. A claim already in `NEED_RECEIPT`
        can only move on once the receipt is confirmed.

        Args:
            application_id: The application the receipt belongs to.
            actor_id: The uploader. Defaults to the student of the claim.

        Returns:
            The application after the upload was registered.

        Raises:
            ApplicationNotFound: If the application does not exist.
            InvalidTransition: If the claim is not awaiting a receipt, or is
                already in `NEED_RECEIPT` and the receipt is not confirmed.
        """
        confirmed = self._receipt_confirmed(application_id)

        with LoggingProvider().set_correlation_id(application_id):
            with self.applications_repo.engine.begin() as conn:
                application = self.applications_repo.get_for_update(conn, application_id)
                completion = _Step(ApplicationStatus.COMPLETED, ActorRole.SYSTEM, SYSTEM_ACTOR_ID, "Receipt confirmed")

                if application.status == ApplicationStatus.APPROVED:
                    steps = [
                        _Step(ApplicationStatus.NEED_RECEIPT, ActorRole.STUDENT, actor_id or application.student_id)
                    ]
                    if confirmed:
                        steps.append(completion)
                elif application.status == ApplicationStatus.NEED_RECEIPT and confirmed:
                    steps = [completion]
                else:
                    raise InvalidTransition(
                        f"Application {application_id} in status {application.status} cannot accept a receipt.",
                        application_id=application_id,
                        status=application.status.value,
                        receipt_confirmed=confirmed,
                    )

                entries = self._append_steps(conn, application, steps)
                application = self._save(conn, application, entries, {})

            self.logger.info(f"Receipt registered; application is now {application.status}.")
            self._publish(entries)
        return application

    def cancel(self, application_id: str, actor_id: str, remarks: str | None = None) -> Application:
        """Withdraws a claim on behalf of the student who filed it.

        Args:
            application_id: The application to withdraw.
            actor_id: The student withdrawing the claim.
            remarks: An optional reason.

        Returns:
            The cancelled application.

        Raises:
            ApplicationNotFound: If the application does not exist.
            InvalidTransition: If the claim is past the point of withdrawal,
                a reviewer already decided, or `actor_id` did not file it.
        """
        with LoggingProvider().set_correlation_id(application_id):
            with self.applications_repo.engine.begin() as conn:
                application = self.applications_repo.get_for_update(conn, application_id)
                ensure_cancellable(application)
                if actor_id != application.student_id:
                    raise InvalidTransition(
                        f"Only the student who filed application {application_id} can cancel it.",
                        application_id=application_id,
                        actor_id=actor_id,
                    )
                entries = self._append_steps(
                    conn,
                    application,
                    [_Step(ApplicationStatus.CANCELLED, ActorRole.STUDENT, actor_id, remarks)],
                )
                application = self._save(conn, application, entries, {})

            self.logger.info("Application cancelled by the student.")
            self._publish(entries)
        return application

    def get_application(self, application_id: str) -> Application:
        """Retrieves an application.

        Args:
            application_id: The application identifier.

        Returns:
            The application.

        Raises:
            ApplicationNotFound: If the application does not exist.
        """
        return self.applications_repo.get(application_id)

    def audit_trail(self, application_id: str) -> list[AuditEntry]:
        """Returns the audit trail of an application, oldest entry first.

        Args:
            application_id: The application identifier.

        Returns:
            The audit entries.

        Raises:
            ApplicationNotFound: If the application does not exist.
        """
        self.applications_repo.get(application_id)
        return self.audit_repo.list_for_application(application_id)

    def list_applications(self, status: ApplicationStatus | None = None, limit: int = 100) -> list[Application]:
        """Lists applications, optionally only those in one status.

        Args:
            status: The status to filter by.
            limit: The maximum number of applications.

        Returns:
            The applications, oldest first.
        """
        return self.applications_repo.list_by_status(status, limit)

    def statistics(self) -> ApplicationStatistics:
        """Aggregates counts and approved totals over all applications.

        Returns:
            The statistics.
        """
        return self.applications_repo.get_statistics()

    def _approved_amount(
        self,
        application: Application,
        actor_role: ActorRole,
        amount: Decimal | str | int | None,
    ) -> Decimal:
        """Validates the amount of an approval against its ceiling.

        Args:
            application: The application being approved.
            actor_role: The approving role.
            amount: The amount given by the reviewer. The applicable
                ceiling is approved when omitted.

        Returns:
            The validated amount.

        Raises:
            InvalidAmount: If the amount is not a positive two-place decimal.
            AmountExceedsLimit: If the amount is above the applicable ceiling.
        """
        ceiling = approval_ceiling(application, actor_role)
        approved = self._validate_amount(ceiling if amount is None else amount, "amount")
        if approved > ceiling:
            raise AmountExceedsLimit(
                f"Approved amount {self.config.FUND_CURRENCY}{approved} exceeds the "
                f"{self.config.FUND_CURRENCY}{ceiling} limit for this decision.",
                application_id=application.id,
                amount=approved,
                limit=ceiling,
            )
        return approved

    def _validate_amount(self, value: Decimal | str | int, field: str) -> Decimal:
        """Validates that a value is a positive two-place amount.

        Args:
            value: The raw amount.
            field: The name of the amount used in the error.

        Returns:
            The amount as a two-place Decimal.

        Raises:
            InvalidAmount: If the amount is not positive or has more than two
                decimal places.
        """
        try:
            return to_positive_money(value)
        except ValidationError as e:
            raise InvalidAmount(
                f"{field} must be a positive amount with at most two decimals.",
                field=field,
                value=str(value),
            ) from e

    def _append_steps(
        self,
        conn: Connection,
        application: Application,
        steps: list[_Step],
        first_at: datetime | None = None,
    ) -> list[AuditEntry]:
        """Writes one audit entry per step, chaining their statuses.

        Args:
            conn: The connection of the surrounding transaction.
            application: The application in its state before the steps.
            steps: The transitions to record, in order.
            first_at: The timestamp of the first step, when already taken.

        Returns:
            The recorded entries.
        """
        entries = []
        from_status = application.status
        for index, step in enumerate(steps):
            timestamp = first_at if index == 0 and first_at is not None else self.clock.now()
            entries.append(
                self.audit_repo.append(
                    conn,
                    application.id,
                    from_status,
                    step.to_status,
                    step.actor_role,
                    step.actor_id,
                    timestamp,
                    step.remarks,
                )
            )
            from_status = step.to_status
        return entries

    def _save(
        self,
        conn: Connection,
        application: Application,
        entries: list[AuditEntry],
        updates: dict[str, Any],
    ) -> Application:
        """Persists the state reached by the recorded entries.

        Args:
            conn: The connection of the surrounding transaction.
            application: The application in its state before the entries.
            entries: The entries just recorded.
            updates: Additional fields to change.

        Returns:
            The updated application.
        """
        updated = application.model_copy(
            update={"status": entries[-1].to_status, "updated_at": entries[-1].timestamp, **updates}
        )
        self.applications_repo.save_transition(conn, updated, expected_status=application.status)
        return updated

    def _receipt_confirmed(self, application_id: str) -> bool:
        """Asks the document confirmation whether a receipt is attached.

        Args:
            application_id: The application to check.

        Returns:
            True only if a confirmation collaborator reports the receipt.
        """
        if self.document_confirmation is None:
            return False
        return bool(self.document_confirmation.is_receipt_attached(application_id))

    def _publish(self, entries: list[AuditEntry]) -> None:
        """Hands one event per committed transition to the notifier.

        Args:
            entries: The committed audit entries.
        """
        for entry in entries:
            try:
                self.notifier.publish(TransitionEvent.from_audit_entry(entry))
            except Exception as e:
                self.logger.error(f"Failed to publish transition to {entry.to_status}: {e}", exc_info=True)

    def _new_application_id(self, submitted_at: datetime) -> str:
        """Generates an application identifier such as `APP-20250101-1A2B3C4D`.

        Args:
            submitted_at: The submission time, whose date goes into the identifier.

        Returns:
            The identifier.
        """
        return f"{self.config.APPLICATION_ID_PREFIX}-{submitted_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
