"""This module declares the relational schema of the welfare fund core.

The tables are declared once with SQLAlchemy Core so that repositories,
the Alembic migration and the test fixtures share one definition, and so
that money columns round-trip as `Decimal` on every supported backend.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

MONEY = Numeric(15, 2, asdecimal=True)

metadata = MetaData()

funding_categories = Table(
    "funding_categories",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("description", Text),
    Column("max_amount", MONEY, nullable=False),
    Column("eligibility_criteria", Text),
    Column("requires_committee_approval", Boolean, nullable=False, default=False),
    Column("active", Boolean, nullable=False, default=True),
    CheckConstraint("max_amount > 0", name="ck_funding_categories_max_amount_positive"),
)

applications = Table(
    "applications",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("student_id", String(64), nullable=False, index=True),
    Column("category_id", String(64), ForeignKey("funding_categories.id"), nullable=False),
    Column("requested_amount", MONEY, nullable=False),
    Column("ceiling_amount", MONEY, nullable=False),
    Column("requires_committee_approval", Boolean, nullable=False),
    Column("committee_amount", MONEY),
    Column("approved_amount", MONEY),
    Column("status", String(32), nullable=False, index=True),
    Column("purpose", Text),
    Column("payload", JSON, nullable=False),
    Column("submitted_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("admin_id", String(64)),
    Column("admin_decided_at", DateTime(timezone=True)),
    Column("admin_remarks", Text),
    Column("committee_id", String(64)),
    Column("committee_decided_at", DateTime(timezone=True)),
    Column("committee_remarks", Text),
    CheckConstraint("requested_amount > 0", name="ck_applications_requested_amount_positive"),
    CheckConstraint("requested_amount <= ceiling_amount", name="ck_applications_requested_within_ceiling"),
    CheckConstraint(
        "approved_amount IS NULL OR (approved_amount > 0 AND approved_amount <= requested_amount)",
        name="ck_applications_approved_within_requested",
    ),
)

application_audit_entries = Table(
    "application_audit_entries",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("application_id", String(64), ForeignKey("applications.id"), nullable=False),
    Column("sequence_no", Integer, nullable=False),
    Column("from_status", String(32)),
    Column("to_status", String(32), nullable=False),
    Column("actor_role", String(16), nullable=False),
    Column("actor_id", String(64), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("remarks", Text),
    UniqueConstraint("application_id", "sequence_no", name="uq_application_audit_entries_sequence"),
)

ledger_transactions = Table(
    "ledger_transactions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("sequence_no", Integer, nullable=False, unique=True),
    Column("transaction_type", String(16), nullable=False),
    Column("amount", MONEY, nullable=False),
    Column("category", String(255), nullable=False),
    Column("linked_application_id", String(64), ForeignKey("applications.id")),
    Column("balance_after", MONEY, nullable=False),
    Column("posted_at", DateTime(timezone=True), nullable=False),
    Column("description", Text),
    Column("processed_by", String(64)),
    Column("remarks", Text),
    Column("receipt_number", String(255)),
    CheckConstraint("amount > 0", name="ck_ledger_transactions_amount_positive"),
    CheckConstraint("balance_after >= 0", name="ck_ledger_transactions_balance_not_negative"),
    CheckConstraint("transaction_type IN ('inflow', 'outflow')", name="ck_ledger_transactions_type"),
    Index("ix_ledger_transactions_posted_at", "posted_at"),
    Index("ix_ledger_transactions_category_posted_at", "category", "posted_at"),
    Index(
        "uq_ledger_transactions_application_direction",
        "linked_application_id",
        "transaction_type",
        unique=True,
    ),
)
