"""
Creates the funding category, application, audit trail and ledger tables.

Revision ID: 5b8e2f41c7d3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

from alembic import op

from welfare_fund.migrations.helpers import get_table_name

revision: str = "5b8e2f41c7d3"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """
    Creates the tables with raw SQL. The ledger enforces a non-negative
    balance, a unique posting sequence and at most one disbursement and one
    reversal per application at the database level.
    """
    categories_table = get_table_name("funding_categories")
    applications_table = get_table_name("applications")
    audit_table = get_table_name("application_audit_entries")
    ledger_table = get_table_name("ledger_transactions")

    op.execute(
        f"""
        CREATE TABLE {categories_table} (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(255) NOT NULL UNIQUE,
            description TEXT,
            max_amount NUMERIC(15, 2) NOT NULL,
            eligibility_criteria TEXT,
            requires_committee_approval BOOLEAN NOT NULL DEFAULT FALSE,
            active BOOLEAN NOT NULL DEFAULT TRUE,
            CONSTRAINT ck_funding_categories_max_amount_positive CHECK (max_amount > 0)
        );
    """
    )
    op.execute(
        f"""
        CREATE TABLE {applications_table} (
            id VARCHAR(64) PRIMARY KEY,
            student_id VARCHAR(64) NOT NULL,
            category_id VARCHAR(64) NOT NULL REFERENCES {categories_table}(id),
            requested_amount NUMERIC(15, 2) NOT NULL,
            ceiling_amount NUMERIC(15, 2) NOT NULL,
            requires_committee_approval BOOLEAN NOT NULL,
            committee_amount NUMERIC(15, 2),
            approved_amount NUMERIC(15, 2),
            status VARCHAR(32) NOT NULL,
            purpose TEXT,
            payload JSONB NOT NULL,
            submitted_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL,
            admin_id VARCHAR(64),
            admin_decided_at TIMESTAMPTZ,
            admin_remarks TEXT,
            committee_id VARCHAR(64),
            committee_decided_at TIMESTAMPTZ,
            committee_remarks TEXT,
            CONSTRAINT ck_applications_requested_amount_positive CHECK (requested_amount > 0),
            CONSTRAINT ck_applications_requested_within_ceiling CHECK (requested_amount <= ceiling_amount),
            CONSTRAINT ck_applications_approved_within_requested CHECK (
                approved_amount IS NULL OR (approved_amount > 0 AND approved_amount <= requested_amount)
            )
        );
    """
    )
    op.execute(f"CREATE INDEX ix_applications_student_id ON {applications_table} (student_id);")
    op.execute(f"CREATE INDEX ix_applications_status ON {applications_table} (status);")

    op.execute(
        f"""
        CREATE TABLE {audit_table} (
            id VARCHAR(64) PRIMARY KEY,
            application_id VARCHAR(64) NOT NULL REFERENCES {applications_table}(id),
            sequence_no INTEGER NOT NULL,
            from_status VARCHAR(32),
            to_status VARCHAR(32) NOT NULL,
            actor_role VARCHAR(16) NOT NULL,
            actor_id VARCHAR(64) NOT NULL,
            "timestamp" TIMESTAMPTZ NOT NULL,
            remarks TEXT,
            CONSTRAINT uq_application_audit_entries_sequence UNIQUE (application_id, sequence_no)
        );
    """
    )

    op.execute(
        f"""
        CREATE TABLE {ledger_table} (
            id VARCHAR(64) PRIMARY KEY,
            sequence_no INTEGER NOT NULL UNIQUE,
            transaction_type VARCHAR(16) NOT NULL,
            amount NUMERIC(15, 2) NOT NULL,
            category VARCHAR(255) NOT NULL,
            linked_application_id VARCHAR(64) REFERENCES {applications_table}(id),
            balance_after NUMERIC(15, 2) NOT NULL,
            posted_at TIMESTAMPTZ NOT NULL,
            description TEXT,
            processed_by VARCHAR(64),
            remarks TEXT,
            receipt_number VARCHAR(255),
            CONSTRAINT ck_ledger_transactions_amount_positive CHECK (amount > 0),
            CONSTRAINT ck_ledger_transactions_balance_not_negative CHECK (balance_after >= 0),
            CONSTRAINT ck_ledger_transactions_type CHECK (transaction_type IN ('inflow', 'outflow'))
        );
    """
    )
    op.execute(f"CREATE INDEX ix_ledger_transactions_posted_at ON {ledger_table} (posted_at);")
    op.execute(
        f"CREATE INDEX ix_ledger_transactions_category_posted_at ON {ledger_table} (category, posted_at);"
    )
    op.execute(
        f"""
        CREATE UNIQUE INDEX uq_ledger_transactions_application_direction
        ON {ledger_table} (linked_application_id, transaction_type);
    """
    )


def downgrade() -> None:
    """
    Drops the tables in reverse dependency order.
    """
    op.execute(f"DROP TABLE IF EXISTS {get_table_name('ledger_transactions')};")
    op.execute(f"DROP TABLE IF EXISTS {get_table_name('application_audit_entries')};")
    op.execute(f"DROP TABLE IF EXISTS {get_table_name('applications')};")
    op.execute(f"DROP TABLE IF EXISTS {get_table_name('funding_categories')};")
