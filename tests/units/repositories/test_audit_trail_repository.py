from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import Engine

from welfare_fund.models.enums import ActorRole, ApplicationStatus
from welfare_fund.repositories.audit_trail import AuditTrailRepository

AT = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(engine: Engine) -> AuditTrailRepository:
    """Provides an AuditTrailRepository on the SQLite database."""
    return AuditTrailRepository(engine)


def test_append_numbers_entries_per_application(repo: AuditTrailRepository, engine: Engine) -> None:
    """Tests that every application has its own entry sequence."""
    with engine.begin() as conn:
        first = repo.append(conn, "APP-1", None, ApplicationStatus.SUBMITTED, ActorRole.STUDENT, "S100", AT)
        second = repo.append(
            conn,
            "APP-1",
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.UNDER_REVIEW,
            ActorRole.SYSTEM,
            "system",
            AT + timedelta(seconds=1),
        )
        other = repo.append(conn, "APP-2", None, ApplicationStatus.SUBMITTED, ActorRole.STUDENT, "S200", AT)

    assert (first.sequence_no, second.sequence_no, other.sequence_no) == (1, 2, 1)


def test_list_for_application_in_order(repo: AuditTrailRepository, engine: Engine) -> None:
    """Tests that the trail reads back oldest first with all fields."""
    with engine.begin() as conn:
        repo.append(
            conn,
            "APP-1",
            ApplicationStatus.ADMIN_PENDING,
            ApplicationStatus.ADMIN_REJECTED,
            ActorRole.ADMIN,
            "A1",
            AT + timedelta(seconds=5),
            remarks="Incomplete documents",
        )
    with engine.begin() as conn:
        repo.append(conn, "APP-2", None, ApplicationStatus.SUBMITTED, ActorRole.STUDENT, "S200", AT)

    trail = repo.list_for_application("APP-1")

    assert len(trail) == 1
    assert trail[0].from_status == ApplicationStatus.ADMIN_PENDING
    assert trail[0].to_status == ApplicationStatus.ADMIN_REJECTED
    assert trail[0].actor_role == ActorRole.ADMIN
    assert trail[0].remarks == "Incomplete documents"
    assert trail[0].timestamp == AT + timedelta(seconds=5)


def test_repository_offers_no_mutation() -> None:
    """Tests that the trail can only be appended to."""
    assert not any(hasattr(AuditTrailRepository, name) for name in ("update", "delete", "remove"))
