from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine

from welfare_fund.exceptions.review import CategoryNotFound
from welfare_fund.models.categories import DEFAULT_CATEGORIES
from welfare_fund.providers.collaborators import CategoryProvider
from welfare_fund.repositories.categories import CategoriesRepository


@pytest.fixture
def repo(engine: Engine) -> CategoriesRepository:
    """Provides a CategoriesRepository seeded with the default categories."""
    repository = CategoriesRepository(engine)
    for category in DEFAULT_CATEGORIES:
        repository.upsert_category(category)
    return repository


def test_get_category(repo: CategoriesRepository) -> None:
    """Tests reading a seeded category."""
    category = repo.get_category("CAT-ILLNESS-OUTPATIENT")

    assert category.max_amount == Decimal("30.00")
    assert category.requires_committee_approval is False
    assert category.active is True


def test_get_unknown_category(repo: CategoriesRepository) -> None:
    """Tests that an unknown id raises CategoryNotFound."""
    with pytest.raises(CategoryNotFound):
        repo.get_category("CAT-UNKNOWN")


def test_upsert_replaces_rule_set(repo: CategoriesRepository) -> None:
    """Tests that storing an existing category updates it in place."""
    category = repo.get_category("CAT-BEREAVEMENT")

    repo.upsert_category(category.model_copy(update={"max_amount": Decimal("600.00"), "active": False}))

    updated = repo.get_category("CAT-BEREAVEMENT")
    assert updated.max_amount == Decimal("600.00")
    assert updated.active is False
    assert [c.id for c in repo.list_categories(active_only=True)].count("CAT-BEREAVEMENT") == 0
    assert len(repo.list_categories()) == len(DEFAULT_CATEGORIES)


def test_repository_is_a_category_provider() -> None:
    """Tests that the repository satisfies the category provider contract."""
    assert isinstance(CategoriesRepository(MagicMock()), CategoryProvider)
