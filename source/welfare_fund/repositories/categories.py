"""This module defines the repository for funding categories."""

from sqlalchemy import Engine, select
from sqlalchemy.dialects import postgresql, sqlite

from welfare_fund.exceptions.review import CategoryNotFound
from welfare_fund.models.categories import FundingCategory
from welfare_fund.providers.logging import Logger, LoggingProvider
from welfare_fund.repositories.schema import funding_categories


class CategoriesRepository:
    """Reads funding categories and serves as the core's category provider.

    Args:
        engine: An SQLAlchemy Engine instance for database communication.
    """

    logger: Logger
    engine: Engine

    def __init__(self, engine: Engine) -> None:
        """Initializes the repository with a database engine.

        Args:
            engine: The SQLAlchemy Engine to be used for all database
                communications.
        """
        self.logger = LoggingProvider().get_logger()
        self.engine = engine

    def get_category(self, category_id: str) -> FundingCategory:
        """Retrieves a category by its identifier.

        Args:
            category_id: The category identifier.

        Returns:
            The category.

        Raises:
            CategoryNotFound: If no category has that identifier.
        """
        stmt = select(funding_categories).where(funding_categories.c.id == category_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()

        if row is None:
            raise CategoryNotFound(f"Funding category {category_id} does not exist.", category_id=category_id)
        return FundingCategory.model_validate(dict(row))

    def list_categories(self, active_only: bool = False) -> list[FundingCategory]:
        """Lists categories ordered by identifier.

        Args:
            active_only: If True, disabled categories are left out.

        Returns:
            A list of categories.
        """
        stmt = select(funding_categories).order_by(funding_categories.c.id)
        if active_only:
            stmt = stmt.where(funding_categories.c.active.is_(True))
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().fetchall()
        return [FundingCategory.model_validate(dict(row)) for row in rows]

    def upsert_category(self, category: FundingCategory) -> None:
        """Creates a category or replaces the rule set of an existing one.

        Applications already submitted keep the ceiling snapshotted at their
        submission, so a replaced rule set only affects new claims.

        Args:
            category: The category to store.
        """
        values = category.model_dump()
        insert = postgresql.insert if self.engine.dialect.name == "postgresql" else sqlite.insert
        stmt = insert(funding_categories).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[funding_categories.c.id],
            set_={key: value for key, value in values.items() if key != "id"},
        )
        with self.engine.connect() as conn:
            conn.execute(stmt)
            conn.commit()
        self.logger.info(f"Stored funding category {category.id} with ceiling {category.max_amount}.")
