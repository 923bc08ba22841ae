from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from welfare_fund.providers.config import ConfigProvider
from welfare_fund.providers.logging import LoggingProvider
from welfare_fund.repositories.schema import metadata

alembic_config = context.config
fund_config = ConfigProvider.get_config()

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name, disable_existing_loggers=False)

logger = LoggingProvider().get_logger()
alembic_config.set_main_option("sqlalchemy.url", fund_config.DATABASE_URL)


def run_migrations_offline() -> None:
    """Emits the welfare fund DDL as a script instead of running it."""
    context.configure(
        url=alembic_config.get_main_option("sqlalchemy.url"),
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Runs the migrations against the configured database.

    On Postgres, a configured POSTGRES_DB_SCHEMA becomes the search path and
    also holds the alembic_version table, so test schemas stay isolated.
    """
    schema_name = fund_config.POSTGRES_DB_SCHEMA
    section = alembic_config.get_section(alembic_config.config_ini_section, {})
    is_postgres = fund_config.DATABASE_URL.startswith("postgresql")

    if schema_name and is_postgres:
        logger.info(f"Migrating the welfare fund tables within schema {schema_name}.")
        section["connect_args"] = {"options": f"-csearch_path={schema_name}"}
    else:
        schema_name = None

    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=metadata,
            version_table_schema=schema_name,
            include_schemas=bool(schema_name),
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
