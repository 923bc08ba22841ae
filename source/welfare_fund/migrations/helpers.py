from welfare_fund.providers.config import ConfigProvider


def get_table_name(base_name: str) -> str:
    """Qualifies a welfare fund table with the configured Postgres schema.

    Args:
        base_name: The unqualified table name, e.g. ``ledger_transactions``.

    Returns:
        ``<schema>.<base_name>`` when POSTGRES_DB_SCHEMA is set, otherwise the
        bare table name.
    """
    schema_name = ConfigProvider.get_config().POSTGRES_DB_SCHEMA
    return f"{schema_name}.{base_name}" if schema_name else base_name
