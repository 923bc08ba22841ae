"""This module defines the configuration management for the welfare fund core.

It uses Pydantic's BaseSettings to create a strongly-typed configuration
class that reads from environment variables and .env files. This ensures
all required configuration is present and valid at startup.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """A Pydantic model for managing application settings.

    It automatically loads configuration from environment variables and .env files.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str | None = None

    POSTGRES_DRIVER: str = "postgresql"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "welfare_fund"
    POSTGRES_DB_SCHEMA: str | None = None

    LOG_LEVEL: str = "INFO"

    FUND_CURRENCY: str = "RM"

    APPLICATION_ID_PREFIX: str = "APP"
    TRANSACTION_ID_PREFIX: str = "TXN"

    LEDGER_ADVISORY_LOCK_KEY: int = 7_340_213
    LEDGER_HISTORY_PAGE_SIZE: int = 500

    @model_validator(mode="after")
    def set_derived_database_url(self) -> "Config":
        """Builds the SQLAlchemy URL from the Postgres settings when none is given.

        Returns:
            The modified Config object.
        """
        if self.DATABASE_URL is None:
            self.DATABASE_URL = (
                f"{self.POSTGRES_DRIVER}://"
                f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
                f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
                f"{self.POSTGRES_DB}"
            )
        return self


class ConfigProvider:
    """A provider class that acts as a factory for the application's configuration.

    It does not hold state but provides a method to create fresh config instances.
    """

    @staticmethod
    def get_config() -> Config:
        """Factory method that instantiates and returns a new Config object.

        Calling this function will always create a new instance of the Config model,
        which forces Pydantic to reload and re-validate all settings from the
        current environment variables.

        Returns:
            A new, validated Config object.
        """
        return Config()
