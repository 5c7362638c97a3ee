"""Application configuration settings."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using a mounted volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/rentals.db"
    return "sqlite:///./rentals.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Rentals"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database - defaults to volume path if /data exists
    DATABASE_URL: str = _get_default_database_url()
    SQL_ECHO: bool = False

    # Money display (lt-LT style: "1 234,50 €")
    CURRENCY: str = "EUR"
    CURRENCY_SYMBOL: str = "€"
    THOUSANDS_SEPARATOR: str = " "
    DECIMAL_SEPARATOR: str = ","

    # Tenant names that mean "nobody lives here"
    VACANCY_SENTINELS: list[str] = ["vacant", "laisvas"]

    # Heating meters are always billed building-wide
    HEATING_NAME_PATTERN: str = r"heating|šildymas|sildymas"


settings = Settings()
