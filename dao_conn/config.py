"""Connection settings loaded from DAO_* environment variables or a `.env` file."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DaoSettings(BaseSettings):
    """Typed connection settings; invalid values fail validation at load time."""

    model_config = SettingsConfigDict(
        env_prefix="DAO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    conn_str: str = Field("sqlite:///dao.db", description="SQLAlchemy URL of the DAO database.")
    audit_db: Optional[str] = Field(None, description="SQLite file for the audit trail; auditing is off when unset.")
    echo: bool = Field(False, description="Echo SQL through the SQLAlchemy engine logger.")
    debug: bool = Field(False, description="Log every statement and its parameters at DEBUG.")


settings = DaoSettings()

DB_CONFIG = settings.model_dump()
