"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.

Credentials have no usable defaults: they must come from the environment
(or a local .env file).
"""

from functools import lru_cache
from typing import List
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "careers"
    db_user: str = ""
    db_password: str = ""
    db_sslmode: str = "prefer"

    # Connection pool
    db_pool_size: int = Field(20, ge=1)
    db_pool_timeout: int = 30
    db_idle_timeout: int = 30
    db_connect_timeout: int = 2

    # Admin console (HTTP Basic)
    admin_login: str = ""
    admin_password: str = ""
    admin_password_hash: str = ""
    admin_max_failed_attempts: int = 5
    admin_lockout_seconds: int = 300

    # Uploads
    max_upload_mb: int = 5

    # App
    port: int = 3000
    allowed_origins: str = ""
    log_level: str = "INFO"
    debug: bool = False

    @property
    def database_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql+psycopg2://{quote_plus(self.db_user)}:{quote_plus(self.db_password)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
