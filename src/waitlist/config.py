"""
Configuration settings for the waitlist service
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseBackend(str, Enum):
    """Available persistence backends"""

    POSTGRES = "postgres"
    MEMORY = "memory"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    app_name: str = "Daycare Waitlist Service"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8002
    debug: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Database Settings
    database_backend: DatabaseBackend = DatabaseBackend.POSTGRES
    database_url: str | None = None
    database_pool_min_size: int = 5
    database_pool_max_size: int = 20
    database_command_timeout: float = 30.0
    database_apply_schema: bool = False
    transaction_isolation: str = "repeatable_read"
    # attempts per unit of work when the database reports a serialization failure or deadlock
    transaction_max_attempts: int = 3

    # Waitlist Rules
    default_waitlist_policy: str = "application_date"
    reverse_placement_on_deaccept: bool = False


# Global settings instance
settings = Settings()
