"""Configuration for Marketplace Service."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Marketplace service configuration.

    All settings can be overridden via environment variables.
    """

    # Service configuration
    SERVICE_NAME: str = Field(default="marketplace-service")
    SERVICE_VERSION: str = Field(default="1.0.0")
    SERVICE_HOST: str = Field(default="0.0.0.0")
    SERVICE_PORT: int = Field(default=8020, ge=1, le=65535)
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # JWT verification (tokens are issued by the external auth provider)
    JWT_SECRET_KEY: str = Field(
        default="your-super-secret-key-change-in-production-min-32-chars"
    )
    JWT_ALGORITHM: str = Field(default="HS256")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./marketplace.db")
    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE: int = Field(default=3600, ge=1)
    QUERY_LOG_THRESHOLD_MS: int = Field(default=100, ge=0)

    # Administrator bootstrap
    ADMIN_SECRET_KEY: str = Field(default="your-super-secret-admin-key-change-this")
    PASSWORD_HASH_ROUNDS: int = Field(default=12, ge=4, le=31)

    # CORS
    CORS_ORIGINS: str = Field(default="http://localhost:3000,http://localhost:8080")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
