"""
Configuration management for the notebook service.

Loads and validates environment variables for the application.
"""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Notebook service configuration.

    All settings can be overridden via environment variables.
    """

    # Service configuration
    APP_NAME: str = Field(default="eLN Notebook Service")
    SERVICE_NAME: str = Field(default="notebook-service")
    SERVICE_HOST: str = Field(default="0.0.0.0")
    SERVICE_PORT: int = Field(default=8020, ge=1, le=65535)
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./eln.db")
    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE: int = Field(default=3600)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_PRE_PING: bool = Field(default=True)
    QUERY_LOG_THRESHOLD_MS: int = Field(default=100, ge=0)

    # JWT Authentication (tokens are issued by the auth service)
    JWT_SECRET_KEY: str = Field(
        default="your-super-secret-key-change-in-production-min-32-chars"
    )
    JWT_ALGORITHM: str = Field(default="HS256")

    # Entities
    MAX_BODY_SIZE: int = Field(default=4_120_000, ge=1)
    DEFAULT_CANREAD: str = Field(default="team")
    DEFAULT_CANWRITE: str = Field(default="user")
    SHOW_LIMIT: int = Field(default=15, ge=1, le=500)

    # CORS
    CORS_ORIGINS: str = Field(default="http://localhost:8080,http://localhost:3000")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
