"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service
    ENVIRONMENT: str = "development"
    PORT: int = 8080
    SERVICE_NAME: str = "celeiro"
    SERVICE_INSTANCE_ID: str = "1"
    SERVICE_VERSION: str = "unknown"
    SHUTDOWN_TIMEOUT_SECONDS: int = 5

    # Relational store
    DATABASE_URL: str = "sqlite:///celeiro.db"
    DATABASE_NAME: str = "celeiro"
    PG_MAX_IDLE: int = 10
    PG_MAX_CONN: int = 100

    # Ephemeral store (empty host selects the in-memory store)
    REDIS_HOST: str = ""
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DB: int = 0

    # Mail
    EMAIL_FROM: str = "noreply@example.com"
    FRONTEND_URL: str = "http://localhost:51111"
    MAILER_TYPE: str = Field(default="", description="mock, local, smtp2go or resend")
    LOCAL_MAILER_DIR: str = "./localmailer"
    SMTP2GO_API_KEY: str = ""
    SMTP2GO_SENDER: str = ""
    SMTP2GO_BASE_URL: str = "https://api.smtp2go.com/v3"
    SMTP2GO_TIMEOUT: int = 30
    RESEND_API_KEY: str = ""

    # Telemetry
    OTEL_ENDPOINT: str = "localhost:4317"
    OTEL_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None

    # Auth lifetimes
    MAGIC_CODE_TTL_SECONDS: int = Field(default=600, gt=0)
    SESSION_TTL_SECONDS: int = Field(default=30 * 24 * 3600, gt=0)
    SESSION_REFRESH_TTL_SECONDS: int = Field(default=24 * 3600, gt=0)
    INVITE_TTL_SECONDS: int = Field(default=7 * 24 * 3600, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def mailer_type(self) -> str:
        """Configured mailer, falling back to resend in production and local elsewhere."""
        if self.MAILER_TYPE:
            return self.MAILER_TYPE
        return "resend" if self.is_production else "local"

    @property
    def log_json(self) -> bool:
        if self.LOG_JSON is None:
            return self.is_production
        return self.LOG_JSON


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
