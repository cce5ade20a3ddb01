from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Investor Readiness API"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: str | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_auto_create_schema: bool = False

    # Identity (transport boundary only; the onboarding core never defaults)
    default_owner_email: str | None = None

    # Notifications
    notifications_limit: int = 50

    # Metrics
    metrics_backend: str = "stdout"
    metrics_namespace: str = "onboarding"
    metrics_disable: bool = False
    metrics_sample_rate: float = 1.0
    metrics_statsd_host: str = "127.0.0.1"
    metrics_statsd_port: int = 8125

    # Security
    cors_origins: list[str] = []  # Empty by default for security

    # Sentry
    sentry_dsn: str | None = None

    @property
    def uses_database(self) -> bool:
        """Return True when a SQL store is configured instead of the in-memory one."""
        return bool(self.database_url)

    model_config = ConfigDict(env_file=".env", case_sensitive=False)


settings = Settings()
