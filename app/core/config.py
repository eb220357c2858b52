"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here, no scattered magic strings.
"""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        database_url: SQLAlchemy URL of the ledger store.
        database_echo: Log every SQL statement.
        create_tables_on_startup: Run ``create_all`` when the app starts.
        auto_execute_orders: Execute new orders immediately after placing them.
        default_allocation_percentage: Allocation used when a follower
            does not choose one.
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_orders: Rate limit for order entry and money movement.
        rate_limit_enabled: Turn slowapi limiting on or off.
        notification_webhook_url: If set, notifications are POSTed here
            instead of only being logged.
        notification_timeout_seconds: HTTP timeout for webhook delivery.
        notification_inbox_enabled: Keep a copy of every notification in
            the in-app inbox.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_name: str = "Brokerage Ledger"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite:///./brokerage.db"
    database_echo: bool = False
    create_tables_on_startup: bool = True

    auto_execute_orders: bool = True
    default_allocation_percentage: Decimal = Decimal("100.00")

    rate_limit_default: str = "60/minute"
    rate_limit_orders: str = "30/minute"
    rate_limit_enabled: bool = True

    notification_webhook_url: Optional[str] = None
    notification_timeout_seconds: float = 5.0
    notification_inbox_enabled: bool = True


settings = Settings()
