"""
Configuration management for the QR redemption and settlement service.

Commission rates, bonus amounts and infrastructure settings are read
from environment variables (or a local .env file) so that deployments
can tune them without code changes.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Money values are kept as Decimal so that they never pass through
    binary floating point on their way into the commission engine.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Database Configuration
    database_url: str = "sqlite:///./qr_settlement.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Environment Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_sql_queries: bool = False
    slow_query_threshold_seconds: float = 1.0

    # Commission Configuration
    platform_commission_rate: Decimal = Decimal("0.075")  # 7.5% of gross
    agent_commission_rate: Decimal = Decimal("0.10")  # 10% of platform commission
    min_agent_commission: Decimal = Decimal("0.50")

    # Team overrides and recruitment
    team_override_rate: Decimal = Decimal("0.075")  # of the recruit's commission
    team_override_months: int = 6
    recruitment_bonus_amount: Decimal = Decimal("75.00")
    recruitment_bonus_sales_threshold: int = 3
    referral_signup_bonus: Decimal = Decimal("0.00")  # 0 disables

    # Notifications
    notifications_enabled: bool = True

    @field_validator(
        "platform_commission_rate", "agent_commission_rate", "team_override_rate"
    )
    @classmethod
    def validate_rate(cls, v: Decimal) -> Decimal:
        """Rates are fractions, not percentages."""
        if v < 0 or v > 1:
            raise ValueError("commission rates must be between 0 and 1")
        return v

    @field_validator(
        "min_agent_commission", "recruitment_bonus_amount", "referral_signup_bonus"
    )
    @classmethod
    def validate_money(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("monetary settings must not be negative")
        return v

    @field_validator("team_override_months", "recruitment_bonus_sales_threshold")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_production_database(self) -> "Settings":
        """SQLite cannot provide the row-level guarantees production needs."""
        if self.is_production and self.database_url.startswith("sqlite"):
            raise ValueError("DATABASE_URL must not point at SQLite in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


# Export settings instance for easy import
settings = get_settings()
