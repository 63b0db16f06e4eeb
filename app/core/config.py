"""Application configuration using pydantic-settings."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All required database parameters and the marketplace secret must be
    provided via environment variables or a .env file. Missing required
    parameters will raise a ValidationError at application startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )

    # Database - Required
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str

    # Full URL override, e.g. sqlite+aiosqlite:///./ledger.db for local runs
    DATABASE_URL: str | None = None

    # Redis - Optional with defaults
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    # Wallet address derivation seed
    MARKETPLACE_SECRET_KEY: str

    # x402 payee for data purchases
    MARKETPLACE_PAYMENT_ADDRESS: str = "0x1176FCbC388c500D01E8B8ceDd816A86C3365156"

    # Ledger behaviour
    LEDGER_MAX_RETRIES: int = 3
    LEDGER_RETRY_BACKOFF_SECONDS: float = 0.05
    WITHDRAWAL_COMPLETION_DELAY_SECONDS: int = 5
    WITHDRAWAL_SETTLEMENT_TIMEOUT_SECONDS: int = 3600
    STALE_WITHDRAWAL_SWEEP_SECONDS: int = 300

    # Testnet faucet simulation
    FAUCET_ETH_AMOUNT: Decimal = Decimal("0.1")
    FAUCET_USDC_AMOUNT: Decimal = Decimal("100.00")

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        """Construct async database URL.

        Uses DATABASE_URL when set, otherwise PostgreSQL with the asyncpg driver.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def celery_broker_url(self) -> str:
        """Construct Celery broker URL using Redis settings."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"

    @property
    def celery_result_backend(self) -> str:
        """Construct Celery result backend URL using Redis settings."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"


# Singleton settings instance - lazily loaded
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
