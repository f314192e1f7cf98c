"""Configuration management for SplitLedger."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Acting user for CLI commands (overridable with --as)
    actor_id: str | None = None

    # Currency settings
    currency_code: str = "INR"
    currency_symbol: str = "₹"
    subunits_per_unit: int = 100  # paise per rupee

    # Settlement settings
    default_settlement_note: str = "Settlement payment"

    # Change polling
    poll_interval_seconds: float = 30.0

    # Database path
    database_path: Path = Path.home() / ".splitledger" / "splitledger.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your environment and .env file.\n"
            f"Error: {e}"
        ) from e
