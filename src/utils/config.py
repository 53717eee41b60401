"""Configuration management for the application."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

RATE_CURRENCIES = ("EUR", "CNY", "RUB", "GBP", "BRL")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExchangeRateConfig:
    """Exchange rate configuration."""

    # Currency code -> USD per unit; only currencies overridden via RATE_<CODE>
    rate_overrides: dict[str, str] = field(default_factory=dict)
    cache_ttl_seconds: int = 86400  # 24 hours


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    level: str = "INFO"
    log_file: str | None = None


@dataclass
class DatabaseConfig:
    """Database configuration."""

    database_url: str
    echo: bool = False


class Config:
    """Main application configuration."""

    def __init__(self):
        self.rates = ExchangeRateConfig(
            rate_overrides={
                code: os.environ[f"RATE_{code}"]
                for code in RATE_CURRENCIES
                if os.getenv(f"RATE_{code}")
            },
            cache_ttl_seconds=int(os.getenv("RATE_CACHE_TTL_SECONDS", "86400")),
        )

        self.logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
        )

        self.database = DatabaseConfig(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./skin_prices.db"),
            echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
        )

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ValueError if configuration is invalid
        """
        if self.logging.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.logging.level}. "
                f"Use one of {', '.join(VALID_LOG_LEVELS)}"
            )

        if self.rates.cache_ttl_seconds <= 0:
            raise ValueError("RATE_CACHE_TTL_SECONDS must be positive")

        for code, raw in self.rates.rate_overrides.items():
            try:
                rate = Decimal(raw)
            except InvalidOperation as e:
                raise ValueError(f"RATE_{code} must be a number, got {raw!r}") from e
            if not rate.is_finite() or rate <= 0:
                raise ValueError(f"RATE_{code} must be a positive number, got {raw!r}")

        return True


# Global config instance
config = Config()
