"""Configuration management for the consultant portal."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    host: str
    port: int
    debug: bool
    log_level: str
    invoice_number_seed: int
    default_invoice_bonus: Decimal
    invoice_due_days: int
    company_name: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./consultant_portal.db",
            ),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            invoice_number_seed=int(os.getenv("INVOICE_NUMBER_SEED", "198")),
            # Matches the "Consultant Bonus" line historically billed to the client
            default_invoice_bonus=Decimal(os.getenv("DEFAULT_INVOICE_BONUS", "751.96")),
            invoice_due_days=int(os.getenv("INVOICE_DUE_DAYS", "30")),
            company_name=os.getenv("COMPANY_NAME", "Consultant Portal"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
