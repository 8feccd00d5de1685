"""
Runtime configuration for the Universal Agent Gateway.
Values come from the environment, with a .env file loaded first when present.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings resolved once at startup."""

    database_url: str
    app_url: str = ""
    shopify_api_version: str = "2025-01"
    http_timeout: float = 30.0
    sql_echo: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    @classmethod
    def from_env(cls, database_url: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            database_url: Overrides DATABASE_URL when given.

        Raises:
            ValueError: If no database URL is configured.
        """
        load_dotenv()

        database_url = database_url or os.getenv("DATABASE_URL")
        if not database_url:
            raise ValueError(
                "DATABASE_URL environment variable is required. "
                "Point it at the PostgreSQL database shared with the Shopify app."
            )

        # Handle postgres:// to postgresql:// for SQLAlchemy 1.4+
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        return cls(
            database_url=database_url,
            app_url=os.getenv("SHOPIFY_APP_URL", "").rstrip("/"),
            shopify_api_version=os.getenv("SHOPIFY_API_VERSION", "2025-01"),
            http_timeout=float(os.getenv("SHOPIFY_HTTP_TIMEOUT", "30")),
            sql_echo=_env_flag("SQL_ECHO"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=_env_flag("DEBUG"),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging the same way for the server and scripts."""
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
