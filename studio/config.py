"""
Studio configuration: all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # AI providers
    ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
    AI_PROVIDER: str = os.environ.get("AI_PROVIDER", "openai")  # "openai" | "anthropic"
    AI_MODEL: str = os.environ.get("AI_MODEL", "gpt-4o-mini")
    AI_MAX_RETRIES: int = int(os.environ.get("AI_MAX_RETRIES", "1"))

    # WooCommerce product catalog
    WC_BASE_URL: str = os.environ.get("WC_BASE_URL", "")
    WC_CONSUMER_KEY: str = os.environ.get("WC_CONSUMER_KEY", "")
    WC_CONSUMER_SECRET: str = os.environ.get("WC_CONSUMER_SECRET", "")
    WC_TIMEOUT_SECONDS: float = float(os.environ.get("WC_TIMEOUT_SECONDS", "10"))

    # Store identity used in token context
    STORE_NAME: str = os.environ.get("STORE_NAME", "")
    STORE_URL: str = os.environ.get("STORE_URL", "")
    CURRENCY_SYMBOL: str = os.environ.get("CURRENCY_SYMBOL", "£")

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")

    @property
    def AI_API_KEY(self) -> str:
        return self.ANTHROPIC_API_KEY if self.AI_PROVIDER == "anthropic" else self.OPENAI_API_KEY

    @property
    def store_context(self) -> dict[str, str]:
        return {"store_name": self.STORE_NAME, "store_url": self.STORE_URL}


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not _testing:
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if settings.AI_PROVIDER not in ("openai", "anthropic"):
        raise RuntimeError(f"AI_PROVIDER must be 'openai' or 'anthropic', got {settings.AI_PROVIDER!r}")
    if settings.ENVIRONMENT != "development" and not settings.AI_API_KEY:
        raise RuntimeError(f"API key for AI_PROVIDER={settings.AI_PROVIDER} is required")
