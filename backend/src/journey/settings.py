"""Application settings and configuration."""

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "journey"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"
    allowed_origins: str = "http://localhost:3000"

    # Public landing page, used for checkout redirects and referral links
    app_url: str = "http://localhost:3000"

    # Database
    database_url: str = "sqlite:///./journey.db"

    # Stripe
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    # Checkout
    checkout_amount_cents: int = 1
    checkout_currency: str = "usd"
    checkout_product_name: str = "The Ultimate Journey - Newsletter Waitlist"
    checkout_product_description: str = "Join our exclusive newsletter and get your boarding pass"

    # SendGrid
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "noreply@ultimatejourney.example"
    sendgrid_from_name: str = "The Ultimate Journey"

    # Admin addresses that receive a notification for every signup
    internal_notification_emails: list[str] = Field(default_factory=list)


# Global settings instance
settings = Settings()

# ── Production sanity checks ─────────────────────────────────────────
if settings.env == "production" and not settings.stripe_webhook_secret:
    print(
        "\n❌  FATAL: STRIPE_WEBHOOK_SECRET must be set in production.\n",
        file=sys.stderr,
    )
    sys.exit(1)
