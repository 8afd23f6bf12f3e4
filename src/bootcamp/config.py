"""Runtime settings read from the environment.

Secrets (Stripe keys, the internal API token) are not part of Settings; they
are resolved lazily through SSMService so that importing the package never
touches AWS.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict


class Settings(BaseModel):
    """Non-secret configuration for the registration backend."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    table_prefix: str = "bootcamp-dev"
    stripe_product_id: str | None = None
    stripe_currency: str = "usd"
    app_base_url: str = "http://localhost:3000"
    email_from_address: str = "no-reply@aibootcamp.lexduo.ai"
    email_from_name: str = "AI Bootcamp"
    ses_region: str | None = None
    admin_email: str | None = None
    fallback_event_id: str = "1"
    log_level: str = "INFO"

    @property
    def ssm_prefix(self) -> str:
        """Parameter Store path prefix for this environment's secrets."""
        return f"/bootcamp/{self.environment}"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.getenv("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"bootcamp-{environment}"),
            stripe_product_id=os.getenv("STRIPE_PRODUCT_ID") or None,
            stripe_currency=os.getenv("STRIPE_CURRENCY", "usd").lower(),
            app_base_url=os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
            email_from_address=os.getenv(
                "EMAIL_FROM_ADDRESS", "no-reply@aibootcamp.lexduo.ai"
            ),
            email_from_name=os.getenv("EMAIL_FROM_NAME", "AI Bootcamp"),
            ses_region=os.getenv("SES_REGION") or None,
            admin_email=os.getenv("ADMIN_EMAIL") or None,
            fallback_event_id=os.getenv("FALLBACK_EVENT_ID", "1"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get process-wide settings, read once from the environment."""
    return Settings.from_env()
