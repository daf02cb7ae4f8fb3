from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file.

    Every credential is optional here; endpoints that need a missing one
    answer with a configuration error instead of failing at startup.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # General
    public_base_url: str = Field(
        "http://localhost:3000",
        description="Origin used for checkout redirects when the request has no Origin header.",
    )
    log_level: str = Field("INFO")
    http_timeout_seconds: float = Field(30.0, description="Timeout for outbound HTTP calls.")

    # Image generation
    image_provider: str = Field("gemini")
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field("gemini-2.5-flash-image")

    # Cloud Storage
    gcs_bucket_name: Optional[str] = Field(default=None)
    gcs_credentials: Optional[str] = Field(
        default=None,
        description="Path to service-account JSON file or JSON string itself.",
    )

    # Stripe
    stripe_secret_key: Optional[str] = Field(default=None)
    stripe_webhook_secret: Optional[str] = Field(default=None)
    stripe_api_version: Optional[str] = Field(default=None)

    # Email (Resend)
    resend_api_key: Optional[str] = Field(default=None)
    email_from: str = Field("Laser Engraving Orders <onboarding@resend.dev>")
    order_notification_email: Optional[str] = Field(default=None)

    # Upload limits
    max_upload_bytes: int = Field(10 * 1024 * 1024, description="Size cap for images sent to the generator.")
    max_form_part_bytes: int = Field(
        32 * 1024 * 1024,
        description="Size cap for a single non-file multipart field (base64 images at checkout).",
    )

    @property
    def storage_configured(self) -> bool:
        return bool(self.gcs_bucket_name)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
