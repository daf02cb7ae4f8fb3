from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Stripe caps metadata values at 500 characters.
METADATA_FALLBACK_CHARS = 500


class CheckoutMetadata(BaseModel):
    """Metadata attached to a checkout session and read back by the webhook."""

    model_config = ConfigDict(populate_by_name=True)

    order_type: str = Field("custom-engraving", alias="orderType")
    original_url: str | None = Field(None, alias="originalUrl")
    processed_url: str | None = Field(None, alias="processedUrl")
    original_image: str | None = Field(None, alias="originalImage")
    processed_image: str | None = Field(None, alias="processedImage")
    original_mime_type: str = Field("image/png", alias="originalMimeType")
    processed_mime_type: str = Field("image/png", alias="processedMimeType")

    @classmethod
    def build(
        cls,
        *,
        original_url: str,
        processed_url: str,
        original_base64: str,
        processed_base64: str,
        original_mime_type: str,
        processed_mime_type: str,
    ) -> "CheckoutMetadata":
        return cls(
            original_url=original_url,
            processed_url=processed_url,
            original_image=original_base64[:METADATA_FALLBACK_CHARS],
            processed_image=processed_base64[:METADATA_FALLBACK_CHARS],
            original_mime_type=original_mime_type,
            processed_mime_type=processed_mime_type,
        )

    def to_stripe(self) -> dict[str, str]:
        return {k: v for k, v in self.model_dump(by_alias=True).items() if v is not None}


class CheckoutSession(BaseModel):
    id: str
    url: str | None = None


class CompletedSession(BaseModel):
    """The ``data.object`` of a ``checkout.session.completed`` event."""

    model_config = ConfigDict(extra="ignore")

    id: str
    metadata: dict[str, str] = Field(default_factory=dict)
    customer_email: str | None = None
    customer_details: dict[str, Any] | None = None

    @property
    def resolved_customer_email(self) -> str | None:
        if self.customer_email:
            return self.customer_email
        if self.customer_details:
            return self.customer_details.get("email") or None
        return None

    @property
    def checkout_metadata(self) -> CheckoutMetadata:
        return CheckoutMetadata.model_validate(self.metadata)


class OrderNotification(BaseModel):
    order_id: str
    original_url: str
    processed_url: str
    original_bytes: bytes | None = None
    processed_bytes: bytes | None = None
    original_mime_type: str = "image/png"
    processed_mime_type: str = "image/png"
    customer_email: str | None = None


class EmailResult(BaseModel):
    """Outcome of a notification send; partial failure is not an error."""

    success: bool
    sent: int = 0
    failed: int = 0
    error: str | None = None
