from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .order import EmailResult


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProcessImageResponse(_Response):
    image: str
    mime_type: str = Field(..., alias="mimeType")
    original_image_url: str | None = Field(None, alias="originalImageUrl")
    processed_image_url: str | None = Field(None, alias="processedImageUrl")
    warnings: list[str] | None = None


class SaveImageResponse(_Response):
    url: str
    filename: str
    size: int


class ImageUrls(BaseModel):
    original: str
    processed: str


class CheckoutResponse(_Response):
    session_id: str = Field(..., alias="sessionId")
    url: str | None = None
    image_urls: ImageUrls = Field(..., alias="imageUrls")


class OrderCompletedResponse(_Response):
    order_id: str = Field(..., alias="orderId")
    images: ImageUrls
    email: EmailResult
