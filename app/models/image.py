from __future__ import annotations

import base64

from pydantic import BaseModel, Field


class UploadedImage(BaseModel):
    """Image bytes received from a multipart upload."""

    data: bytes
    mime_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


class InlineImage(BaseModel):
    data: str  # base64, as returned by the generator
    mime_type: str = "image/png"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class ContentPart(BaseModel):
    text: str | None = None
    inline_data: InlineImage | None = None


class GenerationResponse(BaseModel):
    """Ordered content parts returned by an image generation provider."""

    parts: list[ContentPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if part.text)

    def first_inline_image(self) -> InlineImage | None:
        for part in self.parts:
            if part.inline_data is not None:
                return part.inline_data
        return None


class StoredImage(BaseModel):
    key: str
    url: str  # Public (or signed) GCS URL
    size: int = Field(..., ge=0)
