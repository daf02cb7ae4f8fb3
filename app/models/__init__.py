from .image import ContentPart, GenerationResponse, InlineImage, StoredImage, UploadedImage
from .order import (
    METADATA_FALLBACK_CHARS,
    CheckoutMetadata,
    CheckoutSession,
    CompletedSession,
    EmailResult,
    OrderNotification,
)
from .responses import (
    CheckoutResponse,
    ImageUrls,
    OrderCompletedResponse,
    ProcessImageResponse,
    SaveImageResponse,
)

__all__ = [
    "ContentPart",
    "GenerationResponse",
    "InlineImage",
    "StoredImage",
    "UploadedImage",
    "METADATA_FALLBACK_CHARS",
    "CheckoutMetadata",
    "CheckoutSession",
    "CompletedSession",
    "EmailResult",
    "OrderNotification",
    "CheckoutResponse",
    "ImageUrls",
    "OrderCompletedResponse",
    "ProcessImageResponse",
    "SaveImageResponse",
]
