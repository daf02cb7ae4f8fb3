"""Checkout endpoint: store both images, then open a Stripe Checkout session."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.config import Settings, get_settings
from app.dependencies import get_payment_service, get_storage_service
from app.errors import APIError, ConfigurationError, InvalidRequestError, UpstreamError
from app.models import CheckoutMetadata, CheckoutResponse, ImageUrls
from app.services.payments import PaymentService
from app.services.storage import StorageService
from app.utils.keys import extension_from_mime, temp_folder
from app.utils.uploads import decode_base64_image

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


@router.post("/api/create-checkout")
async def create_checkout(
    request: Request,
    settings: Settings = Depends(get_settings),
    payments: PaymentService | None = Depends(get_payment_service),
    storage: StorageService | None = Depends(get_storage_service),
):
    if payments is None or storage is None:
        raise ConfigurationError("Stripe or Blob storage not configured.")

    # Base64 images easily exceed Starlette's default 1 MB per-field limit.
    form = await request.form(max_part_size=settings.max_form_part_bytes)
    original_b64 = await _text_field(form.get("originalImage"))
    processed_b64 = await _text_field(form.get("processedImage"))
    original_mime = await _text_field(form.get("originalMimeType")) or DEFAULT_MIME_TYPE
    processed_mime = await _text_field(form.get("processedMimeType")) or DEFAULT_MIME_TYPE

    if not original_b64 or not processed_b64:
        raise InvalidRequestError("Missing image data")

    try:
        original_bytes = decode_base64_image(original_b64)
        processed_bytes = decode_base64_image(processed_b64)
    except ValueError as exc:
        raise InvalidRequestError("Invalid image data", details=str(exc)) from exc

    try:
        folder = temp_folder()
        original = await run_in_threadpool(
            storage.upload_image,
            original_bytes,
            f"{folder}/original.{extension_from_mime(original_mime)}",
            content_type=original_mime,
        )
        processed = await run_in_threadpool(
            storage.upload_image,
            processed_bytes,
            f"{folder}/processed.{extension_from_mime(processed_mime)}",
            content_type=processed_mime,
        )

        metadata = CheckoutMetadata.build(
            original_url=original.url,
            processed_url=processed.url,
            original_base64=original_b64,
            processed_base64=processed_b64,
            original_mime_type=original_mime,
            processed_mime_type=processed_mime,
        )
        origin = request.headers.get("origin") or settings.public_base_url
        session = await run_in_threadpool(
            payments.create_checkout_session,
            metadata=metadata.to_stripe(),
            success_url=f"{origin}/thank-you?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/upload?canceled=true",
        )
    except APIError:
        raise
    except Exception as exc:
        logger.exception("Error creating checkout session: %s", exc)
        raise UpstreamError("Failed to create checkout session", details=str(exc)) from exc

    return CheckoutResponse(
        session_id=session.id,
        url=session.url,
        image_urls=ImageUrls(original=original.url, processed=processed.url),
    ).to_json()


async def _text_field(value: str | UploadFile | None) -> str | None:
    # Browsers may post the base64 text as a Blob part.
    if isinstance(value, UploadFile):
        raw = await value.read()
        try:
            return raw.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise InvalidRequestError("Invalid image data", details=str(exc)) from exc
    return value
