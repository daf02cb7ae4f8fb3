"""Webhook handler for Stripe Checkout events."""
from __future__ import annotations

import logging

import stripe
from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.dependencies import get_email_client, get_image_fetcher, get_payment_service, get_storage_service
from app.errors import APIError, ConfigurationError, InvalidRequestError, SignatureError, UpstreamError
from app.models import CompletedSession, ImageUrls, OrderCompletedResponse, OrderNotification
from app.services.email import EmailClient
from app.services.payments import PaymentService
from app.services.storage import ImageFetcher, StorageService, verify_image
from app.utils.keys import extension_from_mime, object_key, order_folder
from app.utils.uploads import decode_base64_image

router = APIRouter()
logger = logging.getLogger(__name__)

COMPLETED_EVENT = "checkout.session.completed"


# ---------------------------------------------------------------------------
# POST webhook
# ---------------------------------------------------------------------------


@router.post("/api/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    payments: PaymentService | None = Depends(get_payment_service),
    storage: StorageService | None = Depends(get_storage_service),
    email_client: EmailClient = Depends(get_email_client),
    fetcher: ImageFetcher = Depends(get_image_fetcher),
):
    raw_body = await request.body()

    if not stripe_signature:
        raise InvalidRequestError("No signature provided")
    if payments is None or not payments.can_verify_webhooks:
        raise ConfigurationError("Stripe not configured")

    try:
        event = payments.construct_event(raw_body, stripe_signature)
    except (stripe.SignatureVerificationError, ValueError) as exc:
        logger.error("Webhook signature verification failed: %s", exc)
        raise SignatureError(f"Webhook Error: {exc}") from exc

    if not isinstance(event, dict):
        raise InvalidRequestError("Bad payload")
    event_type = event.get("type")
    if event_type != COMPLETED_EVENT:
        logger.debug("Ignoring webhook event type %s", event_type)
        return {"received": True}

    try:
        session = CompletedSession.model_validate(event["data"]["object"])
    except (KeyError, TypeError, ValidationError) as exc:
        logger.error("Malformed checkout event: %s", exc)
        raise InvalidRequestError("Bad payload", details=str(exc)) from exc
    customer_email = session.resolved_customer_email
    logger.info("Checkout completed: order=%s customer_email=%s", session.id, customer_email)

    try:
        notification = await _resolve_images(session, storage, fetcher)
        notification.customer_email = customer_email

        email_result = await email_client.send_purchase_notification(notification)
    except APIError:
        raise
    except Exception as exc:
        logger.exception("Error processing order %s: %s", session.id, exc)
        raise UpstreamError("Failed to process order", details=str(exc)) from exc

    return OrderCompletedResponse(
        order_id=session.id,
        images=ImageUrls(original=notification.original_url, processed=notification.processed_url),
        email=email_result,
    ).to_json()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _resolve_images(
    session: CompletedSession,
    storage: StorageService | None,
    fetcher: ImageFetcher,
) -> OrderNotification:
    metadata = session.checkout_metadata

    # Normal path: images were stored before the redirect to checkout.
    if metadata.original_url and metadata.processed_url:
        return OrderNotification(
            order_id=session.id,
            original_url=metadata.original_url,
            processed_url=metadata.processed_url,
            original_bytes=await fetcher.fetch(metadata.original_url),
            processed_bytes=await fetcher.fetch(metadata.processed_url),
            original_mime_type=metadata.original_mime_type,
            processed_mime_type=metadata.processed_mime_type,
        )

    # Recovery path: rebuild from the inline fallbacks. These are cut to 500
    # characters, so only very small images survive; anything else is rejected.
    if not metadata.original_image or not metadata.processed_image:
        logger.error("Missing image data for order %s", session.id)
        raise InvalidRequestError("Missing image data")

    try:
        original_bytes = decode_base64_image(metadata.original_image)
        processed_bytes = decode_base64_image(metadata.processed_image)
    except ValueError as exc:
        raise InvalidRequestError("Missing image data", details=str(exc)) from exc
    if not (verify_image(original_bytes) and verify_image(processed_bytes)):
        logger.error("Inline image fallback for order %s is truncated or corrupt", session.id)
        raise InvalidRequestError(
            "Missing image data",
            details="Inline image fallback in session metadata is truncated or corrupt",
        )

    if storage is None:
        raise ConfigurationError("Blob storage not configured.")

    folder = order_folder(session.id)
    original = await run_in_threadpool(
        storage.upload_image,
        original_bytes,
        object_key(folder, "original", extension_from_mime(metadata.original_mime_type)),
        content_type=metadata.original_mime_type,
    )
    processed = await run_in_threadpool(
        storage.upload_image,
        processed_bytes,
        object_key(folder, "processed", extension_from_mime(metadata.processed_mime_type)),
        content_type=metadata.processed_mime_type,
    )
    return OrderNotification(
        order_id=session.id,
        original_url=original.url,
        processed_url=processed.url,
        original_bytes=original_bytes,
        processed_bytes=processed_bytes,
        original_mime_type=metadata.original_mime_type,
        processed_mime_type=metadata.processed_mime_type,
    )
