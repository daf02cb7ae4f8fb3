"""Image upload endpoints: engraving preview and plain persistence."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.config import Settings, get_settings
from app.dependencies import get_image_provider, get_storage_service
from app.errors import APIError, ConfigurationError, UpstreamError
from app.models import InlineImage, ProcessImageResponse, SaveImageResponse, UploadedImage
from app.prompts import LASER_ENGRAVING_PROMPT
from app.services.imagegen import ImageGenProvider
from app.services.storage import StorageService
from app.utils.keys import extension_from_filename, extension_from_mime, object_key, order_folder
from app.utils.uploads import read_image_upload

router = APIRouter()
logger = logging.getLogger(__name__)

TEXT_PREVIEW_CHARS = 200


# ---------------------------------------------------------------------------
# Engraving preview
# ---------------------------------------------------------------------------


@router.post("/api/process-image")
async def process_image(
    image: UploadFile | None = File(None),
    save_images: str | None = Form(None, alias="saveImages"),
    order_id: str | None = Form(None, alias="orderId"),
    settings: Settings = Depends(get_settings),
    provider: ImageGenProvider = Depends(get_image_provider),
    storage: StorageService | None = Depends(get_storage_service),
):
    upload = await read_image_upload(image, max_bytes=settings.max_upload_bytes)

    try:
        response = await provider.generate(LASER_ENGRAVING_PROMPT, upload.data, upload.mime_type)
    except APIError:
        raise
    except Exception as exc:
        logger.exception("Error processing image: %s", exc)
        raise UpstreamError("Failed to process image", details=str(exc) or "Unknown error occurred") from exc

    generated = response.first_inline_image()
    if generated is None:
        logger.warning("Generator returned no image part for %s", upload.filename or "upload")
        raise UpstreamError(
            "Image generation not available with current model",
            details=(
                "The model returned text instead of an image. Configure GEMINI_MODEL "
                "with a model that supports image output."
            ),
            suggestion="Check Google AI Studio for models that support image generation.",
            textResponse=response.text[:TEXT_PREVIEW_CHARS],
        )

    result = ProcessImageResponse(image=generated.data, mime_type=generated.mime_type)

    if save_images == "true" and storage is not None:
        try:
            original_url, processed_url = await _save_pair(storage, upload, generated, order_id)
            result.original_image_url = original_url
            result.processed_image_url = processed_url
        except Exception as exc:
            # Saving is best-effort; the preview is still returned.
            logger.error("Error saving images to storage: %s", exc)
            result.warnings = [f"Images were not saved: {exc}"]

    return result.to_json()


async def _save_pair(
    storage: StorageService,
    upload: UploadedImage,
    generated: InlineImage,
    order_id: str | None,
) -> tuple[str, str]:
    folder = order_folder(order_id)
    original = await run_in_threadpool(
        storage.upload_image,
        upload.data,
        object_key(folder, "original", extension_from_filename(upload.filename)),
        content_type=upload.mime_type,
    )
    processed = await run_in_threadpool(
        storage.upload_image,
        generated.to_bytes(),
        object_key(folder, "processed", extension_from_mime(generated.mime_type)),
        content_type=generated.mime_type,
    )
    return original.url, processed.url


# ---------------------------------------------------------------------------
# Plain persistence
# ---------------------------------------------------------------------------


@router.post("/api/save-image")
async def save_image(
    image: UploadFile | None = File(None),
    image_type: str | None = Form(None, alias="type"),
    order_id: str | None = Form(None, alias="orderId"),
    storage: StorageService | None = Depends(get_storage_service),
):
    if storage is None:
        raise ConfigurationError(
            "Blob storage not configured. Add GCS_BUCKET_NAME to environment variables."
        )

    # No size cap here; only the generator path limits uploads.
    upload = await read_image_upload(image)
    key = object_key(order_folder(order_id), image_type or "image", extension_from_filename(upload.filename))

    try:
        stored = await run_in_threadpool(storage.upload_image, upload.data, key, content_type=upload.mime_type)
    except Exception as exc:
        logger.exception("Error saving image: %s", exc)
        raise UpstreamError("Failed to save image", details=str(exc)) from exc

    return SaveImageResponse(url=stored.url, filename=key, size=upload.size).to_json()
