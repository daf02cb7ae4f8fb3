"""FastAPI dependencies that build external-service wrappers from settings.

Each endpoint declares what it needs through ``Depends`` so tests can swap
any collaborator with ``app.dependency_overrides``.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.config import Settings, get_settings
from app.services.email import EmailClient
from app.services.imagegen import ImageGenProvider, build_provider
from app.services.payments import PaymentService
from app.services.storage import ImageFetcher, StorageService


@lru_cache()
def _storage_for(bucket_name: str, credentials: str | None) -> StorageService:
    return StorageService(bucket_name, credentials=credentials)


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService | None:
    """Return the storage service, or None when no bucket is configured."""
    if not settings.storage_configured:
        return None
    return _storage_for(settings.gcs_bucket_name, settings.gcs_credentials)


def get_image_provider(settings: Settings = Depends(get_settings)) -> ImageGenProvider:
    return build_provider(settings)


def get_payment_service(settings: Settings = Depends(get_settings)) -> PaymentService | None:
    if not settings.stripe_configured:
        return None
    return PaymentService.from_settings(settings)


def get_email_client(settings: Settings = Depends(get_settings)) -> EmailClient:
    return EmailClient.from_settings(settings)


def get_image_fetcher(settings: Settings = Depends(get_settings)) -> ImageFetcher:
    return ImageFetcher(timeout=settings.http_timeout_seconds)
