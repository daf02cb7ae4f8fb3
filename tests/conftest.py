"""Pytest fixtures for the storefront API tests."""

from __future__ import annotations

import hashlib
import hmac
import io
import json
import os
import threading
import time
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.config import Settings, get_settings
from app.dependencies import (
    get_email_client,
    get_image_fetcher,
    get_image_provider,
    get_payment_service,
    get_storage_service,
)
from app.main import app
from app.models import ContentPart, EmailResult, GenerationResponse, InlineImage, StoredImage
from app.services.imagegen import ImageGenProvider
from app.services.payments import PaymentService

WEBHOOK_SECRET = "whsec_test_secret"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeStorage:
    """In-memory stand-in for StorageService."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[tuple[str, bytes, str]] = []
        self.threads: list[int] = []

    def upload_image(self, data: bytes, key: str, *, content_type: str) -> StoredImage:
        self.threads.append(threading.get_ident())
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.uploads.append((key, data, content_type))
        return StoredImage(key=key, url=f"https://storage.googleapis.com/test-bucket/{key}", size=len(data))

    @property
    def keys(self) -> list[str]:
        return [key for key, _, _ in self.uploads]


class FakeProvider(ImageGenProvider):
    name = "fake"

    def __init__(self, parts: list[ContentPart] | None = None, error: Exception | None = None) -> None:
        self.parts = parts or []
        self.error = error
        self.calls: list[tuple[str, bytes, str]] = []
        self.threads: list[int] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "FakeProvider":
        return cls()

    async def generate(self, prompt: str, image: bytes, mime_type: str) -> GenerationResponse:
        self.calls.append((prompt, image, mime_type))
        self.threads.append(threading.get_ident())
        if self.error is not None:
            raise self.error
        return GenerationResponse(parts=self.parts)


class FakeEmailClient:
    def __init__(self) -> None:
        self.notifications: list[Any] = []

    async def send_purchase_notification(self, notification: Any) -> EmailResult:
        self.notifications.append(notification)
        return EmailResult(success=True, sent=1)


class FakeFetcher:
    def __init__(self, content: dict[str, bytes] | None = None) -> None:
        self.content = content or {}
        self.urls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        return self.content.get(url, b"fetched-bytes")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def png_bytes(size: tuple[int, int] = (2, 2)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


def noisy_png_bytes(size: tuple[int, int] = (64, 64)) -> bytes:
    buffer = io.BytesIO()
    Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3)).save(buffer, format="PNG")
    return buffer.getvalue()


def image_part(data: str, mime_type: str = "image/png") -> ContentPart:
    return ContentPart(inline_data=InlineImage(data=data, mime_type=mime_type))


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a ``stripe-signature`` header the way Stripe does."""
    ts = timestamp if timestamp is not None else int(time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def event_payload(event_type: str, session: dict[str, Any]) -> bytes:
    return json.dumps(
        {"id": "evt_test_1", "type": event_type, "data": {"object": session}}
    ).encode("utf-8")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-gemini-key",
        gcs_bucket_name="test-bucket",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        public_base_url="https://shop.example",
    )


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def payments() -> PaymentService:
    return PaymentService(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def client(
    settings: Settings,
    storage: FakeStorage,
    provider: FakeProvider,
    email_client: FakeEmailClient,
    fetcher: FakeFetcher,
    payments: PaymentService,
) -> Generator[TestClient, None, None]:
    """Create a test client with every external collaborator replaced."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_image_provider] = lambda: provider
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_image_fetcher] = lambda: fetcher
    app.dependency_overrides[get_payment_service] = lambda: payments
    yield TestClient(app)
    app.dependency_overrides.clear()
