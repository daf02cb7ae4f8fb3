"""Tests for the image intake and persistence endpoints."""

from __future__ import annotations

import base64
import re
import threading

from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.dependencies import get_image_provider, get_storage_service
from app.main import app
from app.models import ContentPart
from app.prompts import LASER_ENGRAVING_PROMPT

from .conftest import FakeProvider, FakeStorage, image_part, png_bytes

TEN_MIB = 10 * 1024 * 1024


def _upload(data: bytes = b"fake-jpeg", name: str = "photo.jpg", mime: str = "image/jpeg"):
    return {"image": (name, data, mime)}


class TestProcessImage:
    """Tests for POST /api/process-image."""

    def test_missing_file(self, client: TestClient) -> None:
        response = client.post("/api/process-image", data={"saveImages": "false"})
        assert response.status_code == 400
        assert response.json()["error"] == "No image file provided"

    def test_non_image_rejected(self, client: TestClient, provider: FakeProvider) -> None:
        response = client.post("/api/process-image", files=_upload(b"%PDF", "doc.pdf", "application/pdf"))
        assert response.status_code == 400
        assert response.json()["error"] == "File must be an image"
        assert provider.calls == []

    def test_oversized_file_rejected(self, client: TestClient, provider: FakeProvider) -> None:
        response = client.post("/api/process-image", files=_upload(b"0" * (TEN_MIB + 1)))
        assert response.status_code == 400
        assert "10MB" in response.json()["error"]
        assert provider.calls == []

    def test_missing_api_key(self, client: TestClient) -> None:
        """Without the override the real provider factory reports the missing key."""
        app.dependency_overrides.pop(get_image_provider)
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, gemini_api_key=None)
        response = client.post("/api/process-image", files=_upload())
        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["error"]

    def test_returns_first_inline_image(self, client: TestClient, provider: FakeProvider) -> None:
        first = base64.b64encode(b"first-image").decode()
        second = base64.b64encode(b"second-image").decode()
        provider.parts = [
            ContentPart(text="Here is your engraving"),
            image_part(first, "image/webp"),
            image_part(second, "image/png"),
        ]

        response = client.post("/api/process-image", files=_upload(b"raw-photo"))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["image"] == first
        assert base64.b64decode(body["image"]) == b"first-image"
        assert body["mimeType"] == "image/webp"
        assert "originalImageUrl" not in body
        assert provider.calls == [(LASER_ENGRAVING_PROMPT, b"raw-photo", "image/jpeg")]

    def test_text_only_response(self, client: TestClient, provider: FakeProvider) -> None:
        provider.parts = [ContentPart(text="x" * 150), ContentPart(text="y" * 150)]

        response = client.post("/api/process-image", files=_upload())

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Image generation not available with current model"
        assert len(body["textResponse"]) == 200
        assert body["textResponse"].startswith("x" * 150)
        assert "suggestion" in body

    def test_provider_failure(self, client: TestClient, provider: FakeProvider) -> None:
        provider.error = RuntimeError("quota exceeded")

        response = client.post("/api/process-image", files=_upload())

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process image", "details": "quota exceeded"}

    def test_save_images_for_order(
        self, client: TestClient, provider: FakeProvider, storage: FakeStorage
    ) -> None:
        processed = base64.b64encode(b"engraved").decode()
        provider.parts = [image_part(processed, "image/png")]

        response = client.post(
            "/api/process-image",
            files=_upload(b"raw-photo", "family.jpeg"),
            data={"saveImages": "true", "orderId": "ord_42"},
        )

        assert response.status_code == 200
        body = response.json()
        original_key, processed_key = storage.keys
        assert re.fullmatch(r"orders/ord_42/original-\d+-[0-9a-z]{7}\.jpeg", original_key)
        assert re.fullmatch(r"orders/ord_42/processed-\d+-[0-9a-z]{7}\.png", processed_key)
        assert storage.uploads[1][1] == b"engraved"
        assert body["originalImageUrl"].endswith(original_key)
        assert body["processedImageUrl"].endswith(processed_key)

    def test_uploads_run_off_the_event_loop(
        self, client: TestClient, provider: FakeProvider, storage: FakeStorage
    ) -> None:
        provider.parts = [image_part(base64.b64encode(b"engraved").decode())]

        response = client.post("/api/process-image", files=_upload(), data={"saveImages": "true"})

        assert response.status_code == 200
        (loop_thread,) = provider.threads
        assert len(storage.threads) == 2
        assert loop_thread not in storage.threads

    def test_save_images_without_order_uses_uploads(
        self, client: TestClient, provider: FakeProvider, storage: FakeStorage
    ) -> None:
        provider.parts = [image_part(base64.b64encode(b"engraved").decode())]

        client.post("/api/process-image", files=_upload(), data={"saveImages": "true"})

        assert all(key.startswith("uploads/") for key in storage.keys)

    def test_save_images_not_requested(
        self, client: TestClient, provider: FakeProvider, storage: FakeStorage
    ) -> None:
        provider.parts = [image_part(base64.b64encode(b"engraved").decode())]

        response = client.post("/api/process-image", files=_upload(), data={"saveImages": "yes"})

        assert response.status_code == 200
        assert storage.uploads == []

    def test_storage_failure_is_not_fatal(self, client: TestClient, provider: FakeProvider) -> None:
        provider.parts = [image_part(base64.b64encode(b"engraved").decode())]
        app.dependency_overrides[get_storage_service] = lambda: FakeStorage(fail=True)

        response = client.post("/api/process-image", files=_upload(), data={"saveImages": "true"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "originalImageUrl" not in body
        assert "bucket unavailable" in body["warnings"][0]

    def test_storage_not_configured_skips_save(self, client: TestClient, provider: FakeProvider) -> None:
        provider.parts = [image_part(base64.b64encode(b"engraved").decode())]
        app.dependency_overrides[get_storage_service] = lambda: None

        response = client.post("/api/process-image", files=_upload(), data={"saveImages": "true"})

        assert response.status_code == 200
        assert "warnings" not in response.json()


class TestSaveImage:
    """Tests for POST /api/save-image."""

    def test_storage_not_configured(self, client: TestClient) -> None:
        app.dependency_overrides[get_storage_service] = lambda: None
        response = client.post("/api/save-image", files=_upload())
        assert response.status_code == 500
        assert "not configured" in response.json()["error"]

    def test_missing_file(self, client: TestClient) -> None:
        response = client.post("/api/save-image", data={"type": "original"})
        assert response.status_code == 400

    def test_non_image_rejected(self, client: TestClient, storage: FakeStorage) -> None:
        response = client.post("/api/save-image", files=_upload(b"hello", "notes.txt", "text/plain"))
        assert response.status_code == 400
        assert storage.uploads == []

    def test_saves_under_order_folder(self, client: TestClient, storage: FakeStorage) -> None:
        data = png_bytes()
        response = client.post(
            "/api/save-image",
            files=_upload(data, "result.png", "image/png"),
            data={"type": "processed", "orderId": "cs_test_9"},
        )

        assert response.status_code == 200
        body = response.json()
        assert re.fullmatch(r"orders/cs_test_9/processed-\d+-[0-9a-z]{7}\.png", body["filename"])
        assert body["url"].endswith(body["filename"])
        assert body["size"] == len(data)
        assert storage.uploads == [(body["filename"], data, "image/png")]

    def test_upload_runs_off_the_event_loop(self, client: TestClient, storage: FakeStorage) -> None:
        loop_threads: list[int] = []

        async def storage_on_loop() -> FakeStorage:
            loop_threads.append(threading.get_ident())
            return storage

        app.dependency_overrides[get_storage_service] = storage_on_loop
        response = client.post("/api/save-image", files=_upload())

        assert response.status_code == 200
        assert storage.threads and loop_threads[0] not in storage.threads

    def test_defaults_role_and_extension(self, client: TestClient) -> None:
        response = client.post("/api/save-image", files=_upload(b"img", "snapshot", "image/png"))
        assert re.fullmatch(r"uploads/image-\d+-[0-9a-z]{7}\.png", response.json()["filename"])

    def test_no_size_cap(self, client: TestClient) -> None:
        response = client.post("/api/save-image", files=_upload(b"0" * (TEN_MIB + 1)))
        assert response.status_code == 200
        assert response.json()["size"] == TEN_MIB + 1

    def test_storage_failure(self, client: TestClient) -> None:
        app.dependency_overrides[get_storage_service] = lambda: FakeStorage(fail=True)
        response = client.post("/api/save-image", files=_upload())
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save image", "details": "bucket unavailable"}
