"""Google Cloud Storage helper for the engraving storefront.

Responsible for writing uploaded and generated images and returning an
externally accessible URL for each. Key layout lives in
:mod:`app.utils.keys`; this module only writes whatever key it is given.

Objects are made public; when the bucket refuses per-object ACLs
(uniform bucket-level access) a signed URL is returned instead.
"""
from __future__ import annotations

import io
import json
import logging
from datetime import timedelta
from typing import Any

import httpx
from google.cloud import storage
from PIL import Image

from app.models import StoredImage

logger = logging.getLogger(__name__)


class StorageService:  # pylint: disable=too-few-public-methods
    """Wrapper around Google Cloud Storage uploads and public URLs."""

    def __init__(
        self,
        bucket_name: str,
        *,
        credentials: str | None = None,
        client: Any = None,
    ) -> None:
        self._client = client or _build_client(credentials)
        self._bucket_name = bucket_name
        self._bucket = self._client.bucket(bucket_name)

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def upload_image(
        self,
        data: bytes,
        key: str,
        *,
        content_type: str,
        expires: timedelta = timedelta(days=7),
    ) -> StoredImage:
        """Upload image bytes under *key* and return where they can be read.

        Parameters
        ----------
        data : bytes
            Raw image bytes.
        key : str
            Object name inside the bucket.
        content_type : str
            Mime type stored with the object.
        expires : timedelta, optional
            Signed URL expiry, only used when the object cannot be made public.
        """

        blob = self._bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)

        try:
            blob.make_public()
            url = blob.public_url
        except Exception as exc:  # pragma: no cover
            logger.error("Failed to make blob public, using signed URL: %s", exc)
            url = blob.generate_signed_url(expires)

        logger.debug("Uploaded image to gs://%s/%s", self._bucket_name, key)
        return StoredImage(key=key, url=url, size=len(data))


class ImageFetcher:  # pylint: disable=too-few-public-methods
    """Downloads previously stored images by URL."""

    def __init__(self, *, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        logger.debug("GET %s", url)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.content


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------

def _build_client(credentials: str | None) -> storage.Client:
    # Accept path or JSON string, fall back to application default credentials
    if not credentials:
        return storage.Client()
    if credentials.endswith(".json"):
        return storage.Client.from_service_account_json(credentials)
    return storage.Client.from_service_account_info(json.loads(credentials))


def verify_image(data: bytes) -> bool:
    """Return True when *data* fully decodes as an image Pillow understands."""

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()  # verify() alone misses truncated JPEG data
    except Exception:  # Pillow raises several unrelated types on bad data
        return False
    return True
