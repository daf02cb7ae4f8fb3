from __future__ import annotations

import base64
import binascii

from fastapi import UploadFile

from app.errors import InvalidRequestError
from app.models import UploadedImage

_VALID_IMAGE_PREFIX = "image/"


async def read_image_upload(upload: UploadFile | None, *, max_bytes: int | None = None) -> UploadedImage:
    """Read and validate an uploaded image.

    Parameters
    ----------
    upload : UploadFile | None
        The ``image`` form part, ``None`` when the client sent no file.
    max_bytes : int | None
        Optional size cap; no size check is made when omitted.
    """

    if upload is None:
        raise InvalidRequestError("No image file provided")

    content_type = upload.content_type or ""
    if not content_type.startswith(_VALID_IMAGE_PREFIX):
        raise InvalidRequestError("File must be an image")

    data = await upload.read()
    if max_bytes is not None and len(data) > max_bytes:
        raise InvalidRequestError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")

    return UploadedImage(data=data, mime_type=content_type, filename=upload.filename or "")


def decode_base64_image(value: str) -> bytes:
    """Decode base64 image text, accepting an optional ``data:`` URL prefix.

    Whitespace is ignored; any other character outside the base64 alphabet
    is an error, as is input that decodes to nothing.
    """

    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    value = "".join(value.split())
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 image data: {exc}") from exc
    if not data:
        raise ValueError("Invalid base64 image data: decoded to zero bytes")
    return data
