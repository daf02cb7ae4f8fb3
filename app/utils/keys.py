"""Object key helpers for uploaded and generated images.

Keys follow one of these patterns:

    uploads/{role}-{timestamp_ms}-{rand7}.{ext}
    orders/{order_id}/{role}-{timestamp_ms}-{rand7}.{ext}
    temp/{timestamp_ms}-{rand7}/{role}.{ext}

The timestamp plus a 7-character base-36 suffix keeps keys written in the
same millisecond apart; there is no other collision check.
"""
from __future__ import annotations

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 7


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def order_folder(order_id: str | None) -> str:
    return f"orders/{order_id}" if order_id else "uploads"


def temp_folder() -> str:
    return f"temp/{timestamp_ms()}-{random_suffix()}"


def object_key(folder: str, role: str, ext: str) -> str:
    return f"{folder}/{role}-{timestamp_ms()}-{random_suffix()}.{ext}"


def extension_from_filename(filename: str | None, default: str = "png") -> str:
    if not filename or "." not in filename:
        return default
    return filename.rsplit(".", 1)[1] or default


def extension_from_mime(mime_type: str | None, default: str = "png") -> str:
    if not mime_type or "/" not in mime_type:
        return default
    return mime_type.split("/", 1)[1] or default
