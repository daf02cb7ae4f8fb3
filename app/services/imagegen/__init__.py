from __future__ import annotations

from .base import ImageGenProvider
from .registry import build_provider

__all__ = [
    "ImageGenProvider",
    "build_provider",
]
