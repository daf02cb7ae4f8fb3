from __future__ import annotations

from app.config import Settings
from app.errors import ConfigurationError

from .base import ImageGenProvider
from .gemini_provider import GeminiProvider

_PROVIDERS: dict[str, type[ImageGenProvider]] = {
    "gemini": GeminiProvider,
}


def build_provider(settings: Settings) -> ImageGenProvider:
    provider_key = settings.image_provider.lower()
    if provider_key not in _PROVIDERS:
        raise ConfigurationError(f"Unsupported image provider: {provider_key}")
    return _PROVIDERS[provider_key].from_settings(settings)
