from __future__ import annotations

from abc import ABC, abstractmethod

from app.config import Settings
from app.models import GenerationResponse


class ImageGenProvider(ABC):
    """Abstract interface for an image-to-image generation provider."""

    name: str = "abstract"

    @classmethod
    @abstractmethod
    def from_settings(cls, settings: Settings) -> "ImageGenProvider":
        """Build the provider from application settings."""

    @abstractmethod
    async def generate(self, prompt: str, image: bytes, mime_type: str) -> GenerationResponse:
        """Transform *image* according to *prompt*.

        Returns
        -------
        GenerationResponse
            content parts in the order the provider produced them
        """
