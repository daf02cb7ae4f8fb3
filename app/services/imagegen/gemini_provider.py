from __future__ import annotations

import base64
import logging

from google import genai
from google.genai import types

from app.config import Settings
from app.errors import ConfigurationError
from app.models import ContentPart, GenerationResponse, InlineImage

from .base import ImageGenProvider

logger = logging.getLogger(__name__)


class GeminiProvider(ImageGenProvider):
    name = "gemini"

    def __init__(self, *, api_key: str, model: str) -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiProvider":
        if not settings.gemini_api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not configured. Please add it to your .env file."
            )
        return cls(api_key=settings.gemini_api_key, model=settings.gemini_model)

    async def generate(self, prompt: str, image: bytes, mime_type: str) -> GenerationResponse:
        """Send the prompt and the image in one request.

        Image parts come back as raw bytes from the SDK and are re-encoded
        to base64; text parts are kept as-is. Part order is preserved.
        """

        config = types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])
        logger.debug("generate_content model=%s bytes=%d", self._model, len(image))
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=[prompt, types.Part.from_bytes(data=image, mime_type=mime_type)],
            config=config,
        )

        parts: list[ContentPart] = []
        candidates = response.candidates or []
        if candidates and candidates[0].content and candidates[0].content.parts:
            for part in candidates[0].content.parts:
                if part.inline_data is not None and part.inline_data.data:
                    parts.append(
                        ContentPart(
                            inline_data=InlineImage(
                                data=base64.b64encode(part.inline_data.data).decode("ascii"),
                                mime_type=part.inline_data.mime_type or "image/png",
                            )
                        )
                    )
                elif part.text:
                    parts.append(ContentPart(text=part.text))
        return GenerationResponse(parts=parts)
