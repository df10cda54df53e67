"""Image generation for article thumbnails and inline illustrations.

Uses Google Gemini's image generation capability via the google-genai SDK.
Images are returned as ``data:`` URIs so they can be stored inline with the
article record; an empty string means the model answered without an image.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from google.genai import types

from notemaster.shared.llm import LLMError, generate_content

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-pro-image-preview"
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_IMAGE_SIZE = "1K"


def to_data_uri(data: bytes | str, mime_type: str | None = None) -> str:
    """Encode an inline image payload as a ``data:`` URI.

    The SDK hands back raw bytes; some transports deliver base64 text
    already, which is passed through unchanged.
    """
    encoded = data if isinstance(data, str) else base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or 'image/png'};base64,{encoded}"


def first_inline_image(response: Any) -> str:
    """Return the first inline image of a response as a data URI, or ``""``."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return to_data_uri(inline.data, getattr(inline, "mime_type", None))
    return ""


class ImageGenerator:
    """Generate images via Google Gemini."""

    def __init__(
        self,
        client: Any,
        *,
        model: str = DEFAULT_MODEL,
        aspect_ratio: str = DEFAULT_ASPECT_RATIO,
        image_size: str = DEFAULT_IMAGE_SIZE,
    ) -> None:
        self._client = client
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.image_size = image_size

    async def generate(self, prompt: str, *, label: str = "image") -> str:
        """Generate an image from a text prompt.

        Returns:
            A data URI, or ``""`` when the response carried no image.

        Raises:
            LLMError: If the call itself failed.
        """
        response = await generate_content(
            self._client,
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
                image_config=types.ImageConfig(
                    aspect_ratio=self.aspect_ratio,
                    image_size=self.image_size,
                ),
            ),
            label=label,
        )
        uri = first_inline_image(response)
        if not uri:
            logger.warning("No image data in response for prompt: %s", prompt[:80])
        return uri


__all__ = ["ImageGenerator", "LLMError", "first_inline_image", "to_data_uri"]
