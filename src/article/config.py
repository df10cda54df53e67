"""Configuration models for the content backend."""

from pydantic import BaseModel

DEFAULT_TEXT_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"


class BackendConfig(BaseModel):
    """Explicit settings injected into ContentBackend at construction."""

    api_key: str = ""
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    thinking_budget: int | None = 4000
    image_aspect_ratio: str = "16:9"
    image_size: str = "1K"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())
