"""Content backend adapter over Google Gemini.

Wraps the three remote capabilities the pipeline needs — grounded
structured outlines, section prose, and images — and normalizes what comes
back.  The adapter never retries: every failure surfaces as BackendError
and the caller decides what to do.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from google import genai
from pydantic import ValidationError as PydanticValidationError

from notemaster.article.config import BackendConfig
from notemaster.article.models import MAX_CITATIONS, Outline, SectionSpec
from notemaster.article.normalize import normalize_prose
from notemaster.article.prompts import (
    OUTLINE_SCHEMA,
    SYSTEM_INSTRUCTION,
    TRANSLATION_INSTRUCTION,
    outline_prompt,
    section_image_prompt,
    section_prompt,
    thumbnail_prompt,
    translation_prompt,
)
from notemaster.shared.errors import BackendError
from notemaster.shared.images import ImageGenerator
from notemaster.shared.llm import (
    LLMError,
    build_text_config,
    cited_urls,
    generate_content,
    response_text,
    strip_json_fences,
)

logger = logging.getLogger(__name__)

VIDEO_URL_PATTERNS = ("youtube.com/watch", "youtu.be/")


def is_video_url(url: str) -> bool:
    return any(pattern in url for pattern in VIDEO_URL_PATTERNS)


def split_citations(urls: list[str]) -> tuple[str | None, list[str]]:
    """Separate the first video URL from the remaining citations.

    Returns:
        ``(video_url, citations)`` with at most ``MAX_CITATIONS`` citations.
    """
    video_url = next((u for u in urls if is_video_url(u)), None)
    citations = [u for u in urls if u != video_url][:MAX_CITATIONS]
    return video_url, citations


class ContentBackend:
    """Outline, section, image and thumbnail generation via Gemini."""

    def __init__(self, config: BackendConfig, client: Any | None = None) -> None:
        self._config = config
        self._client = client
        self._images: ImageGenerator | None = None

    def _get_client(self) -> Any:
        """Lazy-create and cache the genai Client."""
        if self._client is None:
            if not self._config.is_configured:
                raise BackendError("Gemini API key not configured (set GEMINI_API_KEY)")
            self._client = genai.Client(api_key=self._config.api_key)
        return self._client

    def _get_images(self) -> ImageGenerator:
        if self._images is None:
            self._images = ImageGenerator(
                self._get_client(),
                model=self._config.image_model,
                aspect_ratio=self._config.image_aspect_ratio,
                image_size=self._config.image_size,
            )
        return self._images

    async def _generate_text(self, prompt: str, config: Any, label: str) -> Any:
        try:
            return await generate_content(
                self._get_client(),
                model=self._config.text_model,
                contents=prompt,
                config=config,
                label=label,
            )
        except LLMError as exc:
            raise BackendError(str(exc)) from exc

    async def _generate_image(self, prompt: str, label: str) -> str:
        try:
            return await self._get_images().generate(prompt, label=label)
        except LLMError as exc:
            raise BackendError(str(exc)) from exc

    # ── Text ─────────────────────────────────────────────────────

    async def outline(
        self,
        topic: str,
        target_length: int,
        references: list[str] | tuple[str, ...] = (),
    ) -> Outline:
        """Plan an article: title, ordered sections, at most one video URL.

        Raises:
            BackendError: If the call fails or the payload does not match
                the outline schema.
        """
        config = build_text_config(
            SYSTEM_INSTRUCTION,
            response_schema=OUTLINE_SCHEMA,
            use_search=True,
        )
        response = await self._generate_text(
            outline_prompt(topic, int(target_length), list(references)),
            config,
            f"outline {topic[:40]}",
        )
        raw = response_text(response)
        try:
            data = json.loads(strip_json_fences(raw))
        except json.JSONDecodeError as exc:
            raise BackendError(f"Outline response is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise BackendError("Outline response is not a JSON object")

        video_url, citations = split_citations(cited_urls(response))
        try:
            outline = Outline.model_validate(
                {**data, "video_url": video_url, "citations": citations}
            )
        except PydanticValidationError as exc:
            raise BackendError(f"Outline response does not match the schema: {exc}") from exc

        logger.info(
            "Outline for %r: %d sections, video=%s",
            topic,
            len(outline.sections),
            outline.video_url or "none",
        )
        return outline

    async def section_content(
        self,
        title: str,
        spec: SectionSpec,
        video_url: str | None,
    ) -> str:
        """Write one section's prose, normalized, still carrying raw directives."""
        config = build_text_config(
            SYSTEM_INSTRUCTION,
            thinking_budget=self._config.thinking_budget,
        )
        response = await self._generate_text(
            section_prompt(title, spec, video_url),
            config,
            f"section {spec.heading[:40]}",
        )
        return normalize_prose(response_text(response))

    async def translate(self, text: str) -> str:
        """Translate text into English; an empty answer falls back to the input."""
        config = build_text_config(TRANSLATION_INSTRUCTION)
        response = await self._generate_text(translation_prompt(text), config, "translate")
        return normalize_prose(response_text(response)) or text

    # ── Images ───────────────────────────────────────────────────

    async def image(self, description: str) -> str:
        """Generate an inline illustration; ``""`` when no image came back."""
        return await self._generate_image(section_image_prompt(description), "section-image")

    async def thumbnail(self, title: str) -> str:
        """Generate a thumbnail with the title as its only text."""
        return await self._generate_image(thumbnail_prompt(title), "thumbnail")
