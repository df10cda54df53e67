"""Article domain models — pure Pydantic v2 data types.

These models cover one generation job end to end: the batch request that
starts it, the outline the backend plans, the per-section outputs, and the
persisted Article with its inline images.  GenerationProgress is transient
and never stored.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import IntEnum, StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from notemaster.article.tags import find_image_references

logger = logging.getLogger(__name__)

MAX_CITATIONS = 5


class TargetLength(IntEnum):
    """Target article length in characters."""

    SHORT = 2000
    MEDIUM = 4000
    LONG = 6000
    EXTENDED = 8000
    FULL = 10000


class ArticleStatus(StrEnum):
    """Lifecycle status of an article."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class GenerationStep(StrEnum):
    """Phase reported by the progress signal."""

    SEARCHING = "searching"
    WRITING = "writing"
    IMAGING = "imaging"
    COMPLETE = "complete"


class BatchRequest(BaseModel):
    """One bulk generation request: topics plus shared settings."""

    topics: list[str]
    references: list[str] = Field(default_factory=list)
    start_at: datetime
    interval_days: int = Field(default=1, ge=0)
    target_length: TargetLength = TargetLength.SHORT

    @field_validator("topics")
    @classmethod
    def _clean_topics(cls, value: list[str]) -> list[str]:
        topics = [t.strip() for t in value if t and t.strip()]
        if not topics:
            raise ValueError("at least one non-empty topic is required")
        return topics

    @field_validator("references")
    @classmethod
    def _clean_references(cls, value: list[str]) -> list[str]:
        return [r.strip() for r in value if r and r.strip()]


class SectionSpec(BaseModel):
    """One planned chapter of an article."""

    model_config = ConfigDict(populate_by_name=True)

    heading: str
    description: str = ""
    target_chars: int = Field(default=0, alias="targetChars", ge=0)
    include_video: bool = Field(default=False, alias="includeVideo")

    @field_validator("target_chars", mode="before")
    @classmethod
    def _round_target(cls, value: object) -> object:
        # The schema types targetChars as NUMBER, so floats arrive.
        if isinstance(value, float):
            return max(0, round(value))
        return value


class Outline(BaseModel):
    """Structured plan returned by the backend before any prose is written."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    sections: list[SectionSpec] = Field(alias="outline", min_length=1)
    video_url: str | None = None
    citations: list[str] = Field(default_factory=list, max_length=MAX_CITATIONS)

    @model_validator(mode="after")
    def _single_video_section(self) -> Outline:
        seen = False
        for section in self.sections:
            if not section.include_video:
                continue
            if seen:
                logger.debug("Clearing extra video flag on section %r", section.heading)
                section.include_video = False
            seen = True
        return self


class ImageRecord(BaseModel):
    """An inline image owned by exactly one article."""

    id: str
    url: str
    description: str
    section_index: int = Field(ge=0)


class SectionOutput(BaseModel):
    """Resolved prose of one section plus its image, if any."""

    heading: str
    prose: str
    image: ImageRecord | None = None


class Article(BaseModel):
    """A generated article — the unit of persistence."""

    id: str
    topic: str
    title: str
    content: str
    thumbnail_url: str = ""
    images: list[ImageRecord] = Field(default_factory=list)
    created_at: datetime
    scheduled_at: datetime | None = None
    status: ArticleStatus = ArticleStatus.DRAFT
    target_length: TargetLength = TargetLength.SHORT
    video_urls: list[str] = Field(default_factory=list, max_length=1)
    references: list[str] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)

    def image_by_id(self, image_id: str) -> ImageRecord | None:
        for image in self.images:
            if image.id == image_id:
                return image
        return None

    def dangling_image_ids(self) -> list[str]:
        """Image ids referenced in ``content`` with no matching record."""
        known = {image.id for image in self.images}
        return [i for i in find_image_references(self.content) if i not in known]


class GenerationProgress(BaseModel):
    """Transient progress value emitted to observers."""

    step: GenerationStep
    message: str
    percent: int = Field(ge=0, le=100)
    current_index: int = Field(ge=0)
    total_count: int = Field(ge=0)
