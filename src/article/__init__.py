"""Article generation: outline, sections, inline images, assembly.

The content backend wraps Gemini; the tag codec and placement policy are
pure functions; ``assemble_article`` drives one topic from outline to a
finished Article.
"""

from notemaster.article.assembly import (
    SectionEvent,
    SectionReporter,
    assemble_article,
    join_sections,
    new_article_id,
)
from notemaster.article.backend import ContentBackend
from notemaster.article.config import BackendConfig
from notemaster.article.models import (
    Article,
    ArticleStatus,
    BatchRequest,
    GenerationProgress,
    GenerationStep,
    ImageRecord,
    Outline,
    SectionOutput,
    SectionSpec,
    TargetLength,
)
from notemaster.article.placement import should_place_image
from notemaster.article.sections import generate_section

__all__ = [
    "Article",
    "ArticleStatus",
    "BackendConfig",
    "BatchRequest",
    "ContentBackend",
    "GenerationProgress",
    "GenerationStep",
    "ImageRecord",
    "Outline",
    "SectionEvent",
    "SectionOutput",
    "SectionReporter",
    "SectionSpec",
    "TargetLength",
    "assemble_article",
    "generate_section",
    "join_sections",
    "new_article_id",
    "should_place_image",
]
