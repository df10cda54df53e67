"""Article assembly: outline → sections → thumbnail → Article.

Sections have no data dependency on each other, so they may be generated
concurrently (bounded by ``concurrency``).  The document is always joined
in outline order, never in completion order.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from notemaster.article.backend import ContentBackend
from notemaster.article.models import (
    Article,
    ArticleStatus,
    GenerationStep,
    Outline,
    SectionOutput,
    SectionSpec,
    TargetLength,
)
from notemaster.article.sections import generate_section
from notemaster.article.tags import limit_video_references

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionEvent:
    """Progress checkpoint inside one article.

    ``section_index`` is None for the thumbnail step.  ``completed`` counts
    sections finished when the event fired.
    """

    step: GenerationStep
    section_index: int | None
    completed: int
    total: int


SectionReporter = Callable[[SectionEvent], None]


def new_article_id(article_index: int) -> str:
    """Time-based id with the batch index and a random suffix."""
    return f"{int(time.time() * 1000)}-{article_index}-{uuid.uuid4().hex[:8]}"


def image_id_factory(article_index: int) -> Callable[[int], str]:
    """Image ids unique within an article: one image per section at most."""
    stamp = int(time.time() * 1000)

    def _factory(section_index: int) -> str:
        return f"img_{stamp}_{article_index}_{section_index}"

    return _factory


def join_sections(outputs: Sequence[SectionOutput]) -> str:
    """Concatenate section outputs, each under its own ``##`` heading."""
    return "".join(f"## {o.heading}\n\n{o.prose}\n\n" for o in outputs)


async def assemble_article(
    backend: ContentBackend,
    topic: str,
    outline: Outline,
    target_length: TargetLength,
    scheduled_at: datetime | None = None,
    *,
    article_index: int = 0,
    references: Sequence[str] = (),
    concurrency: int = 1,
    reporter: SectionReporter | None = None,
) -> Article:
    """Generate every section of ``outline`` and build the Article.

    Raises:
        BackendError: If any section's prose call or the thumbnail call fails.
            Image failures inside sections never escalate.
    """
    total = len(outline.sections)
    semaphore = asyncio.Semaphore(max(1, concurrency))
    make_image_id = image_id_factory(article_index)
    completed = 0

    def _report(step: GenerationStep, section_index: int | None) -> None:
        if reporter is not None:
            reporter(SectionEvent(step, section_index, completed, total))

    async def _run(index: int, spec: SectionSpec) -> SectionOutput:
        nonlocal completed
        async with semaphore:
            _report(GenerationStep.WRITING, index)
            output = await generate_section(
                backend,
                outline.title,
                spec,
                outline.video_url,
                index,
                image_id_factory=make_image_id,
                on_imaging=lambda i: _report(GenerationStep.IMAGING, i),
            )
            completed += 1
            return output

    tasks = [asyncio.ensure_future(_run(i, spec)) for i, spec in enumerate(outline.sections)]
    try:
        outputs = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    content = limit_video_references(join_sections(outputs), outline.video_url)
    images = [o.image for o in outputs if o.image is not None]

    _report(GenerationStep.IMAGING, None)
    thumbnail_url = await backend.thumbnail(outline.title)

    article = Article(
        id=new_article_id(article_index),
        topic=topic,
        title=outline.title,
        content=content,
        thumbnail_url=thumbnail_url,
        images=images,
        created_at=datetime.now(tz=UTC),
        scheduled_at=scheduled_at,
        status=ArticleStatus.SCHEDULED if scheduled_at is not None else ArticleStatus.DRAFT,
        target_length=target_length,
        video_urls=[outline.video_url] if outline.video_url else [],
        references=list(references),
        citations=list(outline.citations),
    )
    logger.info(
        "Assembled %r: %d sections, %d images", article.title, total, len(article.images)
    )
    return article
