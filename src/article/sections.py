"""Section generation step.

Turns one outline entry into final section prose.  Backend failures on the
prose call propagate; failures on the inline image never do — the image
directive is stripped and the section carries on without a picture.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from notemaster.article.backend import ContentBackend
from notemaster.article.models import ImageRecord, SectionOutput, SectionSpec
from notemaster.article.normalize import drop_echoed_heading
from notemaster.article.placement import should_place_image
from notemaster.article.tags import (
    ImageDirective,
    find_image_directive,
    limit_video_references,
    resolve_image_directive,
    strip_image_directives,
    strip_image_references,
)
from notemaster.shared.errors import BackendError, ImageDegraded

logger = logging.getLogger(__name__)


async def _resolve_image(
    backend: ContentBackend,
    prose: str,
    directive: ImageDirective,
    section_index: int,
    image_id_factory: Callable[[int], str],
) -> tuple[str, ImageRecord]:
    """Generate the requested image and swap it into the prose.

    Raises:
        ImageDegraded: If the backend failed or returned no image.
    """
    try:
        url = await backend.image(directive.description)
    except BackendError as exc:
        raise ImageDegraded(exc.message) from exc
    if not url:
        raise ImageDegraded("backend returned no image data")

    record = ImageRecord(
        id=image_id_factory(section_index),
        url=url,
        description=directive.description,
        section_index=section_index,
    )
    return resolve_image_directive(prose, directive, record.id), record


async def generate_section(
    backend: ContentBackend,
    title: str,
    spec: SectionSpec,
    video_url: str | None,
    section_index: int,
    *,
    image_id_factory: Callable[[int], str],
    on_imaging: Callable[[int], None] | None = None,
) -> SectionOutput:
    """Produce the final prose (and at most one image) for one section.

    Args:
        backend: Content backend adapter.
        title: Article title from the outline.
        spec: The outline entry to write.
        video_url: The article's single video reference, if any.
        section_index: Zero-based position in the outline.
        image_id_factory: Builds a fresh image id for a section index.
        on_imaging: Called just before an image call is issued.

    Returns:
        SectionOutput whose prose contains no raw image directive, no image
        reference it did not create, and a video reference only when
        ``spec.include_video`` is set.

    Raises:
        BackendError: If the prose call fails.
    """
    raw = await backend.section_content(title, spec, video_url)
    # Only ids minted below may appear as resolved references.
    prose = strip_image_references(drop_echoed_heading(raw, spec.heading))
    prose = limit_video_references(prose, video_url if spec.include_video else None)

    directive = find_image_directive(prose)
    image: ImageRecord | None = None
    if directive is not None and should_place_image(section_index, True):
        if on_imaging is not None:
            on_imaging(section_index)
        try:
            prose, image = await _resolve_image(
                backend, prose, directive, section_index, image_id_factory
            )
        except ImageDegraded as exc:
            logger.warning(
                "Image for section %d (%s) degraded, stripping directive: %s",
                section_index,
                spec.heading,
                exc,
            )
    elif directive is not None:
        logger.debug("Section %d is not an image slot, stripping directive", section_index)

    # Unfulfilled, suppressed, and surplus directives all go.
    prose = strip_image_directives(prose).strip()
    return SectionOutput(heading=spec.heading, prose=prose, image=image)
