"""Shared fixtures: an in-memory content backend and outline builders."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from notemaster.article.models import Outline, SectionSpec
from notemaster.shared.errors import BackendError

FAKE_IMAGE = "data:image/png;base64,aW1hZ2U="
FAKE_THUMBNAIL = "data:image/png;base64,dGh1bWI="


def build_outline(
    title: str = "Test Title",
    sections: int = 3,
    *,
    video_url: str | None = None,
    video_section: int | None = None,
) -> Outline:
    return Outline(
        title=title,
        sections=[
            SectionSpec(
                heading=f"Heading {i}",
                description=f"Description {i}",
                target_chars=500,
                include_video=(i == video_section),
            )
            for i in range(sections)
        ],
        video_url=video_url,
    )


class FakeBackend:
    """Stands in for ContentBackend; records every call it receives."""

    def __init__(self) -> None:
        self.section_count = 3
        self.outlines: dict[str, Outline] = {}
        self.fail_outline_topics: set[str] = set()
        self.fail_section_titles: set[str] = set()
        self.fail_thumbnail = False
        self.image_error: Exception | None = None
        self.image_result = FAKE_IMAGE
        self.section_delays: dict[int, float] = {}
        self.section_text: Callable[[str, SectionSpec], str] = (
            lambda title, spec: f"Body of {spec.heading}.\n\n[IMAGE: picture of {spec.heading}]"
        )
        self.calls: list[tuple[str, str]] = []

    async def outline(self, topic, target_length, references=()):
        self.calls.append(("outline", topic))
        if topic in self.fail_outline_topics:
            raise BackendError(f"outline failed for {topic}")
        if topic in self.outlines:
            return self.outlines[topic]
        return build_outline(f"Title {topic}", self.section_count)

    async def section_content(self, title, spec, video_url):
        self.calls.append(("section", spec.heading))
        index = int(spec.heading.rsplit(" ", 1)[-1]) if spec.heading[-1].isdigit() else 0
        delay = self.section_delays.get(index)
        if delay:
            await asyncio.sleep(delay)
        if title in self.fail_section_titles:
            raise BackendError(f"section failed for {title}")
        return self.section_text(title, spec)

    async def image(self, description):
        self.calls.append(("image", description))
        if self.image_error is not None:
            raise self.image_error
        return self.image_result

    async def thumbnail(self, title):
        self.calls.append(("thumbnail", title))
        if self.fail_thumbnail:
            raise BackendError("thumbnail failed")
        return FAKE_THUMBNAIL

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_outline() -> Callable[..., Outline]:
    return build_outline
