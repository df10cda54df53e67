"""Inline directive codec for generated prose.

Three bracketed forms live inside article content:

- ``[IMAGE: <description>]`` — an image request written by the model.
  It never survives processing: it is either resolved or stripped.  A
  directive with a blank description is not a request and is only stripped.
- ``[REAL_IMAGE:<image-id>]`` — a resolved image, expanded by whatever
  renders the article later.
- ``[YouTubeリンク: <url>]`` — the single video reference an article may
  carry.

Every decoder here is total: malformed or absent directives are simply not
found and the prose comes back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

IMAGE_DIRECTIVE_RE = re.compile(r"\[IMAGE:\s*([^\[\]\s](?:[^\[\]\n]*[^\[\]\s])?)\s*\]")
IMAGE_REFERENCE_RE = re.compile(r"\[REAL_IMAGE:([^\[\]\s]+)\]")
VIDEO_REFERENCE_RE = re.compile(r"\[YouTubeリンク:\s*([^\[\]\s]+)\s*\]")

# Catches truncated or nested-bracket leftovers the strict form misses.
_LOOSE_IMAGE_DIRECTIVE_RE = re.compile(r"\[IMAGE:[^\]\n]*\]?")

_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class ImageDirective:
    """An image request found in prose, with its exact span."""

    description: str
    start: int
    end: int


# ── Image directives ────────────────────────────────────────────


def find_image_directive(prose: str) -> ImageDirective | None:
    """Return the first image directive in ``prose``, or None."""
    match = IMAGE_DIRECTIVE_RE.search(prose or "")
    if match is None:
        return None
    return ImageDirective(description=match.group(1), start=match.start(), end=match.end())


def resolve_image_directive(prose: str, directive: ImageDirective, image_id: str) -> str:
    """Replace exactly the directive's span with a resolved image reference."""
    return prose[: directive.start] + format_image_reference(image_id) + prose[directive.end :]


def strip_image_directives(prose: str) -> str:
    """Remove every image directive.  Idempotent."""
    if not prose or "[IMAGE:" not in prose:
        return prose
    stripped = IMAGE_DIRECTIVE_RE.sub("", prose)
    stripped = _LOOSE_IMAGE_DIRECTIVE_RE.sub("", stripped)
    return _BLANK_LINES_RE.sub("\n\n", stripped)


# ── Resolved image references ───────────────────────────────────


def format_image_reference(image_id: str) -> str:
    return f"[REAL_IMAGE:{image_id}]"


def find_image_references(content: str) -> list[str]:
    """Image ids referenced in ``content``, in document order."""
    return IMAGE_REFERENCE_RE.findall(content or "")


def strip_image_references(prose: str) -> str:
    """Remove resolved image references, e.g. ones a model wrote itself."""
    if not prose or not IMAGE_REFERENCE_RE.search(prose):
        return prose
    return _BLANK_LINES_RE.sub("\n\n", IMAGE_REFERENCE_RE.sub("", prose))


# ── Video references ────────────────────────────────────────────


def format_video_reference(url: str) -> str:
    return f"[YouTubeリンク: {url}]"


def find_video_references(content: str) -> list[str]:
    """Video URLs referenced in ``content``, in document order."""
    return VIDEO_REFERENCE_RE.findall(content or "")


def limit_video_references(content: str, allowed_url: str | None) -> str:
    """Keep at most one video reference: the first one pointing at ``allowed_url``.

    Every other video directive is stripped, including all of them when no
    URL is allowed.
    """
    if not content or not VIDEO_REFERENCE_RE.search(content):
        return content
    kept = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal kept
        if not kept and allowed_url is not None and match.group(1) == allowed_url:
            kept = True
            return match.group(0)
        return ""

    limited = VIDEO_REFERENCE_RE.sub(_replace, content)
    return _BLANK_LINES_RE.sub("\n\n", limited)
