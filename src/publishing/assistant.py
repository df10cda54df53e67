"""Publishing assistant for note.com.

note.com has no posting API, so articles are posted by hand.  Every action
here produces an explicit artifact (markdown text, image bytes with a
suggested filename, a URL) and the caller decides where it goes.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from notemaster.article.models import Article, ArticleStatus
from notemaster.article.tags import IMAGE_REFERENCE_RE
from notemaster.content.store import ArticleStore

logger = logging.getLogger(__name__)

NOTE_NEW_POST_URL = "https://note.com/notes/new"

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class DownloadArtifact:
    """Bytes plus the filename a browser download would have suggested."""

    filename: str
    data: bytes
    mime_type: str = "image/png"


def decode_data_uri(uri: str) -> tuple[bytes, str] | None:
    """Decode a ``data:`` URI into ``(bytes, mime_type)``; None if it is not one."""
    match = _DATA_URI_RE.match(uri or "")
    if match is None or not match.group("b64"):
        return None
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Undecodable image payload (%d chars)", len(uri))
        return None
    return data, match.group("mime") or "image/png"


def render_markdown(article: Article, *, embed_images: bool = False) -> str:
    """Full article as markdown, ready to paste into the note.com editor.

    Resolved image references stay as ``[REAL_IMAGE:id]`` markers unless
    ``embed_images`` is set, in which case they become inline markdown
    images (data URIs).  References without a record are dropped.
    """
    content = article.content
    if embed_images:

        def _expand(match: re.Match[str]) -> str:
            image = article.image_by_id(match.group(1))
            if image is None:
                return ""
            return f"![{image.description}]({image.url})"

        content = IMAGE_REFERENCE_RE.sub(_expand, content)
    return f"# {article.title}\n\n{content.strip()}\n"


def thumbnail_artifact(article: Article) -> DownloadArtifact | None:
    """The thumbnail as ``thumbnail-<id>.<ext>``, or None if there is none."""
    decoded = decode_data_uri(article.thumbnail_url)
    if decoded is None:
        return None
    data, mime = decoded
    return DownloadArtifact(
        filename=f"thumbnail-{article.id}.{_EXTENSIONS.get(mime, 'png')}",
        data=data,
        mime_type=mime,
    )


def image_artifacts(article: Article) -> list[DownloadArtifact]:
    """Inline images in document order, named after their section."""
    artifacts: list[DownloadArtifact] = []
    for image in sorted(article.images, key=lambda i: i.section_index):
        decoded = decode_data_uri(image.url)
        if decoded is None:
            continue
        data, mime = decoded
        artifacts.append(
            DownloadArtifact(
                filename=(
                    f"section-{image.section_index + 1:02d}-{image.id}."
                    f"{_EXTENSIONS.get(mime, 'png')}"
                ),
                data=data,
                mime_type=mime,
            )
        )
    return artifacts


def write_artifacts(artifacts: list[DownloadArtifact], directory: Path) -> list[Path]:
    """Write artifacts into ``directory`` and return the written paths."""
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for artifact in artifacts:
        path = directory / artifact.filename
        path.write_bytes(artifact.data)
        written.append(path)
    return written


def mark_published(store: ArticleStore, article_id: str) -> Article:
    """Move an article to ``published`` once the user has posted it.

    Raises KeyError if the id does not exist.
    """
    article = store.update_status(article_id, ArticleStatus.PUBLISHED)
    logger.info("Marked %s as published", article_id)
    return article
