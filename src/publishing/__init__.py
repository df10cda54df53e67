"""Publishing assistant — export artifacts for posting articles by hand."""

from notemaster.publishing.assistant import (
    NOTE_NEW_POST_URL,
    DownloadArtifact,
    decode_data_uri,
    image_artifacts,
    mark_published,
    render_markdown,
    thumbnail_artifact,
    write_artifacts,
)

__all__ = [
    "NOTE_NEW_POST_URL",
    "DownloadArtifact",
    "decode_data_uri",
    "image_artifacts",
    "mark_published",
    "render_markdown",
    "thumbnail_artifact",
    "write_artifacts",
]
