"""Error taxonomy for the generation pipeline.

``ValidationError`` and ``BackendError`` are hard failures.  ``ImageDegraded``
is soft: it never leaves the section step that raised it.  The orchestrator
wraps the first hard failure of a batch in ``BatchAbortedError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notemaster.article.models import Article


class NoteMasterError(Exception):
    """Base class for all notemaster errors."""


class ValidationError(NoteMasterError, ValueError):
    """Raised for a malformed batch request, before any remote call."""


class BackendError(NoteMasterError):
    """Any failure reported by the content backend (transport, quota, schema)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ImageDegraded(NoteMasterError):
    """An inline image could not be produced; the directive is stripped instead."""


class BatchAbortedError(NoteMasterError):
    """A batch stopped at its first unrecoverable failure.

    Articles completed before the failure are already persisted and are
    carried in ``completed`` so the caller can report or resume.
    """

    def __init__(
        self,
        topic: str,
        index: int,
        cause: Exception,
        completed: list[Article] | None = None,
    ) -> None:
        super().__init__(f"Generation failed for topic #{index + 1} ({topic!r}): {cause}")
        self.topic = topic
        self.index = index
        self.cause = cause
        self.completed = list(completed or [])
