"""Batch pipeline — topics → persisted articles, one topic at a time.

Topics are strictly serialized: a topic's outline, sections, thumbnail and
persistence all finish before the next topic starts.  Each article is saved
as soon as it is assembled, so the first failure stops the batch without
touching anything already stored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from notemaster.article import (
    Article,
    BatchRequest,
    ContentBackend,
    TargetLength,
    assemble_article,
)
from notemaster.pipeline.progress import ProgressCallback, ProgressTracker
from notemaster.shared.dates import schedule_for
from notemaster.shared.errors import BackendError, BatchAbortedError, ValidationError

logger = logging.getLogger(__name__)

ArticleCallback = Callable[[Article], None]


class ArticleSink(Protocol):
    """The persistence collaborator the orchestrator writes to."""

    def save(self, article: Article) -> None: ...


def build_request(
    topics: Sequence[str],
    *,
    start_at: datetime | None,
    references: Sequence[str] = (),
    interval_days: int = 1,
    target_length: TargetLength | int = TargetLength.SHORT,
) -> BatchRequest:
    """Validate raw batch input.

    Raises:
        ValidationError: On an empty topic list, a missing start time, a
            negative interval, or an unknown target length.
    """
    if start_at is None:
        raise ValidationError("a start time is required")
    try:
        return BatchRequest(
            topics=list(topics),
            references=list(references),
            start_at=start_at,
            interval_days=interval_days,
            target_length=target_length,
        )
    except PydanticValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise ValidationError(f"invalid batch request: {messages}") from exc


def scheduled_times(start_at: datetime, interval_days: int, count: int) -> list[datetime]:
    """Publish times for ``count`` consecutive articles."""
    return [schedule_for(start_at, interval_days, i) for i in range(count)]


def resume_request(request: BatchRequest, aborted: BatchAbortedError) -> BatchRequest:
    """Request covering only the topics an aborted batch did not finish.

    The start time is shifted so the remaining articles keep the publish
    times the original batch would have given them.
    """
    return request.model_copy(
        update={
            "topics": request.topics[aborted.index :],
            "start_at": schedule_for(request.start_at, request.interval_days, aborted.index),
        }
    )


async def run_batch(
    request: BatchRequest,
    *,
    backend: ContentBackend,
    store: ArticleSink,
    on_progress: ProgressCallback | None = None,
    on_article_complete: ArticleCallback | None = None,
    concurrency: int = 1,
) -> list[Article]:
    """Generate and persist one article per topic.

    Args:
        request: Validated batch request.
        backend: Content backend adapter.
        store: Persistence collaborator; ``save`` is called once per article.
        on_progress: Observer for progress checkpoints.
        on_article_complete: Called after each article is persisted.
        concurrency: Maximum sections generated at once within one article.

    Returns:
        The generated articles, in topic order.

    Raises:
        BatchAbortedError: On the first backend failure.  Articles finished
            before it stay persisted and are listed on the exception.
    """
    total = len(request.topics)
    tracker = ProgressTracker(total, on_progress)
    completed: list[Article] = []

    for index, topic in enumerate(request.topics):
        scheduled_at = schedule_for(request.start_at, request.interval_days, index)
        tracker.start_article(index)
        tracker.searching(topic)
        try:
            outline = await backend.outline(topic, request.target_length, request.references)
            article = await assemble_article(
                backend,
                topic,
                outline,
                request.target_length,
                scheduled_at,
                article_index=index,
                references=request.references,
                concurrency=concurrency,
                reporter=tracker.section,
            )
        except BackendError as exc:
            logger.error(
                "Batch aborted at topic %d/%d (%r): %s", index + 1, total, topic, exc.message
            )
            raise BatchAbortedError(topic, index, exc, completed) from exc

        store.save(article)
        completed.append(article)
        logger.info("Persisted article %d/%d: %s (%s)", index + 1, total, article.title, article.id)
        tracker.complete(article.title)
        if on_article_complete is not None:
            on_article_complete(article)

    return completed
