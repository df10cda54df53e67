"""Progress signal for batch generation.

Percent values are a fixed function of the phase and of how many sections
of the current article have finished:

  searching            5
  writing / imaging    10 + floor(completed / total * 70)
  thumbnail            95
  complete             100

Within one article the emitted value never goes down; it starts over at the
next article.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from notemaster.article import GenerationProgress, GenerationStep, SectionEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[GenerationProgress], None]

SEARCHING_PERCENT = 5
WRITING_BASE_PERCENT = 10
WRITING_SPAN_PERCENT = 70
THUMBNAIL_PERCENT = 95
COMPLETE_PERCENT = 100


def progress_percent(step: GenerationStep, completed: int = 0, total: int = 0) -> int:
    """Deterministic percent for a phase within one article."""
    if step == GenerationStep.SEARCHING:
        return SEARCHING_PERCENT
    if step == GenerationStep.COMPLETE:
        return COMPLETE_PERCENT
    if total <= 0 or completed >= total:
        # Every section is written: the only imaging left is the thumbnail.
        if step == GenerationStep.IMAGING:
            return THUMBNAIL_PERCENT
        return WRITING_BASE_PERCENT + WRITING_SPAN_PERCENT
    return WRITING_BASE_PERCENT + (completed * WRITING_SPAN_PERCENT) // total


class ProgressTracker:
    """Turns pipeline checkpoints into GenerationProgress emissions.

    One tracker per batch.  ``start_article`` resets the floor so the next
    article may report a lower value than the previous one finished on.
    """

    def __init__(self, total_count: int, callback: ProgressCallback | None = None) -> None:
        self.total_count = total_count
        self._callback = callback
        self._current_index = 0
        self._floor = 0
        self.last: GenerationProgress | None = None

    def start_article(self, index: int) -> None:
        self._current_index = index + 1
        self._floor = 0

    def emit(self, step: GenerationStep, message: str, percent: int) -> GenerationProgress:
        percent = max(self._floor, min(COMPLETE_PERCENT, percent))
        self._floor = percent
        progress = GenerationProgress(
            step=step,
            message=message,
            percent=percent,
            current_index=self._current_index,
            total_count=self.total_count,
        )
        self.last = progress
        if self._callback is not None:
            try:
                self._callback(progress)
            except Exception:
                logger.warning("Progress observer raised", exc_info=True)
        return progress

    # ── Phase helpers ────────────────────────────────────────────

    def _prefix(self) -> str:
        return f"[{self._current_index}/{self.total_count}]"

    def searching(self, topic: str) -> GenerationProgress:
        return self.emit(
            GenerationStep.SEARCHING,
            f"{self._prefix()} Planning the outline for {topic!r}...",
            progress_percent(GenerationStep.SEARCHING),
        )

    def section(self, event: SectionEvent) -> GenerationProgress:
        percent = progress_percent(event.step, event.completed, event.total)
        if event.section_index is None:
            message = f"{self._prefix()} Generating the thumbnail..."
        elif event.step == GenerationStep.IMAGING:
            message = f"{self._prefix()} Illustrating section {event.section_index + 1}..."
        else:
            message = (
                f"{self._prefix()} Writing section {event.section_index + 1}/{event.total}..."
            )
        return self.emit(event.step, message, percent)

    def complete(self, title: str) -> GenerationProgress:
        return self.emit(
            GenerationStep.COMPLETE,
            f"{self._prefix()} Saved {title!r}",
            progress_percent(GenerationStep.COMPLETE),
        )
