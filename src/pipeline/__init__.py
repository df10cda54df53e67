"""Pipeline modules — orchestration layer for bulk article generation.

  batch     — topics -> outlines -> articles -> store, one topic at a time
  progress  — percent and message for each pipeline checkpoint

Pipeline modules import domain logic via public APIs
(``from notemaster.article import ...``), never from private helpers.
"""

from notemaster.pipeline.batch import (
    build_request,
    resume_request,
    run_batch,
    scheduled_times,
)
from notemaster.pipeline.progress import ProgressTracker, progress_percent

__all__ = [
    "ProgressTracker",
    "build_request",
    "progress_percent",
    "resume_request",
    "run_batch",
    "scheduled_times",
]
