"""Tests for the batch pipeline."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from notemaster.article.models import ArticleStatus, GenerationProgress, GenerationStep
from notemaster.content.store import ArticleStore
from notemaster.pipeline.batch import (
    build_request,
    resume_request,
    run_batch,
    scheduled_times,
)
from notemaster.shared.errors import BatchAbortedError, ValidationError

START = datetime(2024, 3, 1, 9, 0)


def _run(request, backend, store, **kwargs):
    return asyncio.run(run_batch(request, backend=backend, store=store, **kwargs))


class TestBuildRequest:
    def test_valid(self):
        request = build_request(["A", "B"], start_at=START, interval_days=2)
        assert request.topics == ["A", "B"]
        assert request.interval_days == 2

    def test_empty_topics(self):
        with pytest.raises(ValidationError, match="topic"):
            build_request([], start_at=START)

    def test_blank_topics(self):
        with pytest.raises(ValidationError):
            build_request(["  ", ""], start_at=START)

    def test_missing_start(self):
        with pytest.raises(ValidationError, match="start"):
            build_request(["A"], start_at=None)

    def test_negative_interval(self):
        with pytest.raises(ValidationError):
            build_request(["A"], start_at=START, interval_days=-1)

    def test_unknown_length(self):
        with pytest.raises(ValidationError):
            build_request(["A"], start_at=START, target_length=1234)


class TestScheduledTimes:
    def test_interval_spacing(self):
        assert scheduled_times(START, 2, 3) == [
            datetime(2024, 3, 1, 9, 0),
            datetime(2024, 3, 3, 9, 0),
            datetime(2024, 3, 5, 9, 0),
        ]

    def test_zero_interval(self):
        assert scheduled_times(START, 0, 2) == [START, START]

    def test_wall_clock_kept_across_dst(self):
        tz = ZoneInfo("America/New_York")
        start = datetime(2024, 3, 9, 9, 0, tzinfo=tz)
        times = scheduled_times(start, 1, 3)
        assert [t.hour for t in times] == [9, 9, 9]
        assert [t.day for t in times] == [9, 10, 11]


class TestRunBatch:
    def test_two_topics_end_to_end(self, fake_backend, tmp_path: Path):
        store = ArticleStore(tmp_path)
        request = build_request(["A", "B"], start_at=START, interval_days=2)
        articles = _run(request, fake_backend, store)

        assert [a.topic for a in articles] == ["A", "B"]
        assert [a.scheduled_at for a in articles] == [
            datetime(2024, 3, 1, 9, 0),
            datetime(2024, 3, 3, 9, 0),
        ]
        assert all(a.status == ArticleStatus.SCHEDULED for a in articles)
        assert all(store.get(a.id) is not None for a in articles)
        assert len({a.id for a in articles}) == 2

    def test_topics_are_serialized(self, fake_backend, tmp_path: Path):
        request = build_request(["A", "B"], start_at=START)
        _run(request, fake_backend, ArticleStore(tmp_path))

        kinds = [kind for kind, _ in fake_backend.calls]
        second_outline = [i for i, c in enumerate(fake_backend.calls) if c == ("outline", "B")][0]
        first_thumbnail = kinds.index("thumbnail")
        assert first_thumbnail < second_outline

    def test_failure_keeps_completed_articles(self, fake_backend, tmp_path: Path):
        fake_backend.fail_section_titles.add("Title B")
        store = ArticleStore(tmp_path)
        request = build_request(["A", "B", "C"], start_at=START)

        with pytest.raises(BatchAbortedError) as exc_info:
            _run(request, fake_backend, store)

        assert exc_info.value.index == 1
        assert exc_info.value.topic == "B"
        assert [a.topic for a in exc_info.value.completed] == ["A"]
        assert [a.topic for a in ArticleStore(tmp_path).get_all()] == ["A"]
        assert ("outline", "C") not in fake_backend.calls

    def test_outline_failure_aborts(self, fake_backend, tmp_path: Path):
        fake_backend.fail_outline_topics.add("A")
        with pytest.raises(BatchAbortedError) as exc_info:
            _run(build_request(["A"], start_at=START), fake_backend, ArticleStore(tmp_path))
        assert exc_info.value.completed == []
        assert "#1" in str(exc_info.value)

    def test_article_callback_once_per_persisted_article(self, fake_backend, tmp_path: Path):
        store = ArticleStore(tmp_path)
        seen: list[str] = []

        def _on_complete(article):
            assert store.exists(article.id)
            seen.append(article.topic)

        _run(
            build_request(["A", "B"], start_at=START),
            fake_backend,
            store,
            on_article_complete=_on_complete,
        )
        assert seen == ["A", "B"]

    def test_article_callback_not_called_for_failed_topic(self, fake_backend, tmp_path: Path):
        fake_backend.fail_section_titles.add("Title B")
        seen: list[str] = []
        with pytest.raises(BatchAbortedError):
            _run(
                build_request(["A", "B", "C"], start_at=START),
                fake_backend,
                ArticleStore(tmp_path),
                on_article_complete=lambda a: seen.append(a.topic),
            )
        assert seen == ["A"]

    def test_progress_monotonic_per_article(self, fake_backend, tmp_path: Path):
        fake_backend.section_count = 4
        events: list[GenerationProgress] = []
        _run(
            build_request(["A", "B"], start_at=START),
            fake_backend,
            ArticleStore(tmp_path),
            on_progress=events.append,
        )

        for index in (1, 2):
            percents = [e.percent for e in events if e.current_index == index]
            assert percents == sorted(percents)
            assert percents[0] == 5
            assert percents[-1] == 100
        assert all(e.total_count == 2 for e in events)
        assert events[0].step == GenerationStep.SEARCHING
        assert events[-1].step == GenerationStep.COMPLETE

    def test_broken_observer_does_not_stop_batch(self, fake_backend, tmp_path: Path):
        def _boom(progress):
            raise RuntimeError("observer bug")

        articles = _run(
            build_request(["A"], start_at=START),
            fake_backend,
            ArticleStore(tmp_path),
            on_progress=_boom,
        )
        assert len(articles) == 1

    def test_section_concurrency(self, fake_backend, tmp_path: Path):
        fake_backend.section_count = 6
        articles = _run(
            build_request(["A"], start_at=START),
            fake_backend,
            ArticleStore(tmp_path),
            concurrency=3,
        )
        assert [img.section_index for img in articles[0].images] == [0, 2, 4]


class TestResumeRequest:
    def test_resumes_from_failed_topic(self, fake_backend, tmp_path: Path):
        fake_backend.fail_section_titles.add("Title B")
        request = build_request(["A", "B", "C"], start_at=START, interval_days=2)
        with pytest.raises(BatchAbortedError) as exc_info:
            _run(request, fake_backend, ArticleStore(tmp_path))

        resumed = resume_request(request, exc_info.value)
        assert resumed.topics == ["B", "C"]
        assert resumed.start_at == datetime(2024, 3, 3, 9, 0)
        assert resumed.interval_days == 2

        fake_backend.fail_section_titles.clear()
        articles = _run(resumed, fake_backend, ArticleStore(tmp_path))
        assert [a.scheduled_at.day for a in articles] == [3, 5]
        assert len(ArticleStore(tmp_path).get_all()) == 3
