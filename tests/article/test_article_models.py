"""Tests for article domain models."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from notemaster.article.models import (
    Article,
    ArticleStatus,
    BatchRequest,
    GenerationProgress,
    GenerationStep,
    ImageRecord,
    Outline,
    SectionSpec,
    TargetLength,
)

START = datetime(2024, 3, 1, 9, 0)


def _make_article(**overrides) -> Article:
    defaults = dict(
        id="a1",
        topic="AI",
        title="AI title",
        content="## H\n\n[REAL_IMAGE:img_1]\n\n",
        images=[
            ImageRecord(
                id="img_1", url="data:image/png;base64,AA==", description="d", section_index=0
            )
        ],
        created_at=START,
    )
    defaults.update(overrides)
    return Article(**defaults)


class TestBatchRequest:
    def test_strips_and_drops_blank_topics(self):
        req = BatchRequest(topics=["  AI ", "", "   ", "Quantum"], start_at=START)
        assert req.topics == ["AI", "Quantum"]

    def test_rejects_only_blank_topics(self):
        with pytest.raises(ValidationError):
            BatchRequest(topics=["", "  "], start_at=START)

    def test_rejects_negative_interval(self):
        with pytest.raises(ValidationError):
            BatchRequest(topics=["AI"], start_at=START, interval_days=-1)

    def test_rejects_unknown_length(self):
        with pytest.raises(ValidationError):
            BatchRequest(topics=["AI"], start_at=START, target_length=3000)

    def test_accepts_int_length(self):
        req = BatchRequest(topics=["AI"], start_at=START, target_length=6000)
        assert req.target_length is TargetLength.LONG

    def test_defaults(self):
        req = BatchRequest(topics=["AI"], start_at=START)
        assert req.interval_days == 1
        assert req.target_length == TargetLength.SHORT
        assert req.references == []

    def test_cleans_references(self):
        req = BatchRequest(topics=["AI"], start_at=START, references=[" https://a ", ""])
        assert req.references == ["https://a"]


class TestSectionSpec:
    def test_parses_camel_case_aliases(self):
        spec = SectionSpec.model_validate(
            {"heading": "H", "description": "D", "targetChars": 812.6, "includeVideo": True}
        )
        assert spec.target_chars == 813
        assert spec.include_video is True

    def test_accepts_field_names(self):
        spec = SectionSpec(heading="H", target_chars=100)
        assert spec.target_chars == 100
        assert spec.include_video is False


class TestOutline:
    def _sections(self, flags):
        return [
            {"heading": f"H{i}", "description": "", "targetChars": 100, "includeVideo": flag}
            for i, flag in enumerate(flags)
        ]

    def test_parses_backend_payload(self):
        outline = Outline.model_validate({"title": "T", "outline": self._sections([False, True])})
        assert outline.title == "T"
        assert [s.heading for s in outline.sections] == ["H0", "H1"]

    def test_keeps_only_first_video_flag(self):
        outline = Outline.model_validate(
            {"title": "T", "outline": self._sections([False, True, True, True])}
        )
        assert [s.include_video for s in outline.sections] == [False, True, False, False]

    def test_rejects_empty_sections(self):
        with pytest.raises(ValidationError):
            Outline.model_validate({"title": "T", "outline": []})

    def test_rejects_empty_title(self):
        with pytest.raises(ValidationError):
            Outline.model_validate({"title": "", "outline": self._sections([False])})

    def test_rejects_too_many_citations(self):
        with pytest.raises(ValidationError):
            Outline.model_validate(
                {
                    "title": "T",
                    "outline": self._sections([False]),
                    "citations": [f"https://c/{i}" for i in range(6)],
                }
            )


class TestArticle:
    def test_default_status_is_draft(self):
        assert _make_article().status == ArticleStatus.DRAFT

    def test_image_by_id(self):
        article = _make_article()
        assert article.image_by_id("img_1").section_index == 0
        assert article.image_by_id("missing") is None

    def test_no_dangling_ids(self):
        assert _make_article().dangling_image_ids() == []

    def test_dangling_ids_detected(self):
        article = _make_article(content="[REAL_IMAGE:img_1] [REAL_IMAGE:img_9]")
        assert article.dangling_image_ids() == ["img_9"]

    def test_at_most_one_video(self):
        with pytest.raises(ValidationError):
            _make_article(video_urls=["https://youtu.be/a", "https://youtu.be/b"])

    def test_json_round_trip(self):
        article = _make_article(scheduled_at=START, status=ArticleStatus.SCHEDULED)
        restored = Article.model_validate_json(article.model_dump_json())
        assert restored == article


class TestGenerationProgress:
    def test_percent_bounds(self):
        with pytest.raises(ValidationError):
            GenerationProgress(
                step=GenerationStep.WRITING,
                message="m",
                percent=101,
                current_index=1,
                total_count=1,
            )
