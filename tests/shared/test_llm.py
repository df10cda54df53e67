"""Tests for notemaster.shared.llm — Gemini call and response helpers."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from notemaster.shared.llm import (
    LLMError,
    build_text_config,
    cited_urls,
    generate_content,
    response_text,
    strip_json_fences,
)


def _part(text=None, thought=None):
    return SimpleNamespace(text=text, thought=thought, inline_data=None)


def _response(parts=(), chunks=None):
    metadata = SimpleNamespace(grounding_chunks=chunks) if chunks is not None else None
    return SimpleNamespace(
        candidates=[
            SimpleNamespace(content=SimpleNamespace(parts=list(parts)), grounding_metadata=metadata)
        ]
    )


def _chunk(uri):
    return SimpleNamespace(web=SimpleNamespace(uri=uri))


# ---------------------------------------------------------------------------
# build_text_config
# ---------------------------------------------------------------------------


class TestBuildTextConfig:
    def test_plain(self):
        config = build_text_config("sys")
        assert config.system_instruction == "sys"
        assert config.response_schema is None
        assert not config.tools
        assert config.thinking_config is None

    def test_schema_sets_json_mime(self):
        config = build_text_config("sys", response_schema={"type": "OBJECT"})
        assert config.response_mime_type == "application/json"

    def test_search_tool(self):
        config = build_text_config("sys", use_search=True)
        assert len(config.tools) == 1
        assert config.tools[0].google_search is not None

    def test_thinking_budget(self):
        config = build_text_config("sys", thinking_budget=1024)
        assert config.thinking_config.thinking_budget == 1024


# ---------------------------------------------------------------------------
# generate_content
# ---------------------------------------------------------------------------


class TestGenerateContent:
    def test_returns_response(self):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value="resp")
        result = asyncio.run(generate_content(client, model="m", contents="hi"))

        assert result == "resp"
        client.aio.models.generate_content.assert_awaited_once_with(
            model="m", contents="hi", config=None
        )

    def test_wraps_errors(self):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("503"))
        with pytest.raises(LLMError, match="label=outline"):
            asyncio.run(generate_content(client, model="m", contents="hi", label="outline"))


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


class TestResponseText:
    def test_joins_text_parts(self):
        assert response_text(_response([_part("a"), _part("b")])) == "ab"

    def test_skips_thoughts(self):
        assert response_text(_response([_part("plan", thought=True), _part("body")])) == "body"

    def test_no_candidates(self):
        assert response_text(SimpleNamespace(candidates=None)) == ""


class TestCitedUrls:
    def test_deduplicates_in_order(self):
        response = _response(chunks=[_chunk("https://a"), _chunk("https://b"), _chunk("https://a")])
        assert cited_urls(response) == ["https://a", "https://b"]

    def test_no_metadata(self):
        assert cited_urls(_response()) == []

    def test_skips_chunks_without_web(self):
        response = _response(chunks=[SimpleNamespace(web=None), _chunk("https://a")])
        assert cited_urls(response) == ["https://a"]


class TestStripJsonFences:
    def test_plain_json(self):
        assert strip_json_fences('{"a": 1}') == '{"a": 1}'

    def test_fenced(self):
        assert strip_json_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_preamble(self):
        assert strip_json_fences('Here it is: {"a": 1} done') == '{"a": 1}'

    def test_no_json(self):
        assert strip_json_fences("nothing") == "nothing"
