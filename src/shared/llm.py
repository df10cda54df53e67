"""Shared Gemini text-generation utilities.

Centralizes every text call the pipeline makes:
1. ``build_text_config`` — system instruction, optional JSON schema,
   optional Google Search grounding, optional thinking budget
2. ``generate_content`` — one awaited ``client.aio.models.generate_content``
   call, with transport failures normalized to ``LLMError``
3. Response helpers — text extraction, grounding citations, JSON fences
"""

from __future__ import annotations

import logging
import re
from typing import Any

from google.genai import types

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base error for Gemini calls."""


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def build_text_config(
    system_instruction: str,
    *,
    response_schema: dict[str, Any] | None = None,
    use_search: bool = False,
    thinking_budget: int | None = None,
) -> types.GenerateContentConfig:
    """Assemble a ``GenerateContentConfig`` for a text call."""
    kwargs: dict[str, Any] = {"system_instruction": system_instruction}
    if response_schema is not None:
        kwargs["response_mime_type"] = "application/json"
        kwargs["response_schema"] = response_schema
    if use_search:
        kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
    if thinking_budget is not None:
        kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=thinking_budget)
    return types.GenerateContentConfig(**kwargs)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


async def generate_content(
    client: Any,
    *,
    model: str,
    contents: Any,
    config: types.GenerateContentConfig | None = None,
    label: str = "generation",
) -> Any:
    """Issue one async ``generate_content`` call and return the raw response.

    Args:
        client: A ``google.genai.Client`` (or anything exposing ``aio.models``).
        model: Gemini model id.
        contents: Prompt string or content parts.
        config: Request configuration.
        label: Label for logging and error messages.

    Raises:
        LLMError: On any transport or API failure.
    """
    logger.debug("Calling Gemini model=%s (%s)", model, label)
    try:
        return await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
    except Exception as exc:
        raise LLMError(f"Gemini call failed (label={label}): {exc}") from exc


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _first_candidate(response: Any) -> Any | None:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def response_text(response: Any) -> str:
    """Concatenate the text parts of the first candidate.

    Thought parts are skipped.  Missing candidates or parts yield ``""``.
    """
    candidate = _first_candidate(response)
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    texts: list[str] = []
    for part in parts:
        if getattr(part, "thought", False):
            continue
        text = getattr(part, "text", None)
        if isinstance(text, str):
            texts.append(text)
    return "".join(texts)


def cited_urls(response: Any) -> list[str]:
    """Return the web URIs from grounding metadata, de-duplicated, in order."""
    candidate = _first_candidate(response)
    metadata = getattr(candidate, "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    urls: list[str] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if isinstance(uri, str) and uri and uri not in urls:
            urls.append(uri)
    return urls


_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences and preamble from model JSON output.

    Grounded calls do not always honour the JSON mime type, so the object
    may arrive fenced or surrounded by prose.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text
