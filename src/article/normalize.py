"""Normalization rules for raw model prose.

Models prepend acknowledgements ("承知いたしました", "Here is the
translation:"), leak thinking markers, or wrap the whole answer in a code
fence.  Each clean-up is a named rule applied in order, so a rule can be
tested, disabled, or reordered on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizationRule:
    """A named pattern whose matches are removed (or replaced) from prose."""

    name: str
    pattern: re.Pattern[str]
    replacement: str = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


CONVERSATIONAL_PREAMBLE = NormalizationRule(
    name="conversational_preamble",
    pattern=re.compile(
        r"^(?:Search Query|Thinking|思考プロセス|はい、|承知いたしました|了解しました"
        r"|Here is the translation:|Translation:).*?(?:\n|$)",
        re.IGNORECASE | re.MULTILINE,
    ),
)

THOUGHT_MARKUP = NormalizationRule(
    name="thought_markup",
    pattern=re.compile(r"\[/?(?:thought|thinking|思考)\]", re.IGNORECASE),
)

MARKDOWN_FENCE = NormalizationRule(
    name="markdown_fence",
    pattern=re.compile(r"\A\s*```(?:markdown|md)?[ \t]*\n(.*?)\n```\s*\Z", re.DOTALL),
    replacement=r"\1",
)

NORMALIZATION_RULES: tuple[NormalizationRule, ...] = (
    CONVERSATIONAL_PREAMBLE,
    THOUGHT_MARKUP,
    MARKDOWN_FENCE,
)


def normalize_prose(
    text: str | None,
    rules: tuple[NormalizationRule, ...] = NORMALIZATION_RULES,
) -> str:
    """Apply ``rules`` in order and trim surrounding whitespace."""
    result = text or ""
    for rule in rules:
        result = rule.apply(result)
    return result.strip()


_HEADING_LINE_RE = re.compile(r"^\s*#{1,6}\s+(.*?)(?:\s+#+)?\s*$")
_NUMBER_PREFIX_RE = re.compile(r"^(?:\d+[.)．、:：]|\d+\s|第\d+[章節])\s*")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def drop_echoed_heading(prose: str, heading: str) -> str:
    """Remove markdown heading lines that repeat ``heading``, wherever they are.

    The assembler writes every section heading itself, so a copy emitted by
    the model would appear twice.  Numbering such as ``1.`` or ``第2章`` is
    ignored when comparing; other subheadings are kept.
    """
    target = _heading_key(heading)
    kept = []
    for line in prose.split("\n"):
        match = _HEADING_LINE_RE.match(line)
        if match is not None and _heading_key(match.group(1)) == target:
            continue
        kept.append(line)
    if len(kept) == prose.count("\n") + 1:
        return prose
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(kept)).strip("\n")


def _heading_key(text: str) -> str:
    text = re.sub(r"[*_`]+", "", text).strip()
    text = _NUMBER_PREFIX_RE.sub("", text)
    return re.sub(r"\s+", "", text).casefold()
