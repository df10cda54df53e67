"""Prompts and the outline response schema for article generation.

Articles are written in Japanese for note.com, so the text prompts are
Japanese; image prompts stay in English, which the image model follows
more reliably.
"""

from __future__ import annotations

from typing import Any

from notemaster.article.models import SectionSpec
from notemaster.article.tags import format_video_reference

SYSTEM_INSTRUCTION = """\
あなたは第一線で活躍するコンテンツディレクターです。次のルールを必ず守ってください。
1. 重複禁止：長編記事であっても、各章は新しい視点・具体的な事実・深い洞察を示し、\
他の章と同じ言い回しや見出しを繰り返さないこと。
2. 動画：記事全体で YouTube 動画は1本だけ。指定された URL 以外は使わないこと。
3. 画像：本文を補う視覚的な描写を [IMAGE: 描写] の形式で挿入してよい。\
ただし画像は読者の妨げになるため、全章の半分以下の章に、本当に必要な箇所だけ入れること。
4. 出力：Markdown 形式の本文のみ。挨拶、前置き、思考過程は一切出力しないこと。
"""

TRANSLATION_INSTRUCTION = (
    "Strict English translator. Output only the translation, "
    "with no conversational filler or explanations."
)

# Response schema for the outline call (OpenAPI subset accepted by Gemini).
OUTLINE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "outline": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "heading": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "targetChars": {"type": "NUMBER"},
                    "includeVideo": {
                        "type": "BOOLEAN",
                        "description": "この章に YouTube 動画を配置するかどうか",
                    },
                },
                "required": ["heading", "description", "targetChars", "includeVideo"],
            },
        },
    },
    "required": ["title", "outline"],
}


def outline_prompt(topic: str, target_length: int, references: list[str]) -> str:
    """User prompt for the grounded outline call."""
    lines = [
        f"テーマ「{topic}」について、内容の重複がない約{target_length}文字の深掘り記事の構成を作成してください。",
        "このテーマに関連する実在の YouTube 動画を1本だけ検索し、その URL を特定してください。",
    ]
    if references:
        lines.append("参考資料:")
        lines.extend(f"- {ref}" for ref in references)
    return "\n".join(lines)


def section_prompt(title: str, spec: SectionSpec, video_url: str | None) -> str:
    """User prompt for one section's prose."""
    if spec.include_video and video_url:
        video = (
            f"この章の適切な位置に {format_video_reference(video_url)} を1回だけ挿入してください。"
        )
    else:
        video = "YouTube リンクは一切挿入しないでください。"
    return "\n".join(
        [
            f"記事タイトル: 「{title}」",
            f"章の見出し: 「{spec.heading}」",
            f"章の役割: {spec.description}",
            f"目標文字数: {spec.target_chars}文字",
            "指示: 他の章と重複しない鋭い考察を書いてください。見出しは出力しないでください。"
            "必要であれば [IMAGE: 描写] を1つだけ配置してください。",
            video,
        ]
    )


def section_image_prompt(description: str) -> str:
    return f'Professional editorial photograph for: "{description}". Clean, realistic, no text.'


def thumbnail_prompt(title: str) -> str:
    """Prompt that renders the literal title as the only text in the image."""
    return (
        "A cinematic, high-end editorial digital artwork.\n"
        "VISUAL CONCEPT: a professional visualization of the topic.\n"
        f'TEXT OVERLAY: "{title}"\n'
        f'STYLE: render the exact words "{title}" in massive, clean, elegant bold '
        "typography at the center as the dominant visual element.\n"
        "FORBIDDEN: any other text, logos, or UI elements. "
        f'The only words in the image are: "{title}".'
    )


def translation_prompt(text: str) -> str:
    return (
        "Translate the following into polished, native English. "
        f"Output ONLY the translated text.\n\n{text}"
    )
