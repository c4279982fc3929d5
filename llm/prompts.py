"""Directive builder for article rewrites.

The directive is engine-agnostic: every engine receives the same single
instruction and must answer with one JSON object embedded in its text.
"""

from __future__ import annotations

from ingestion.models.domain import CandidateSource


JSON_SCHEMA_SNIPPET = (
    "{\n"
    '  "title": "Your catchy headline (different from source)",\n'
    '  "body": "Full article body, 3-5 paragraphs, 200-400 words. Use markdown for formatting.",\n'
    '  "excerpt": "One compelling sentence summary, under 160 chars",\n'
    '  "tags": ["tag1", "tag2", "tag3"]\n'
    "}"
)


def build_article_prompt(source: CandidateSource, voice: str, category: str) -> str:
    """Instruction for an original, non-plagiarized rewrite in the brand voice."""
    return (
        f"You are a content writer for a media brand. {voice.strip()}\n\n"
        "Based on this news source, write an ORIGINAL article "
        "(do NOT copy, fully rewrite with your own angle):\n\n"
        f"SOURCE TITLE: {source.title}\n"
        f"SOURCE SUMMARY: {source.description}\n"
        f"SOURCE URL: {source.url}\n\n"
        "Write in JSON format:\n"
        f"{JSON_SCHEMA_SNIPPET}\n\n"
        f"Category: {category}\n"
        "Rules:\n"
        "- 100% original wording, never plagiarize\n"
        "- Match the brand voice described above\n"
        "- Include the source URL as a reference at the bottom\n"
        "- Make it engaging and shareable\n"
        "- Only return valid JSON, nothing else"
    )
