"""Brand profiles driving the content pipeline."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BrandProfile(BaseModel):
    """Search queries, categories and editorial voice for one brand."""

    model_config = ConfigDict(frozen=True)

    queries: List[str] = Field(..., min_length=1, description="Candidate search queries, in priority order.")
    categories: List[str] = Field(..., min_length=1, description="Categories an article may be filed under.")
    voice: str = Field(..., description="Voice directive passed to the generation engine.")

    @field_validator("queries", "categories")
    @classmethod
    def _strip_items(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("at least one non-blank entry is required")
        return cleaned

    @field_validator("voice")
    @classmethod
    def _voice_non_empty(cls, value: str) -> str:
        voice = value.strip()
        if not voice:
            raise ValueError("voice must not be blank")
        return voice


DEFAULT_ENABLED_BRANDS: List[str] = ["saucewire", "trapglow", "trapfrequency"]

DEFAULT_BRAND_PROFILES: Dict[str, BrandProfile] = {
    "saucewire": BrandProfile(
        queries=[
            "breaking music industry news today",
            "entertainment news today hip hop R&B",
            "fashion trends streetwear luxury 2026",
            "sports news highlights today",
            "tech news AI social media today",
        ],
        categories=["Music", "Entertainment", "Fashion", "Sports", "Tech"],
        voice=(
            "Write as a sharp, authoritative news wire. Short punchy paragraphs. "
            "Breaking-news energy. Think AP News meets Complex."
        ),
    ),
    "trapglow": BrandProfile(
        queries=[
            "new emerging artists hip hop R&B 2026",
            "new music releases this week rap hip hop",
            "indie artist spotlight underground music",
            "streaming numbers Spotify Apple Music new artists",
            "music festival lineup announcements 2026",
        ],
        categories=["Hip-Hop", "R&B", "Pop", "Electronic", "Alternative"],
        voice=(
            "Write with young, energetic discovery vibes. Like a friend texting you about a fire new artist. "
            'Casual but knowledgeable. Use phrases like "just dropped", "blowing up", "one to watch".'
        ),
    ),
    "trapfrequency": BrandProfile(
        queries=[
            "music production news DAW updates plugins 2026",
            "beat making tutorial tips producers",
            "new VST plugins synths released 2026",
            "audio gear review headphones monitors",
            "sample pack releases drum kits",
        ],
        categories=["Tutorials", "Beats", "Gear", "DAW Tips", "Samples"],
        voice=(
            "Write like a knowledgeable producer sharing with the community. Technical but accessible. "
            "Include specific details (BPM, DAW names, plugin names). Practical and helpful."
        ),
    ),
}
