"""Pydantic models for section writing and voice rendering."""
from pydantic import BaseModel, Field
from typing import List, Literal

from extraction.models import StoryBible


class WritingContext(BaseModel):
    """Everything the writer needs to draft or continue one section."""
    bible: StoryBible
    chapter_summary: str
    part_summary: str
    section_summary: str
    previous_sections: List[str] = Field(default_factory=list)
    current_content: str = ""  # Tail of existing prose, only for continuations


class VoiceSettings(BaseModel):
    """Narration settings for text-to-speech."""
    enabled: bool = True
    voice: Literal["Nam", "Nu"] = "Nu"  # male / female
    speed: float = Field(default=1.0, ge=0.5, le=2.0)
