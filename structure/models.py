"""Pydantic models for the outline skeleton and the editable Story document."""
import time
from pydantic import BaseModel, Field
from typing import List

from extraction.models import StoryBible


# ==================== Outline skeleton (model output) ====================

class OutlineSection(BaseModel):
    so_muc: int
    tom_tat_muc: str = ""


class OutlinePart(BaseModel):
    so_phan: int
    tom_tat_phan: str = ""
    muc: List[OutlineSection] = Field(default_factory=list)


class OutlineChapter(BaseModel):
    so_chuong: int
    ten_chuong: str = ""
    tom_tat_chuong: str = ""
    phan: List[OutlinePart] = Field(default_factory=list)


class OutlineSkeleton(BaseModel):
    """Chapter -> part -> section numbering and summaries generated from a Story Bible."""
    chuong: List[OutlineChapter] = Field(default_factory=list)


# ==================== Story document ====================

class Section(BaseModel):
    """Leaf of the outline, holds the generated prose."""
    id: str
    so_muc: int
    tom_tat_muc: str
    noi_dung: str = ""  # prose
    tom_tat_ngan: str = ""  # short summary fed as context to later sections
    is_locked: bool = False


class Part(BaseModel):
    id: str
    so_phan: int
    tom_tat_phan: str
    muc: List[Section] = Field(default_factory=list)


class Chapter(BaseModel):
    id: str
    so_chuong: int
    ten_chuong: str
    tom_tat_chuong: str
    phan: List[Part] = Field(default_factory=list)


class Story(StoryBible):
    """Story Bible plus its keyed chapter tree."""
    id: str
    created_at: int = Field(default_factory=lambda: int(time.time() * 1000))  # epoch millis
    chapters: List[Chapter] = Field(default_factory=list)

    @property
    def bible(self) -> StoryBible:
        """The Story Bible part of the story."""
        return StoryBible(**self.model_dump(include=set(StoryBible.model_fields)))
