"""Pydantic models for chunk analysis and Story Bible synthesis.

Story Bible field names (ten_truyen, nhan_vat, ...) are the JSON keys the
model prompts ask for and the keys stored on disk, so they are kept as-is.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ChunkAnalysis(BaseModel):
    """Analysis of a single chunk returned by the analysis agent."""
    model_config = ConfigDict(frozen=True)

    chunk_id: int
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)  # People, places, organisations
    notes: str = ""  # Voice / emotional notes


class Character(BaseModel):
    """Character entry of the Story Bible."""
    ten: str  # name
    vai_tro: str = ""  # role
    mo_ta: str = ""  # description
    quan_he: Optional[str] = None  # relationships


class StoryBible(BaseModel):
    """Unified description of the story synthesized from all chunk analyses."""
    ten_truyen: str = ""  # title
    the_loai: List[str] = Field(default_factory=list)  # genres
    boi_canh: str = ""  # setting
    nhan_vat: List[Character] = Field(default_factory=list)  # characters
    chu_de: List[str] = Field(default_factory=list)  # themes
    cot_truyen_tong_quat: str = ""  # overall plot
