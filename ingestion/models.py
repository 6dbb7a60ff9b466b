"""Pydantic models for ingestion module."""
from pydantic import BaseModel, Field, model_validator
from typing import Optional

from extraction.models import ChunkAnalysis


class Chunk(BaseModel):
    """A word-bounded slice of the source text."""
    id: int = Field(ge=1)  # 1-based, stable for the whole session
    text: str
    is_processed: bool = False
    analysis: Optional[ChunkAnalysis] = None

    @model_validator(mode="after")
    def _check_analysis(self) -> "Chunk":
        if self.is_processed:
            if self.analysis is None:
                raise ValueError(f"Chunk #{self.id} is processed but has no analysis")
            if self.analysis.chunk_id != self.id:
                raise ValueError(
                    f"Chunk #{self.id} carries analysis for chunk #{self.analysis.chunk_id}"
                )
        return self

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def mark_processed(self, analysis: ChunkAnalysis) -> None:
        """Attach the analysis and flag the chunk as processed.

        Args:
            analysis: Result of the analysis agent for this chunk

        Raises:
            ValueError: If the chunk is already processed or the ids differ
        """
        if self.is_processed:
            raise ValueError(f"Chunk #{self.id} is already processed")
        if analysis.chunk_id != self.id:
            raise ValueError(
                f"Analysis for chunk #{analysis.chunk_id} cannot be attached to chunk #{self.id}"
            )
        self.analysis = analysis
        self.is_processed = True
