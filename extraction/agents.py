"""Abstract agent capabilities consumed by the pipeline.

The session pipeline and the outline step only depend on these interfaces,
so tests and alternative model backends can plug in their own agents.
"""
from abc import ABC, abstractmethod
from typing import List

from extraction.models import ChunkAnalysis, StoryBible
from structure.models import OutlineSkeleton


class ChunkAnalysisAgent(ABC):
    """Analyzes one chunk of source text."""

    @abstractmethod
    def analyze_chunk(self, chunk_text: str, chunk_id: int) -> ChunkAnalysis:
        """Return the analysis of a chunk, raise on failure."""
        pass


class SynthesisAgent(ABC):
    """Merges ordered chunk analyses into a Story Bible."""

    @abstractmethod
    def synthesize(self, analyses: List[ChunkAnalysis]) -> StoryBible:
        """Return the Story Bible, raise on failure."""
        pass


class OutlineAgent(ABC):
    """Expands a Story Bible into an outline skeleton."""

    @abstractmethod
    def generate_outline(self, bible: StoryBible) -> OutlineSkeleton:
        """Return the outline skeleton, raise on failure."""
        pass
