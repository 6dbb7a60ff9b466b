"""Pydantic model of the persisted processing session."""
import uuid
from datetime import datetime, timezone
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from ingestion.models import Chunk
from extraction.models import ChunkAnalysis, StoryBible
from pipeline.transitions import ProcessingStatus, ensure_transition


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


class ProcessingSession(BaseModel):
    """One run of the chunk -> analyze -> synthesize pipeline.

    The record is the unit of persistence: it is saved whole after every
    mutation and restored whole on start-up.
    """
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    original_text: str
    chunks: List[Chunk] = Field(default_factory=list)
    status: ProcessingStatus = ProcessingStatus.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    current_chunk_index: int = Field(default=0, ge=0)
    logs: List[str] = Field(default_factory=list)
    final_analysis: Optional[StoryBible] = None
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @model_validator(mode="after")
    def _check_invariants(self) -> "ProcessingSession":
        if self.status != ProcessingStatus.IDLE and not self.chunks:
            raise ValueError(f"Session in status {self.status.value} has no chunks")

        ids = [chunk.id for chunk in self.chunks]
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError(f"Chunk ids must be 1..{len(ids)} in order, got {ids}")

        if self.status == ProcessingStatus.COMPLETED:
            if not self.all_processed:
                raise ValueError("Completed session has unprocessed chunks")
            if self.final_analysis is None:
                raise ValueError("Completed session has no final analysis")
        return self

    # ==================== Queries ====================

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    @property
    def processed_count(self) -> int:
        return sum(1 for chunk in self.chunks if chunk.is_processed)

    @property
    def all_processed(self) -> bool:
        return all(chunk.is_processed for chunk in self.chunks)

    def first_unprocessed_index(self) -> Optional[int]:
        """Index of the first chunk still waiting for analysis, or None."""
        for index, chunk in enumerate(self.chunks):
            if not chunk.is_processed:
                return index
        return None

    def collected_analyses(self) -> List[ChunkAnalysis]:
        """Analyses of all chunks in chunk order, skipping any that are missing."""
        return [chunk.analysis for chunk in self.chunks if chunk.analysis is not None]

    def recent_logs(self, n: int = 10) -> List[str]:
        return self.logs[-n:] if n > 0 else []

    # ==================== Mutations ====================

    def add_log(self, message: str) -> str:
        """Append a timestamped entry. Entries are never edited or removed."""
        entry = f"[{_timestamp()}] {message}"
        self.logs.append(entry)
        return entry

    def transition_to(self, target: ProcessingStatus) -> None:
        """Move to ``target``, raising IllegalTransitionError for edges outside the table."""
        ensure_transition(self.status, target)
        self.status = target

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc).isoformat()
