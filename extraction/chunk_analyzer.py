"""Per-chunk analysis agent backed by Claude."""
from pydantic import ValidationError

from utils.logger import setup_logger
from extraction.agents import ChunkAnalysisAgent
from extraction.llm_client import LLMClient, ExtractionError
from extraction.models import ChunkAnalysis
from extraction import prompts

logger = setup_logger(__name__)


class ChunkAnalyzer(ChunkAnalysisAgent):
    """Extracts summary, key points, entities and tone notes from one chunk."""

    def __init__(self, llm: LLMClient):
        """Initialize analyzer.

        Args:
            llm: Shared LLM client
        """
        self.llm = llm

    def analyze_chunk(self, chunk_text: str, chunk_id: int) -> ChunkAnalysis:
        """Analyze a single chunk.

        Args:
            chunk_text: Chunk content
            chunk_id: 1-based chunk id

        Returns:
            ChunkAnalysis, fields missing from the response default to empty

        Raises:
            ExtractionError: If the call fails or the response is not an object
        """
        logger.debug(f"Analyzing chunk #{chunk_id}")
        data = self.llm.complete_json(
            prompts.chunk_analysis_prompt(chunk_text, chunk_id),
            system=prompts.CHUNK_ANALYSIS_SYSTEM
        )

        if not isinstance(data, dict):
            raise ExtractionError(f"Chunk #{chunk_id}: expected a JSON object, got {type(data).__name__}")

        try:
            return ChunkAnalysis(
                chunk_id=chunk_id,
                summary=data.get("summary") or "",
                key_points=data.get("key_points") or [],
                entities=data.get("entities") or [],
                notes=data.get("notes") or ""
            )
        except ValidationError as e:
            raise ExtractionError(f"Chunk #{chunk_id}: malformed analysis: {e}") from e
