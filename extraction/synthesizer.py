"""Story Bible synthesis agent backed by Claude."""
from typing import List
from pydantic import ValidationError

from utils.logger import setup_logger
from extraction.agents import SynthesisAgent
from extraction.llm_client import LLMClient, ExtractionError
from extraction.models import ChunkAnalysis, StoryBible
from extraction import prompts

logger = setup_logger(__name__)


class BibleSynthesizer(SynthesisAgent):
    """Merges the ordered chunk analyses into one Story Bible."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def synthesize(self, analyses: List[ChunkAnalysis]) -> StoryBible:
        """Synthesize the Story Bible.

        Args:
            analyses: Chunk analyses in chunk order

        Returns:
            StoryBible

        Raises:
            ExtractionError: If the call fails or the response does not fit the bible schema
        """
        if not analyses:
            raise ExtractionError("Nothing to synthesize: no chunk analyses")

        logger.info(f"Synthesizing Story Bible from {len(analyses)} chunk analyses")
        data = self.llm.complete_json(
            prompts.synthesis_prompt([analysis.model_dump() for analysis in analyses]),
            system=prompts.SYNTHESIS_SYSTEM
        )

        if not isinstance(data, dict):
            raise ExtractionError(f"Expected a JSON object for the Story Bible, got {type(data).__name__}")

        try:
            bible = StoryBible(**data)
        except ValidationError as e:
            raise ExtractionError(f"Malformed Story Bible: {e}") from e

        logger.info(f"Story Bible '{bible.ten_truyen}': {len(bible.nhan_vat)} characters")
        return bible
