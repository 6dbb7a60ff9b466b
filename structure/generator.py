"""Outline skeleton generation from a Story Bible."""
from pydantic import ValidationError

from utils.logger import setup_logger
from extraction.agents import OutlineAgent
from extraction.llm_client import LLMClient, ExtractionError
from extraction.models import StoryBible
from extraction import prompts
from structure.models import OutlineSkeleton

logger = setup_logger(__name__)


class StructureGenerator(OutlineAgent):
    """Designs the chapter / part / section outline with Claude."""

    def __init__(self, llm: LLMClient):
        """Initialize generator.

        Args:
            llm: Shared LLM client
        """
        self.llm = llm

    def generate_outline(self, bible: StoryBible) -> OutlineSkeleton:
        """Generate the outline skeleton.

        Args:
            bible: Finished Story Bible

        Returns:
            OutlineSkeleton

        Raises:
            ExtractionError: If the call fails or no chapters come back
        """
        logger.info(f"Generating outline for '{bible.ten_truyen}'")
        prompt = prompts.structure_prompt(
            bible.cot_truyen_tong_quat,
            [character.model_dump(exclude_none=True) for character in bible.nhan_vat]
        )
        data = self.llm.complete_json(prompt, system=prompts.STRUCTURE_SYSTEM)

        if not isinstance(data, dict):
            raise ExtractionError(f"Expected a JSON object for the outline, got {type(data).__name__}")

        try:
            skeleton = OutlineSkeleton(**data)
        except ValidationError as e:
            raise ExtractionError(f"Malformed outline: {e}") from e

        if not skeleton.chuong:
            raise ExtractionError("No structure generated")

        section_count = sum(len(part.muc) for chapter in skeleton.chuong for part in chapter.phan)
        logger.info(f"Outline: {len(skeleton.chuong)} chapters, {section_count} sections")
        return skeleton
