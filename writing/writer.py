"""Section prose generation."""
from abc import ABC, abstractmethod

from utils.logger import setup_logger
from extraction.llm_client import LLMClient
from extraction import prompts
from writing.models import WritingContext
import config

logger = setup_logger(__name__)


class SectionWriter(ABC):
    """Writes prose for one section of the outline."""

    @abstractmethod
    def write(self, context: WritingContext, is_continuation: bool = False) -> str:
        """Return new prose for the section, raise on failure."""
        pass


class ClaudeSectionWriter(SectionWriter):
    """Drafts and continues sections with Claude."""

    def __init__(self, llm: LLMClient, temperature: float = config.WRITING_TEMPERATURE):
        """Initialize writer.

        Args:
            llm: Shared LLM client
            temperature: Sampling temperature for prose
        """
        self.llm = llm
        self.temperature = temperature

    def write(self, context: WritingContext, is_continuation: bool = False) -> str:
        """Generate prose for a section.

        Args:
            context: Bible and outline summaries around the section
            is_continuation: Continue the existing prose instead of drafting from scratch

        Returns:
            Generated text (only the new passage for continuations)
        """
        prompt = prompts.write_section_prompt(
            overall_plot=context.bible.cot_truyen_tong_quat,
            chapter_summary=context.chapter_summary,
            part_summary=context.part_summary,
            section_summary=context.section_summary,
            previous_sections=context.previous_sections,
            current_content=context.current_content if is_continuation else ""
        )
        system = prompts.CONTINUE_WRITING_SYSTEM if is_continuation else prompts.WRITE_SECTION_SYSTEM

        text = self.llm.complete(prompt, system=system, temperature=self.temperature)
        logger.info(f"{'Continued' if is_continuation else 'Drafted'} section: {len(text.split())} words")
        return text.strip()
