"""Section editing operations over a Story document."""
from typing import List, Optional

from utils.logger import setup_logger
from structure.models import Story
from structure.story_tree import find_section, update_section, previous_section_summaries
from writing.models import WritingContext, VoiceSettings
from writing.writer import SectionWriter
from writing.speech import SpeechAgent, SpeechError
import config

logger = setup_logger(__name__)


class SectionLockedError(Exception):
    """Raised when generated prose would overwrite a locked section."""
    pass


class StoryEditor:
    """Applies writer and speech agents to sections of a story.

    All editing methods return a new Story; the input is never mutated.
    """

    def __init__(
        self,
        writer: Optional[SectionWriter] = None,
        speech: Optional[SpeechAgent] = None,
        continuation_chars: int = config.CONTINUATION_CONTEXT_CHARS,
        previous_sections: int = config.PREVIOUS_SECTIONS_CONTEXT
    ):
        self.writer = writer
        self.speech = speech
        self.continuation_chars = continuation_chars
        self.previous_sections = previous_sections

    def build_context(self, story: Story, section_id: str, continue_writing: bool = False) -> WritingContext:
        """Collect the summaries and prose tail around a section."""
        chapter, part, section = find_section(story, section_id)
        return WritingContext(
            bible=story.bible,
            chapter_summary=chapter.tom_tat_chuong,
            part_summary=part.tom_tat_phan,
            section_summary=section.tom_tat_muc,
            previous_sections=previous_section_summaries(story, section_id, self.previous_sections),
            current_content=section.noi_dung[-self.continuation_chars:] if continue_writing else ""
        )

    def write_section(self, story: Story, section_id: str, continue_writing: bool = False) -> Story:
        """Draft a section, or continue its existing prose.

        Args:
            story: Story to edit
            section_id: Target section
            continue_writing: Append to the existing prose instead of replacing it

        Returns:
            Updated story

        Raises:
            SectionLockedError: If the section is locked
            RuntimeError: If no writer is configured
        """
        if self.writer is None:
            raise RuntimeError("No section writer configured")

        section = find_section(story, section_id).section
        if section.is_locked:
            raise SectionLockedError(f"Section {section_id} is locked")

        context = self.build_context(story, section_id, continue_writing)
        new_text = self.writer.write(context, is_continuation=continue_writing)

        if continue_writing and section.noi_dung:
            content = f"{section.noi_dung}\n\n{new_text}"
        else:
            content = new_text

        return update_section(story, section_id, noi_dung=content)

    def narrate(self, story: Story, section_id: str, settings: VoiceSettings) -> bytes:
        """Render a section's prose to audio.

        Raises:
            SpeechError: If no speech agent is configured, the section is empty, or synthesis fails
        """
        if self.speech is None:
            raise SpeechError("No speech agent configured")

        section = find_section(story, section_id).section
        if not section.noi_dung.strip():
            raise SpeechError(f"Section {section_id} has no content yet")
        return self.speech.synthesize_speech(section.noi_dung, settings)


def set_locked(story: Story, section_id: str, locked: bool) -> Story:
    """Return a copy of the story with the section's lock flag set."""
    return update_section(story, section_id, is_locked=locked)


def export_markdown(story: Story) -> str:
    """Render the story as Markdown: bible header, then the chapter tree with prose."""
    lines: List[str] = [f"# {story.ten_truyen or 'Untitled'}", ""]

    if story.the_loai:
        lines += [f"**Genres:** {', '.join(story.the_loai)}", ""]
    if story.chu_de:
        lines += [f"**Themes:** {', '.join(story.chu_de)}", ""]
    if story.boi_canh:
        lines += ["## Setting", "", story.boi_canh, ""]
    if story.nhan_vat:
        lines += ["## Characters", ""]
        for character in story.nhan_vat:
            role = f" ({character.vai_tro})" if character.vai_tro else ""
            lines.append(f"- **{character.ten}**{role}: {character.mo_ta}")
        lines.append("")

    for chapter in story.chapters:
        lines += [f"## Chapter {chapter.so_chuong}: {chapter.ten_chuong}", ""]
        if chapter.tom_tat_chuong:
            lines += [f"*{chapter.tom_tat_chuong}*", ""]
        for part in chapter.phan:
            lines += [f"### Part {part.so_phan}", ""]
            for section in part.muc:
                lines += [f"#### Section {section.so_muc}", ""]
                # Unwritten sections show their outline summary
                lines += [section.noi_dung if section.noi_dung else f"_{section.tom_tat_muc}_", ""]

    return "\n".join(lines).rstrip() + "\n"
