"""Lookup and immutable update of sections in a Story tree."""
from typing import Any, Iterator, List, NamedTuple

from structure.models import Story, Chapter, Part, Section


class SectionNotFoundError(KeyError):
    """Raised when no section carries the requested id."""
    pass


class SectionLocation(NamedTuple):
    chapter: Chapter
    part: Part
    section: Section


def iter_sections(story: Story) -> Iterator[SectionLocation]:
    """Yield every section with its chapter and part, in reading order."""
    for chapter in story.chapters:
        for part in chapter.phan:
            for section in part.muc:
                yield SectionLocation(chapter, part, section)


def find_section(story: Story, section_id: str) -> SectionLocation:
    for location in iter_sections(story):
        if location.section.id == section_id:
            return location
    raise SectionNotFoundError(section_id)


def update_section(story: Story, section_id: str, **changes: Any) -> Story:
    """Return a copy of the story with one section's fields replaced.

    Chapters and parts that do not contain the section are reused as-is;
    the input story is left untouched.

    Raises:
        SectionNotFoundError: If the id is not in the story
    """
    location = find_section(story, section_id)
    updated = location.section.model_copy(update=changes)

    chapters = []
    for chapter in story.chapters:
        if chapter.id != location.chapter.id:
            chapters.append(chapter)
            continue
        parts = []
        for part in chapter.phan:
            if part.id != location.part.id:
                parts.append(part)
                continue
            sections = [updated if section.id == section_id else section for section in part.muc]
            parts.append(part.model_copy(update={"muc": sections}))
        chapters.append(chapter.model_copy(update={"phan": parts}))

    return story.model_copy(update={"chapters": chapters})


def previous_section_summaries(story: Story, section_id: str, limit: int) -> List[str]:
    """Short summaries of up to ``limit`` sections preceding ``section_id`` in the same part."""
    location = find_section(story, section_id)
    earlier: List[str] = []
    for section in location.part.muc:
        if section.id == section_id:
            break
        if section.tom_tat_ngan:
            earlier.append(section.tom_tat_ngan)
    return earlier[-limit:] if limit > 0 else []
