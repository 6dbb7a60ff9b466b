"""Assembly of the editable Story document from a bible and an outline."""
import uuid
from typing import Any, Dict, Union

from pydantic import ValidationError

from utils.logger import setup_logger
from extraction.models import StoryBible
from structure.models import OutlineSkeleton, Story, Chapter, Part, Section

logger = setup_logger(__name__)


class StoryAssemblyError(Exception):
    """Raised when the outline skeleton is malformed."""
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def assemble_story(
    bible: StoryBible,
    skeleton: Union[OutlineSkeleton, Dict[str, Any]]
) -> Story:
    """Build a keyed Story from the Story Bible and the outline skeleton.

    Every chapter, part and section gets a fresh id; summaries are copied
    verbatim; section prose starts empty and unlocked.

    Args:
        bible: Story Bible
        skeleton: Outline skeleton, as a model or as raw model output

    Returns:
        Story

    Raises:
        StoryAssemblyError: If the skeleton is malformed or has no chapters
    """
    if not isinstance(skeleton, OutlineSkeleton):
        if not isinstance(skeleton, dict):
            raise StoryAssemblyError(f"Outline must be an object, got {type(skeleton).__name__}")
        try:
            skeleton = OutlineSkeleton.model_validate(skeleton)
        except ValidationError as e:
            raise StoryAssemblyError(f"Malformed outline: {e}") from e

    if not skeleton.chuong:
        raise StoryAssemblyError("Outline has no chapters")

    chapters = [
        Chapter(
            id=_new_id(),
            so_chuong=chapter.so_chuong,
            ten_chuong=chapter.ten_chuong,
            tom_tat_chuong=chapter.tom_tat_chuong,
            phan=[
                Part(
                    id=_new_id(),
                    so_phan=part.so_phan,
                    tom_tat_phan=part.tom_tat_phan,
                    muc=[
                        Section(
                            id=_new_id(),
                            so_muc=section.so_muc,
                            tom_tat_muc=section.tom_tat_muc,
                            noi_dung="",
                            tom_tat_ngan=section.tom_tat_muc,
                            is_locked=False
                        )
                        for section in part.muc
                    ]
                )
                for part in chapter.phan
            ]
        )
        for chapter in skeleton.chuong
    ]

    story = Story(id=_new_id(), chapters=chapters, **bible.model_dump())
    logger.info(f"Assembled story '{story.ten_truyen}' with {len(chapters)} chapters")
    return story
