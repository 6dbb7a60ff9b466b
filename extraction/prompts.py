"""LLM prompt templates for chunk analysis, synthesis, outlining and writing."""
import json
from typing import List, Dict, Any


# System prompts, one per agent
CHUNK_ANALYSIS_SYSTEM = """You are a story analysis agent. You are given ONE chunk of a longer piece of story material.
Read it and extract its information. Answer in the same language as the text.

Return a JSON object with:
- summary: Short summary of what happens in this chunk
- key_points: List of the most important events or facts
- entities: List of proper names (characters, places, organisations) appearing in the chunk
- notes: Notes on narrative voice or emotional tone, if any

Return ONLY valid JSON, no other text."""

SYNTHESIS_SYSTEM = """You are the senior synthesis agent. You are given a list of analyses, each covering one
chunk of a long story, in narrative order. Merge them into one complete and consistent Story Bible:
connect the pieces, merge duplicate characters and build the overall picture.
Answer in the same language as the analyses.

Return a JSON object with:
- ten_truyen: A fitting title for the story
- the_loai: List of genres
- boi_canh: Description of the world / setting
- nhan_vat: List of characters, each {"ten": name, "vai_tro": role, "mo_ta": description, "quan_he": relationships}
- chu_de: List of main themes
- cot_truyen_tong_quat: A continuous summary of the plot from beginning to end

Return ONLY valid JSON, no other text."""

STRUCTURE_SYSTEM = """Based on the overall plot, design a detailed structure for the novel.
Requirements:
- At least 3 chapters.
- Every chapter has at least 2 parts.
- Every part has at least 2 sections.
- Every level carries a short summary.
Answer in the same language as the plot.

Return a JSON object shaped like:
{"chuong": [{"so_chuong": 1, "ten_chuong": "...", "tom_tat_chuong": "...",
  "phan": [{"so_phan": 1, "tom_tat_phan": "...",
    "muc": [{"so_muc": 1, "tom_tat_muc": "..."}]}]}]}

Return ONLY valid JSON, no other text."""

WRITE_SECTION_SYSTEM = """You are a professional novelist. Write the full prose of ONE section of a novel.
Requirements:
- Fluent, vivid and emotional prose.
- NEVER contradict the Story Bible.
- Keep every character's personality intact.
- Write in as much detail and at as much length as possible.
Write in the same language as the summaries you are given."""

CONTINUE_WRITING_SYSTEM = """You are continuing a section of a long novel.
Task: continue writing immediately after the provided text.
Requirements:
- Fully seamless with the previous passage.
- Do not reset the scene.
- Keep the same narrative voice."""


def chunk_analysis_prompt(chunk_text: str, chunk_id: int) -> str:
    """Generate the user prompt for a single chunk analysis.

    Args:
        chunk_text: Chunk content
        chunk_id: 1-based chunk id

    Returns:
        Formatted prompt string
    """
    return f"CHUNK ID: {chunk_id}\nCONTENT:\n{chunk_text}"


def synthesis_prompt(analyses: List[Dict[str, Any]]) -> str:
    """Generate the user prompt for Story Bible synthesis.

    Args:
        analyses: Chunk analyses as dictionaries, in chunk order

    Returns:
        Formatted prompt string
    """
    input_data = json.dumps(analyses, indent=2, ensure_ascii=False)
    return f"LIST OF CHUNK ANALYSES:\n{input_data}"


def structure_prompt(overall_plot: str, characters: List[Dict[str, Any]]) -> str:
    """Generate the user prompt for outline generation."""
    return (
        f"Overall plot: {overall_plot}\n\n"
        f"Characters: {json.dumps(characters, ensure_ascii=False)}"
    )


def write_section_prompt(
    overall_plot: str,
    chapter_summary: str,
    part_summary: str,
    section_summary: str,
    previous_sections: List[str],
    current_content: str = ""
) -> str:
    """Generate the user prompt for writing or continuing a section.

    Args:
        overall_plot: Story Bible plot summary
        chapter_summary: Summary of the enclosing chapter
        part_summary: Summary of the enclosing part
        section_summary: Goal of the section being written
        previous_sections: Short summaries of the sections before this one
        current_content: Tail of the existing prose, only for continuations

    Returns:
        Formatted prompt string
    """
    prompt = (
        f"Overall plot: {overall_plot}\n"
        f"Chapter summary: {chapter_summary}\n"
        f"Part summary: {part_summary}\n"
        f"Current section goal: {section_summary}"
    )

    if previous_sections:
        earlier = "\n".join(f"- {summary}" for summary in previous_sections)
        prompt += f"\n\nEarlier sections of this part:\n{earlier}"

    if current_content:
        prompt += f"\n\nAlready written (context):\n{current_content}"

    return prompt
