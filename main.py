"""Main CLI entry point for Novel Workshop."""
import click
import json
from pathlib import Path
from typing import Optional, Tuple
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from utils.logger import setup_logger
from storage.database import Database
from storage.session_store import create_session_store
from ingestion.chunker import WordChunker
from extraction.agents import ChunkAnalysisAgent, SynthesisAgent, OutlineAgent
from extraction.llm_client import LLMClient, ExtractionError
from extraction.chunk_analyzer import ChunkAnalyzer
from extraction.synthesizer import BibleSynthesizer
from pipeline.session_pipeline import SessionPipeline
from pipeline.transitions import ProcessingStatus, can_resume
from monitoring.progress_tracker import SessionMonitor, log_style
from structure.generator import StructureGenerator
from structure.assembly import assemble_story, StoryAssemblyError
from structure.models import Story
from structure.story_tree import SectionNotFoundError, find_section, iter_sections
from writing.editor import StoryEditor, SectionLockedError, export_markdown, set_locked
from writing.writer import ClaudeSectionWriter
from writing.speech import GeminiSpeechSynthesizer, SpeechError, save_wav
from writing.models import VoiceSettings
import config

logger = setup_logger(__name__)
console = Console()


# ==================== Component factories ====================

def _get_database() -> Database:
    return Database()


def _build_llm() -> LLMClient:
    return LLMClient()


def _build_agents() -> Tuple[ChunkAnalysisAgent, SynthesisAgent, OutlineAgent]:
    """Create the analysis, synthesis and outline agents sharing one LLM client."""
    llm = _build_llm()
    return ChunkAnalyzer(llm), BibleSynthesizer(llm), StructureGenerator(llm)


def _build_editor() -> StoryEditor:
    return StoryEditor(ClaudeSectionWriter(_build_llm()))


def _build_narrator() -> StoryEditor:
    """Editor with only a speech agent, so narration needs no Anthropic key."""
    return StoryEditor(speech=GeminiSpeechSynthesizer())


def _build_pipeline(db: Database, with_agents: bool = True, on_update=None) -> SessionPipeline:
    """Create the session pipeline over the configured store.

    Commands that only inspect or discard the session skip agent creation,
    so they work without API keys.
    """
    store = create_session_store(db=db)
    if with_agents:
        analyzer, synthesizer, _ = _build_agents()
    else:
        analyzer = synthesizer = None
    return SessionPipeline(store, analyzer, synthesizer, chunker=WordChunker(), on_update=on_update)


def _load_story(db: Database, story_id: str) -> Optional[Story]:
    data = db.get_story(story_id)
    if data is None:
        console.print(f"[red]Error: No story found with ID {story_id}[/red]")
        return None
    return Story.model_validate(data)


def _print_session_summary(session) -> None:
    colour = "red" if session.status == ProcessingStatus.ERROR else "green"
    console.print(f"Session: [cyan]{session.session_id[:8]}[/cyan]")
    console.print(f"Status: [{colour}]{session.status.value}[/{colour}]")
    console.print(f"Progress: {session.progress}%")
    console.print(
        f"Chunks: {session.total_chunks} total, "
        f"[green]{session.processed_count} processed[/green], "
        f"[yellow]{session.total_chunks - session.processed_count} pending[/yellow]"
    )


# ==================== CLI ====================

@click.group()
def cli():
    """Novel Workshop - turn raw story material into an AI-assisted novel outline."""
    pass


@cli.command()
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False), help='Text file with story material')
@click.option('--text', help='Story material passed inline')
def start(file_path, text):
    """Start a new processing session (chunk, analyze, synthesize)."""
    if bool(file_path) == bool(text):
        raise click.UsageError("Provide exactly one of --file or --text")

    source = Path(file_path).read_text(encoding='utf-8') if file_path else text
    if not source.strip():
        console.print("[red]Error: Source text is empty[/red]")
        return

    db = _get_database()
    pipeline = _build_pipeline(db, with_agents=False)
    existing = pipeline.restore()
    if existing is not None:
        next_step = "build-outline" if existing.status == ProcessingStatus.COMPLETED else "resume"
        console.print(
            f"[yellow]Session {existing.session_id[:8]} is {existing.status.value}. "
            f"Run '{next_step}' or 'discard' first.[/yellow]"
        )
        return

    console.print("\n[bold cyan]Multi-Agent Story Analysis[/bold cyan]\n")
    try:
        pipeline = _build_pipeline(db)
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    with SessionMonitor(console) as monitor:
        pipeline.on_update = monitor
        session = pipeline.start(source)

    console.print()
    _print_session_summary(session)
    if session.status == ProcessingStatus.COMPLETED:
        console.print("\n[green]✓ Story Bible ready. Run 'build-outline' to continue.[/green]")
    else:
        console.print("\n[red]Processing stopped. Run 'resume' to retry from the failed step.[/red]")


@cli.command()
def resume():
    """Resume the current session from its first unfinished step."""
    db = _get_database()
    try:
        pipeline = _build_pipeline(db)
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    session = pipeline.restore()
    if session is None:
        console.print("[yellow]No session to resume.[/yellow]")
        return
    if not can_resume(session.status):
        console.print(f"[yellow]Session is {session.status.value}; nothing to resume.[/yellow]")
        return

    with SessionMonitor(console) as monitor:
        monitor.skip_existing(session)
        pipeline.on_update = monitor
        session = pipeline.resume()

    console.print()
    _print_session_summary(session)


@cli.command()
@click.option('--logs', 'log_count', default=10, show_default=True, help='Number of recent log lines to show')
def status(log_count):
    """Show the current session status and recent logs."""
    db = _get_database()
    pipeline = _build_pipeline(db, with_agents=False)
    session = pipeline.restore()

    if session is None:
        console.print("[yellow]No active session.[/yellow]")
        return

    _print_session_summary(session)
    if session.final_analysis:
        console.print(f"Story Bible: [cyan]{session.final_analysis.ten_truyen}[/cyan]")

    logs = session.recent_logs(log_count)
    if logs:
        console.print("\n[bold]Recent logs[/bold]")
        for entry in logs:
            console.print(entry, style=log_style(entry), markup=False, highlight=False)


@cli.command()
@click.confirmation_option(prompt='Discard the current session?')
def discard():
    """Discard the current session."""
    db = _get_database()
    pipeline = _build_pipeline(db, with_agents=False)
    pipeline.restore()
    pipeline.discard()
    console.print("[green]✓ Session discarded[/green]")


@cli.command('build-outline')
def build_outline():
    """Turn the finished Story Bible into an outlined, editable story."""
    db = _get_database()
    pipeline = _build_pipeline(db, with_agents=False)
    session = pipeline.restore()

    if session is None or session.status != ProcessingStatus.COMPLETED or session.final_analysis is None:
        console.print("[red]Error: No completed session. Run 'start' or 'resume' first.[/red]")
        return

    try:
        _, _, outline_agent = _build_agents()
        with console.status("Designing the novel structure..."):
            skeleton = outline_agent.generate_outline(session.final_analysis)
        story = assemble_story(session.final_analysis, skeleton)
    except (ExtractionError, StoryAssemblyError) as e:
        # Session is kept so the step can be retried
        console.print(f"[red]Error building outline: {e}[/red]")
        logger.exception("Outline generation failed")
        return

    db.save_story(story.model_dump(mode="json"))
    pipeline.hand_off()

    console.print(f"\n[green]✓ Story created![/green]")
    console.print(f"Story ID: [cyan]{story.id}[/cyan]")
    console.print(f"Title: [cyan]{story.ten_truyen}[/cyan]")
    console.print(f"Chapters: {len(story.chapters)}")
    console.print(f"Sections: {sum(1 for _ in iter_sections(story))}")


@cli.command('list-stories')
def list_stories():
    """List all stories."""
    db = _get_database()
    stories = db.list_stories()

    if not stories:
        console.print("[yellow]No stories yet[/yellow]")
        return

    table = Table(title="Stories")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Updated", style="yellow")

    for story in stories:
        table.add_row(story['id'], story['title'], story['updated_at'][:19])

    console.print(table)


@cli.command('delete-story')
@click.option('--story-id', required=True, help='Story UUID')
@click.confirmation_option(prompt='Delete this story and all its prose?')
def delete_story(story_id):
    """Delete a story."""
    db = _get_database()
    if not db.delete_story(story_id):
        console.print(f"[red]Error: No story found with ID {story_id}[/red]")
        return
    console.print(f"[green]✓ Story {story_id} deleted[/green]")


@cli.command('show-story')
@click.option('--story-id', required=True, help='Story UUID')
def show_story(story_id):
    """Show the chapter / part / section tree of a story."""
    db = _get_database()
    story = _load_story(db, story_id)
    if story is None:
        return

    tree = Tree(f"[bold]{story.ten_truyen}[/bold] ({len(story.chapters)} chapters)")
    for chapter in story.chapters:
        chapter_node = tree.add(f"[magenta]CH.{chapter.so_chuong}[/magenta] {chapter.ten_chuong}")
        for part in chapter.phan:
            part_node = chapter_node.add(f"Part {part.so_phan}: {part.tom_tat_phan}")
            for section in part.muc:
                words = len(section.noi_dung.split())
                lock = " [red](locked)[/red]" if section.is_locked else ""
                part_node.add(
                    f"[cyan]{section.id}[/cyan] §{section.so_muc} {section.tom_tat_muc} "
                    f"[dim]{words} words[/dim]{lock}"
                )

    console.print(tree)


@cli.command()
@click.option('--story-id', required=True, help='Story UUID')
@click.option('--section-id', required=True, help='Section UUID')
@click.option('--continue', 'continue_writing', is_flag=True, help='Continue the existing prose')
def write(story_id, section_id, continue_writing):
    """Generate prose for a section."""
    db = _get_database()
    story = _load_story(db, story_id)
    if story is None:
        return

    try:
        editor = _build_editor()
        with console.status("Writing..."):
            story = editor.write_section(story, section_id, continue_writing=continue_writing)
    except (SectionNotFoundError, SectionLockedError, ExtractionError) as e:
        console.print(f"[red]Error while writing: {e}[/red]")
        return

    db.save_story(story.model_dump(mode="json"))
    words = len(find_section(story, section_id).section.noi_dung.split())
    console.print(f"[green]✓ Section saved ({words} words)[/green]")


def _set_lock(story_id: str, section_id: str, locked: bool) -> None:
    db = _get_database()
    story = _load_story(db, story_id)
    if story is None:
        return
    try:
        story = set_locked(story, section_id, locked)
    except SectionNotFoundError:
        console.print(f"[red]Error: No section {section_id} in this story[/red]")
        return
    db.save_story(story.model_dump(mode="json"))
    console.print(f"[green]✓ Section {'locked' if locked else 'unlocked'}[/green]")


@cli.command()
@click.option('--story-id', required=True, help='Story UUID')
@click.option('--section-id', required=True, help='Section UUID')
def lock(story_id, section_id):
    """Lock a section against regeneration."""
    _set_lock(story_id, section_id, True)


@cli.command()
@click.option('--story-id', required=True, help='Story UUID')
@click.option('--section-id', required=True, help='Section UUID')
def unlock(story_id, section_id):
    """Unlock a section."""
    _set_lock(story_id, section_id, False)


@cli.command()
@click.option('--story-id', required=True, help='Story UUID')
@click.option('--section-id', required=True, help='Section UUID')
@click.option('--voice', type=click.Choice(['Nam', 'Nu']), default='Nu', show_default=True, help='Narrator voice')
@click.option('--speed', type=click.FloatRange(0.5, 2.0), default=1.0, show_default=True, help='Speaking pace')
@click.option('--output', type=click.Path(), default=None, help='Output WAV path')
def speak(story_id, section_id, voice, speed, output):
    """Narrate a section to a WAV file."""
    db = _get_database()
    story = _load_story(db, story_id)
    if story is None:
        return

    output_path = Path(output) if output else config.AUDIO_DIR / f"{section_id}.wav"
    try:
        editor = _build_narrator()
        with console.status("Synthesizing speech..."):
            pcm = editor.narrate(story, section_id, VoiceSettings(voice=voice, speed=speed))
    except (SectionNotFoundError, SpeechError) as e:
        console.print(f"[red]Error creating narration: {e}[/red]")
        return

    save_wav(pcm, output_path)
    console.print(f"[green]✓ Audio saved to {output_path}[/green]")


@cli.command('export-story')
@click.option('--story-id', required=True, help='Story UUID')
@click.option('--output', required=True, type=click.Path(), help='Output path (.md or .json)')
def export_story(story_id, output):
    """Export a story as Markdown or JSON."""
    db = _get_database()
    story = _load_story(db, story_id)
    if story is None:
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == '.json':
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(story.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
    else:
        output_path.write_text(export_markdown(story), encoding='utf-8')

    console.print(f"[green]✓ Exported to {output_path}[/green]")


if __name__ == '__main__':
    cli()
