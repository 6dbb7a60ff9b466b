"""Live console view of a running processing session."""
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from pipeline.models import ProcessingSession


def log_style(entry: str) -> str:
    """Rich style for a session log entry."""
    if "[ERROR]" in entry:
        return "red"
    if "[SYSTEM]" in entry:
        return "cyan"
    return "white"


class SessionMonitor:
    """Mirrors session commits onto a rich progress bar and prints new log lines.

    Pass an instance as the pipeline's ``on_update`` callback inside a
    ``with`` block.
    """

    def __init__(self, console: Console):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console
        )
        self.task_id = None
        self.logs_seen = 0

    def __enter__(self) -> "SessionMonitor":
        self.progress.start()
        self.task_id = self.progress.add_task("Starting...", total=100)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.progress.stop()

    def skip_existing(self, session: ProcessingSession) -> None:
        """Only print log lines appended after this point."""
        self.logs_seen = len(session.logs)

    def __call__(self, session: ProcessingSession) -> None:
        for entry in session.logs[self.logs_seen:]:
            self.progress.console.print(entry, style=log_style(entry), markup=False, highlight=False)
        self.logs_seen = len(session.logs)

        if self.task_id is not None:
            description = (
                f"{session.status.value} "
                f"({session.processed_count}/{session.total_chunks} chunks)"
            )
            self.progress.update(self.task_id, completed=session.progress, description=description)
