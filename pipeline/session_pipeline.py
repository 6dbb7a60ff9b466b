"""Resumable chunk -> analyze -> synthesize session pipeline."""
from typing import Callable, Optional

from pydantic import ValidationError

from utils.logger import setup_logger
from ingestion.chunker import WordChunker
from extraction.agents import ChunkAnalysisAgent, SynthesisAgent
from extraction.models import StoryBible
from pipeline.models import ProcessingSession
from pipeline.transitions import ProcessingStatus, SessionError, IllegalTransitionError, can_resume
from storage.session_store import SessionStore

logger = setup_logger(__name__)

# Share of the progress bar covered by chunk analysis; synthesis starts at 90
ANALYSIS_PROGRESS_SHARE = 80
SYNTHESIS_PROGRESS = 90
COMPLETED_PROGRESS = 100


class InputError(SessionError):
    """Raised when the source text is blank."""
    pass


class SessionBusyError(SessionError):
    """Raised when an operation is attempted while a run is in flight."""
    pass


class NoActiveSessionError(SessionError):
    """Raised when an operation needs a session and there is none."""
    pass


def analysis_progress(index: int, total: int) -> int:
    """Progress shown while chunk ``index`` (0-based) of ``total`` is being analyzed."""
    return round(index / total * ANALYSIS_PROGRESS_SHARE)


class SessionPipeline:
    """Single owner of the active ProcessingSession.

    Drives chunking, sequential chunk analysis and synthesis. Every mutation
    of the session is followed by a full save to the store, so a crash loses
    at most the agent call in flight.
    """

    def __init__(
        self,
        store: SessionStore,
        analyzer: ChunkAnalysisAgent,
        synthesizer: SynthesisAgent,
        chunker: Optional[WordChunker] = None,
        on_update: Optional[Callable[[ProcessingSession], None]] = None
    ):
        """Initialize pipeline.

        Args:
            store: Persistence for the session record
            analyzer: Chunk analysis agent
            synthesizer: Story Bible synthesis agent
            chunker: Text chunker, defaults to the configured word chunker
            on_update: Called with the session after every persisted mutation
        """
        self.store = store
        self.analyzer = analyzer
        self.synthesizer = synthesizer
        self.chunker = chunker or WordChunker()
        self.on_update = on_update
        self.session: Optional[ProcessingSession] = None
        self._running = False

    # ==================== Lifecycle ====================

    def restore(self) -> Optional[ProcessingSession]:
        """Load the persisted session, if any.

        A record that cannot be parsed as a session is discarded and treated
        as "no session".

        Returns:
            The restored session or None
        """
        self._ensure_idle()
        data = self.store.load()
        if data is None:
            self.session = None
            return None

        try:
            self.session = ProcessingSession.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid session record: {e.error_count()} validation errors")
            self.store.clear()
            self.session = None
            return None

        logger.info(
            f"Restored session {self.session.session_id[:8]} "
            f"({self.session.status.value}, {self.session.processed_count}/{self.session.total_chunks} chunks)"
        )
        return self.session

    def create(self, text: str) -> ProcessingSession:
        """Chunk the text and persist a fresh session ready to run.

        Args:
            text: Raw story material

        Returns:
            The new session, status CHUNKING

        Raises:
            InputError: If the text is blank
        """
        self._ensure_idle()
        if not text or not text.strip():
            raise InputError("Source text is empty")

        chunks = self.chunker.build_chunks(text)
        if not chunks:
            raise InputError("Source text produced no chunks")

        session = ProcessingSession(original_text=text, chunks=chunks)
        session.transition_to(ProcessingStatus.CHUNKING)
        session.progress = 0
        session.current_chunk_index = 0
        session.add_log("[SYSTEM] Initialized multi-agent core.")
        session.add_log(f"[SPLITTER] Text split into {len(chunks)} chunks.")

        self.session = session
        self._commit()
        logger.info(f"Created session {session.session_id[:8]} with {len(chunks)} chunks")
        return session

    def start(self, text: str) -> ProcessingSession:
        """Create a session from text and run it."""
        self.create(text)
        return self.run()

    def run(self) -> ProcessingSession:
        """Drive the active session as far as it goes.

        Analyzes every unprocessed chunk in order, then synthesizes the Story
        Bible. Stops at the first agent failure with status ERROR.

        Returns:
            The session in its final state for this run (COMPLETED or ERROR)
        """
        session = self._require_session()
        self._ensure_idle()
        self._running = True
        try:
            self._run(session)
        finally:
            self._running = False
        return session

    def resume(self) -> ProcessingSession:
        """Re-drive an interrupted or failed session from where it stopped.

        Raises:
            IllegalTransitionError: If the session cannot be resumed (e.g. COMPLETED)
        """
        session = self._require_session()
        if not can_resume(session.status):
            raise IllegalTransitionError(f"Cannot resume a session in status {session.status.value}")

        self._ensure_idle()
        session.add_log(f"[SYSTEM] Resuming session from status {session.status.value}.")
        self._commit()
        return self.run()

    def discard(self) -> None:
        """Clear the persisted session and return to an empty workspace."""
        self._ensure_idle()
        self.store.clear()
        if self.session is not None:
            logger.info(f"Discarded session {self.session.session_id[:8]}")
        self.session = None

    def hand_off(self) -> StoryBible:
        """Return the finished Story Bible and clear the persisted session.

        Raises:
            IllegalTransitionError: If the session is not COMPLETED
        """
        session = self._require_session()
        self._ensure_idle()
        if session.status != ProcessingStatus.COMPLETED or session.final_analysis is None:
            raise IllegalTransitionError(
                f"Cannot hand off a session in status {session.status.value}"
            )

        bible = session.final_analysis
        self.store.clear()
        self.session = None
        logger.info(f"Handed off Story Bible '{bible.ten_truyen}'")
        return bible

    @property
    def is_running(self) -> bool:
        return self._running

    # ==================== Internals ====================

    def _run(self, session: ProcessingSession) -> None:
        session.transition_to(ProcessingStatus.PROCESSING)
        self._commit()

        start_index = session.first_unprocessed_index()
        if start_index is None:
            start_index = 0
        total = session.total_chunks

        for index in range(start_index, total):
            chunk = session.chunks[index]
            if chunk.is_processed:
                continue

            session.add_log(f"[AGENT-01] Analyzing chunk #{chunk.id} ({chunk.word_count} words)...")
            session.current_chunk_index = index
            session.progress = analysis_progress(index, total)
            self._commit()

            try:
                analysis = self.analyzer.analyze_chunk(chunk.text, chunk.id)
                # Refuses an analysis carrying another chunk's id
                chunk.mark_processed(analysis)
            except Exception as e:
                logger.error(f"Chunk #{chunk.id} analysis failed: {e}")
                session.add_log(f"[ERROR] Failed to analyze chunk #{chunk.id}: {e}")
                session.transition_to(ProcessingStatus.ERROR)
                self._commit()
                return

            session.add_log(
                f"[AGENT-01] Chunk #{chunk.id} analysis complete. Found {len(analysis.entities)} entities."
            )
            self._commit()

        session.transition_to(ProcessingStatus.SYNTHESIZING)
        session.progress = SYNTHESIS_PROGRESS
        session.add_log("[AGENT-02] All chunks processed. Initiating synthesis...")
        self._commit()

        try:
            bible = self.synthesizer.synthesize(session.collected_analyses())
        except Exception as e:
            logger.error(f"Synthesis failed: {e}")
            session.add_log(f"[ERROR] Synthesis failed: {e}")
            session.transition_to(ProcessingStatus.ERROR)
            self._commit()
            return

        session.final_analysis = bible
        session.transition_to(ProcessingStatus.COMPLETED)
        session.progress = COMPLETED_PROGRESS
        session.add_log("[SYSTEM] Synthesis complete. Story bible generated.")
        self._commit()
        logger.info(f"Session {session.session_id[:8]} completed")

    def _commit(self) -> None:
        session = self._require_session()
        session.touch()
        self.store.save(session.model_dump(mode="json"))
        if self.on_update is not None:
            self.on_update(session)

    def _require_session(self) -> ProcessingSession:
        if self.session is None:
            raise NoActiveSessionError("No active session")
        return self.session

    def _ensure_idle(self) -> None:
        if self._running:
            raise SessionBusyError("A run is already in progress for this session")
