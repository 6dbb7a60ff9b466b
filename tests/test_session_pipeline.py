"""Test the resumable processing session pipeline."""
import pytest

from ingestion.chunker import WordChunker
from extraction.models import ChunkAnalysis
from pipeline.models import ProcessingSession
from pipeline.session_pipeline import (
    SessionPipeline,
    InputError,
    SessionBusyError,
    NoActiveSessionError,
    analysis_progress,
)
from pipeline.transitions import ProcessingStatus, IllegalTransitionError
from helpers import FakeAnalyzer, FakeSynthesizer, make_text


class Recorder:
    """on_update callback keeping a deep copy of every committed state."""

    def __init__(self):
        self.snapshots = []

    def __call__(self, session):
        self.snapshots.append(session.model_copy(deep=True))


def make_pipeline(store, analyzer, synthesizer, words_per_chunk=1500, recorder=None):
    return SessionPipeline(
        store,
        analyzer,
        synthesizer,
        chunker=WordChunker(words_per_chunk=words_per_chunk),
        on_update=recorder
    )


def test_two_chunk_run_completes(store, analyzer, synthesizer):
    """3000 words at 1500 per chunk: two analyses, synthesized in chunk order."""
    pipeline = make_pipeline(store, analyzer, synthesizer)
    session = pipeline.start(make_text(3000))

    assert [c.word_count for c in session.chunks] == [1500, 1500]
    assert analyzer.calls == [1, 2]
    assert len(synthesizer.calls) == 1
    assert [a.chunk_id for a in synthesizer.calls[0]] == [1, 2]
    assert session.status == ProcessingStatus.COMPLETED
    assert session.progress == 100
    assert session.final_analysis.ten_truyen == "The Salt Road"
    assert all(c.is_processed for c in session.chunks)


def test_create_persists_before_any_analysis(store, analyzer, synthesizer):
    """The new session is saved in CHUNKING with seeded logs before chunk work starts."""
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    session = pipeline.create(make_text(25))

    saved = store.load()
    assert saved is not None
    assert saved["session_id"] == session.session_id
    assert saved["status"] == "CHUNKING"
    assert saved["progress"] == 0
    assert len(saved["chunks"]) == 3
    assert analyzer.calls == []
    assert "[SYSTEM] Initialized multi-agent core." in session.logs[0]
    assert "[SPLITTER] Text split into 3 chunks." in session.logs[1]


@pytest.mark.parametrize("blank", ["", "   ", "\n\n"])
def test_blank_input_is_rejected(store, analyzer, synthesizer, blank):
    """Blank text never creates a session."""
    pipeline = make_pipeline(store, analyzer, synthesizer)

    with pytest.raises(InputError):
        pipeline.create(blank)

    assert pipeline.session is None
    assert store.load() is None


def test_analysis_failure_halts_run(store, synthesizer):
    """A failed chunk stops the run: later chunks and synthesis are not attempted."""
    analyzer = FakeAnalyzer(fail_on={2}, message="timeout")
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    session = pipeline.start(make_text(30))

    assert session.status == ProcessingStatus.ERROR
    assert analyzer.calls == [1, 2]
    assert synthesizer.calls == []
    assert [c.is_processed for c in session.chunks] == [True, False, False]
    assert session.chunks[1].analysis is None
    assert any("timeout" in entry and "[ERROR]" in entry for entry in session.logs)
    assert session.final_analysis is None


def test_resume_retries_failed_chunk_first(store, synthesizer):
    """Resuming re-attempts the failed chunk and never re-analyzes earlier ones."""
    analyzer = FakeAnalyzer(fail_on={2})
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    pipeline.start(make_text(30))

    analyzer.fail_on.clear()
    analyzer.calls.clear()
    session = pipeline.resume()

    assert analyzer.calls == [2, 3]
    assert session.status == ProcessingStatus.COMPLETED
    assert session.progress == 100
    assert [a.chunk_id for a in synthesizer.calls[0]] == [1, 2, 3]


def test_synthesis_failure_then_resume_skips_analysis(store, analyzer):
    """After a synthesis failure, resume only re-invokes synthesis."""
    synthesizer = FakeSynthesizer(fail=True, message="model overloaded")
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    session = pipeline.start(make_text(30))

    assert session.status == ProcessingStatus.ERROR
    assert all(c.is_processed for c in session.chunks)
    assert session.final_analysis is None
    assert "[ERROR] Synthesis failed: model overloaded" in session.logs[-1]

    synthesizer.fail = False
    analyzer.calls.clear()
    session = pipeline.resume()

    assert analyzer.calls == []
    assert len(synthesizer.calls) == 2
    assert session.status == ProcessingStatus.COMPLETED


def test_resume_from_restored_record(store, synthesizer):
    """A second pipeline over the same store picks up where the first one stopped."""
    first = make_pipeline(store, FakeAnalyzer(fail_on={3}), synthesizer, words_per_chunk=10)
    first.start(make_text(40))

    analyzer = FakeAnalyzer()
    second = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    restored = second.restore()

    assert restored.status == ProcessingStatus.ERROR
    assert restored.processed_count == 2

    session = second.resume()
    assert analyzer.calls == [3, 4]
    assert session.status == ProcessingStatus.COMPLETED


def test_progress_boundaries_and_monotonicity(store, analyzer, synthesizer):
    """Progress follows round(i / n * 80) per chunk, then 90 and 100."""
    recorder = Recorder()
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10, recorder=recorder)
    pipeline.start(make_text(40))

    progress = [s.progress for s in recorder.snapshots]
    assert progress == sorted(progress)
    assert set(progress) == {0, 20, 40, 60, 90, 100}

    analyzing = [s for s in recorder.snapshots if s.logs[-1].endswith("words)...")]
    assert [s.progress for s in analyzing] == [0, 20, 40, 60]
    assert [s.current_chunk_index for s in analyzing] == [0, 1, 2, 3]

    synthesizing = [s for s in recorder.snapshots if s.status == ProcessingStatus.SYNTHESIZING]
    assert synthesizing[0].progress == 90

    completed = [s for s in recorder.snapshots if s.progress == 100]
    assert all(s.status == ProcessingStatus.COMPLETED for s in completed)


def test_analysis_progress_formula():
    """Boundary values of the analysis share of the progress bar."""
    assert analysis_progress(0, 3) == 0
    assert analysis_progress(1, 3) == 27
    assert analysis_progress(2, 3) == 53
    assert analysis_progress(0, 1) == 0


def test_logs_are_append_only(store, synthesizer):
    """Every committed log list is a prefix of every later one."""
    recorder = Recorder()
    analyzer = FakeAnalyzer(fail_on={2})
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10, recorder=recorder)
    pipeline.start(make_text(30))
    analyzer.fail_on.clear()
    pipeline.resume()

    logs = [s.logs for s in recorder.snapshots]
    for earlier, later in zip(logs, logs[1:]):
        assert len(later) >= len(earlier)
        assert later[:len(earlier)] == earlier


def test_every_commit_is_persisted(store, analyzer, synthesizer):
    """The store always holds the latest committed state."""
    states = []

    def check(session):
        saved = store.load()
        states.append(saved["status"])
        assert saved["logs"] == session.logs
        assert saved["progress"] == session.progress

    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    pipeline.on_update = check
    pipeline.start(make_text(20))

    assert states[0] == "CHUNKING"
    assert "PROCESSING" in states
    assert states[-1] == "COMPLETED"


def test_resume_completed_session_is_illegal(store, analyzer, synthesizer):
    """A completed session cannot be resumed."""
    pipeline = make_pipeline(store, analyzer, synthesizer)
    pipeline.start(make_text(100))

    with pytest.raises(IllegalTransitionError):
        pipeline.resume()


def test_resume_without_session(store, analyzer, synthesizer):
    """Resume needs an active session."""
    pipeline = make_pipeline(store, analyzer, synthesizer)

    with pytest.raises(NoActiveSessionError):
        pipeline.resume()


def test_hand_off_returns_bible_and_clears_store(store, analyzer, synthesizer):
    """Hand-off releases the bible and destroys the session record."""
    pipeline = make_pipeline(store, analyzer, synthesizer)
    pipeline.start(make_text(100))

    bible = pipeline.hand_off()

    assert bible.ten_truyen == "The Salt Road"
    assert pipeline.session is None
    assert store.load() is None


def test_hand_off_requires_completed_session(store, synthesizer):
    """An errored session cannot be handed off and stays persisted."""
    pipeline = make_pipeline(store, FakeAnalyzer(fail_on={1}), synthesizer)
    pipeline.start(make_text(100))

    with pytest.raises(IllegalTransitionError):
        pipeline.hand_off()
    assert store.load() is not None


def test_discard_clears_everything(store, synthesizer):
    """Discard removes the persisted record and the active session."""
    pipeline = make_pipeline(store, FakeAnalyzer(fail_on={1}), synthesizer)
    pipeline.start(make_text(100))

    pipeline.discard()

    assert pipeline.session is None
    assert store.load() is None
    assert pipeline.restore() is None


def test_invalid_persisted_record_is_discarded(store, analyzer, synthesizer):
    """A record that is valid JSON but not a session is treated as absent."""
    store.save({"status": "PROCESSING", "chunks": "not a list"})
    pipeline = make_pipeline(store, analyzer, synthesizer)

    assert pipeline.restore() is None
    assert store.load() is None


def test_run_cannot_be_reentered(store, synthesizer):
    """A second run while one is in flight is refused."""
    errors = []

    class ReentrantAnalyzer(FakeAnalyzer):
        def analyze_chunk(self, chunk_text, chunk_id):
            try:
                pipeline.run()
            except SessionBusyError as e:
                errors.append(e)
            return super().analyze_chunk(chunk_text, chunk_id)

    pipeline = make_pipeline(store, ReentrantAnalyzer(), synthesizer)
    session = pipeline.start(make_text(10))

    assert len(errors) == 1
    assert session.status == ProcessingStatus.COMPLETED
    assert not pipeline.is_running


def test_unexpected_agent_exception_is_logged_as_error(store, synthesizer):
    """Any exception from an agent stops the run with an ERROR log entry."""
    class BrokenAnalyzer(FakeAnalyzer):
        def analyze_chunk(self, chunk_text, chunk_id):
            raise RuntimeError("connection reset")

    pipeline = make_pipeline(store, BrokenAnalyzer(), synthesizer)
    session = pipeline.start(make_text(10))

    assert session.status == ProcessingStatus.ERROR
    assert "connection reset" in session.logs[-1]


def test_mismatched_analysis_id_is_an_agent_failure(store, synthesizer):
    """An analysis for the wrong chunk stops the run in ERROR and leaves the chunk pending."""
    class WrongIdAnalyzer(FakeAnalyzer):
        def analyze_chunk(self, chunk_text, chunk_id):
            self.calls.append(chunk_id)
            return ChunkAnalysis(chunk_id=chunk_id + 1)

    pipeline = make_pipeline(store, WrongIdAnalyzer(), synthesizer, words_per_chunk=10)
    session = pipeline.start(make_text(20))

    assert session.status == ProcessingStatus.ERROR
    assert not session.chunks[0].is_processed
    assert session.logs[-1].endswith("cannot be attached to chunk #1")
    assert "[ERROR] Failed to analyze chunk #1" in session.logs[-1]
    assert synthesizer.calls == []

    saved = store.load()
    assert saved["status"] == "ERROR"
    assert saved["logs"] == session.logs


def test_resume_of_all_processed_session_in_processing(store, analyzer, synthesizer):
    """A record restored mid-run with every chunk processed goes straight to synthesis."""
    pipeline = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    session = pipeline.create(make_text(20))
    for chunk in session.chunks:
        chunk.mark_processed(analyzer.analyze_chunk(chunk.text, chunk.id))
    session.transition_to(ProcessingStatus.PROCESSING)
    store.save(session.model_dump(mode="json"))
    analyzer.calls.clear()

    fresh = make_pipeline(store, analyzer, synthesizer, words_per_chunk=10)
    fresh.restore()
    result = fresh.resume()

    assert analyzer.calls == []
    assert result.status == ProcessingStatus.COMPLETED
    assert isinstance(result, ProcessingSession)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
