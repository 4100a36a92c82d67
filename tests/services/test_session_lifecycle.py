"""
Tests for session lifecycle management.

Tests cover:
1. Multiple sessions with exactly one active
2. Switching, explicit session ids, archive and delete
3. Checkpoints in the conversation log
4. Interruption detection and resume
5. Persistence across orchestrator instances (JSON store)
"""

import pytest

from storydigest.models import InteractionType
from storydigest.models.input import SourceFormat
from storydigest.models.session import Phase, SessionStatus
from storydigest.services.orchestrator import DigestOrchestrator
from storydigest.services.sessions import SessionHandle
from storydigest.utils.exceptions import (
    NoActiveSessionError,
    OverrideRequiredError,
    SessionNotFoundError,
)
from tests.conftest import DASHBOARD_ANSWERS, MEETING_TRANSCRIPT, make_config

PRESENTED = ["q_001", "q_003", "q_005", "q_002", "q_004"]


@pytest.fixture
def meeting_file(tmp_path):
    path = tmp_path / "meeting.log"
    path.write_text(MEETING_TRANSCRIPT)
    return path


@pytest.fixture
def two_sessions(orchestrator, transcript_file, meeting_file):
    first = orchestrator.new(str(transcript_file)).session.id
    second = orchestrator.new(str(meeting_file)).session.id
    return first, second


def status_of(orchestrator: DigestOrchestrator, session_id: str) -> SessionStatus:
    return orchestrator.sessions.load(SessionHandle(session_id=session_id)).status


class TestRegistry:
    """Tests for the multi-session registry."""

    def test_new_session_demotes_previous(self, orchestrator, two_sessions):
        first, second = two_sessions

        assert orchestrator.active_session_id() == second
        assert status_of(orchestrator, first) == SessionStatus.IN_PROGRESS
        assert status_of(orchestrator, second) == SessionStatus.ACTIVE
        assert [e.session_id for e in orchestrator.list_sessions()] == [first, second]

    def test_registry_tracks_phase(self, orchestrator, two_sessions):
        first, _ = two_sessions
        orchestrator.pass2(session_id=first)

        entry = next(e for e in orchestrator.list_sessions() if e.session_id == first)
        assert entry.phase == Phase.ASSOCIATION

    def test_explicit_session_does_not_switch(self, orchestrator, two_sessions):
        first, second = two_sessions

        orchestrator.pass2(session_id=first)

        assert orchestrator.active_session_id() == second

    def test_switch(self, orchestrator, two_sessions):
        first, second = two_sessions

        session = orchestrator.switch(first)

        assert session.status == SessionStatus.ACTIVE
        assert orchestrator.active_session_id() == first
        assert status_of(orchestrator, second) == SessionStatus.IN_PROGRESS

    def test_unknown_session(self, orchestrator, two_sessions):
        with pytest.raises(SessionNotFoundError):
            orchestrator.switch("sess_missing")
        with pytest.raises(SessionNotFoundError):
            orchestrator.pass2(session_id="sess_missing")

    def test_meeting_transcript_keeps_speakers(self, orchestrator, two_sessions):
        _, second = two_sessions
        handle = SessionHandle(session_id=second)

        statements = orchestrator.pipeline.statements(handle).statements

        assert orchestrator.status().session.input.source_format == SourceFormat.CHAT_EXPORT
        assert statements[1].speaker == "Bob"
        assert statements[1].timestamp_ms == 9000


class TestArchiveDelete:
    """Tests for archiving and deleting sessions."""

    def test_archive_clears_active_pointer(self, orchestrator, two_sessions):
        _, second = two_sessions

        session = orchestrator.archive()

        assert session.id == second
        assert session.status == SessionStatus.ARCHIVED
        assert orchestrator.active_session_id() is None
        with pytest.raises(NoActiveSessionError):
            orchestrator.status()

    def test_delete_requires_force(self, orchestrator, two_sessions):
        first, _ = two_sessions

        with pytest.raises(OverrideRequiredError):
            orchestrator.delete(first)
        assert first in [e.session_id for e in orchestrator.list_sessions()]

    def test_delete(self, orchestrator, memory_store, two_sessions):
        first, second = two_sessions

        orchestrator.delete(second, force=True)

        assert [e.session_id for e in orchestrator.list_sessions()] == [first]
        assert memory_store.session_ids() == [first]
        assert orchestrator.active_session_id() is None

    def test_delete_unknown(self, orchestrator):
        with pytest.raises(SessionNotFoundError):
            orchestrator.delete("sess_missing", force=True)


class TestCheckpoints:
    def test_checkpoint_logged(self, digested):
        checkpoint = digested.checkpoint("before questions")

        assert checkpoint.name == "before questions"
        assert checkpoint.phase == Phase.CONTRADICTION_RESOLUTION.value
        log = digested.sessions.conversation(SessionHandle(session_id=digested.active_session_id()))
        assert log.checkpoints[-1].name == "before questions"
        assert log.last().type == InteractionType.CHECKPOINT


class TestInterruption:
    """Tests for recovery after stopping with open questions."""

    def test_not_interrupted(self, digested):
        assert digested.resume() == (None, [])

    def test_status_surfaces_recovery(self, digested, config, memory_store):
        digested.questions()

        # A fresh process over the same state
        restarted = DigestOrchestrator(config, memory_store)
        report = restarted.status()

        assert report.recovery is not None
        assert report.recovery.answered_ratio == "0/5"
        assert report.recovery.pending == 5
        assert report.recovery.presented_question_ids == PRESENTED
        assert report.session.awaiting_response

    def test_resume_lists_open_questions(self, digested):
        digested.questions()

        summary, questions = digested.resume()

        assert summary.session_id == digested.active_session_id()
        assert [q.id for q in questions] == PRESENTED

    def test_answer_clears_interruption(self, digested):
        digested.questions()
        digested.status()

        digested.answer(DASHBOARD_ANSWERS)
        report = digested.status()

        assert report.recovery is None
        assert not report.session.awaiting_response
        assert report.questions_answered == 5

    def test_recent_answers_in_summary(self, digested):
        """Test a partial answer followed by a new batch shows what was answered."""
        digested.questions()
        digested.answer("1. Order number, date and total")
        digested.questions()

        summary, questions = digested.resume()

        assert summary.answered_ratio == "1/5"
        assert summary.recent_answers == [
            {"question_id": "q_001", "answer": "Order number, date and total"}
        ]
        assert [q.id for q in questions] == PRESENTED[1:]


class TestPersistence:
    """Tests for state on disk."""

    def test_state_survives_restart(self, tmp_path, transcript_file):
        config = make_config(backend="json", state_dir=str(tmp_path / "state"))
        first = DigestOrchestrator(config)
        session_id = first.new(str(transcript_file)).session.id
        first.pass2()

        second = DigestOrchestrator(config)

        assert second.active_session_id() == session_id
        assert second.status().session.is_completed(Phase.ASSOCIATION)
        assert (tmp_path / "state" / "sessions" / session_id / "statements.json").exists()
