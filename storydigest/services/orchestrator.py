"""
Digest Orchestrator - unified command surface over the digestion pipeline.

Brings together:
- Session registry and phase state machine
- Digestion passes (ingestion, extraction, association, resolution)
- Clarification loop
- Story generation, editing and approval queue

Every command resolves an explicit SessionHandle once and passes it down.
Before new work on a session, interruption is checked: if the session
stopped while questions were open, a RecoverySummary is kept in
``recovery`` for the caller to surface.
"""

from typing import TextIO

from pydantic import BaseModel, Field

from storydigest.config import Config
from storydigest.core.normalizer import read_input
from storydigest.core.resolution import OrphanReport
from storydigest.core.store import DocumentStore, create_store
from storydigest.models.clarification import ClarificationQuestion
from storydigest.models.contradiction import ContradictionSet
from storydigest.models.conversation import Checkpoint, RecoverySummary
from storydigest.models.queue import PresentationStatus
from storydigest.models.session import Phase, RegistryEntry, Session
from storydigest.models.statement import CoverageReport
from storydigest.models.story import Story, StoryEdit, StorySet
from storydigest.services.approval import ApprovalQueue, FinalizeResult
from storydigest.services.clarification_loop import AnswerResult, ClarificationLoop
from storydigest.services.pipeline import DigestPipeline
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.services.stories import StoryService
from storydigest.utils.exceptions import ValidationError
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)


class IngestResult(BaseModel):
    """Outcome of `new`."""

    session: Session
    topics: int = 0
    statements: int = 0
    meaningful: int = 0
    chunks: int = 0


class StatusReport(BaseModel):
    """Snapshot of a session for `status`."""

    session: Session
    coverage: CoverageReport
    topics: int = 0
    contradictions: dict[str, int] = Field(default_factory=dict)
    questions_pending: int = 0
    questions_answered: int = 0
    stories: int = 0
    review: dict[str, int] = Field(default_factory=dict)
    recovery: RecoverySummary | None = None


class DigestOrchestrator:
    """
    Unified digest engine.

    Features:
    - Multi-session registry with one active session
    - Resumable phase state machine
    - Interruption detection with recovery summary
    - Fail-fast prerequisite checks naming the command to run
    """

    def __init__(self, config: Config | None = None, store: DocumentStore | None = None):
        """
        Initialize orchestrator.

        Args:
            config: Configuration (defaults if omitted)
            store: Document store (created from config.storage when omitted)
        """
        self.config = config or Config()
        self.store = store or create_store(self.config.storage)
        self.sessions = SessionManager(self.store)
        self.pipeline = DigestPipeline(self.store, self.sessions, self.config)
        self.clarification = ClarificationLoop(self.store, self.sessions, self.config)
        self.story_service = StoryService(self.store, self.sessions, self.config)
        self.approval = ApprovalQueue(self.store, self.sessions)
        self.recovery: RecoverySummary | None = None

    def _enter(self, session_id: str | None = None, check_interruption: bool = True) -> SessionHandle:
        handle = self.sessions.resolve(session_id)
        self.recovery = self.sessions.detect_interruption(handle) if check_interruption else None
        return handle

    # ═══════════════════════════════════════════════════════════
    # INGESTION + PASSES
    # ═══════════════════════════════════════════════════════════

    def new(self, source: str, stdin: TextIO | None = None) -> IngestResult:
        """
        Create a session from a file path or '-' and run ingestion and pass 1.

        Raises:
            ValidationError: Missing file or empty input
        """
        raw = read_input(source, stdin)
        if not raw.strip():
            raise ValidationError("Input is empty", context={"source": source})
        handle, _ = self.sessions.create(source)
        self.recovery = None
        self.pipeline.ingest(handle, raw)
        topic_set, statement_map = self.pipeline.extract(handle)
        session = self.sessions.load(handle)
        logger.info(
            f"Session {session.id} ready: {len(topic_set.topics)} topics, "
            f"{len(statement_map.statements)} statements"
        )
        return IngestResult(
            session=session,
            topics=len(topic_set.topics),
            statements=len(statement_map.statements),
            meaningful=len(statement_map.meaningful()),
            chunks=session.phases[Phase.INGESTION].summary.get("chunks", 0),
        )

    def pass2(self, session_id: str | None = None) -> CoverageReport:
        return self.pipeline.associate(self._enter(session_id))

    def pass3(self, session_id: str | None = None) -> OrphanReport:
        return self.pipeline.resolve_orphans(self._enter(session_id))

    def pass4(self, session_id: str | None = None) -> ContradictionSet:
        return self.pipeline.resolve_contradictions(self._enter(session_id))

    # ═══════════════════════════════════════════════════════════
    # CLARIFICATION
    # ═══════════════════════════════════════════════════════════

    def questions(self, session_id: str | None = None) -> list[ClarificationQuestion]:
        """Generate (first time) and present the next batch of questions."""
        return self.clarification.present(self._enter(session_id))

    def answer(
        self, text: str, voice: bool | None = None, session_id: str | None = None
    ) -> AnswerResult:
        handle = self._enter(session_id, check_interruption=False)
        return self.clarification.answer(handle, text, voice)

    # ═══════════════════════════════════════════════════════════
    # STORIES + REVIEW
    # ═══════════════════════════════════════════════════════════

    def generate_stories(self, session_id: str | None = None) -> StorySet:
        return self.story_service.generate(self._enter(session_id))

    def stories(self, session_id: str | None = None) -> StorySet:
        return self.story_service.stories(self._enter(session_id))

    def story(self, story_id: str, session_id: str | None = None) -> Story:
        return self.story_service.get(self._enter(session_id), story_id)

    def edit_story(self, story_id: str, edit: StoryEdit, session_id: str | None = None) -> Story:
        return self.story_service.edit(self._enter(session_id), story_id, edit)

    def present(self, session_id: str | None = None) -> Story | None:
        return self.approval.present(self._enter(session_id))

    def approve(self, session_id: str | None = None) -> str:
        return self.approval.approve(self._enter(session_id))

    def reject(self, reason: str, session_id: str | None = None) -> str:
        return self.approval.reject(self._enter(session_id), reason)

    def skip(self, session_id: str | None = None) -> str:
        return self.approval.skip(self._enter(session_id))

    def finalize(self, force: bool = False, session_id: str | None = None) -> FinalizeResult:
        return self.approval.finalize(self._enter(session_id), force)

    # ═══════════════════════════════════════════════════════════
    # SESSIONS
    # ═══════════════════════════════════════════════════════════

    def list_sessions(self) -> list[RegistryEntry]:
        registry = self.sessions.registry()
        return sorted(registry.sessions.values(), key=lambda entry: entry.created_at)

    def active_session_id(self) -> str | None:
        handle = self.sessions.active_handle()
        return handle.session_id if handle else None

    def switch(self, session_id: str) -> Session:
        session = self.sessions.switch(session_id)
        self.recovery = self.sessions.detect_interruption(SessionHandle(session_id=session.id))
        return session

    def archive(self, session_id: str | None = None) -> Session:
        return self.sessions.archive(session_id)

    def delete(self, session_id: str, force: bool = False) -> None:
        self.sessions.delete(session_id, force)

    def checkpoint(self, name: str, session_id: str | None = None) -> Checkpoint:
        return self.sessions.checkpoint(self._enter(session_id), name)

    def resume(self, session_id: str | None = None) -> tuple[RecoverySummary | None, list[ClarificationQuestion]]:
        """
        Recovery summary plus the questions that were open when interrupted.

        Returns:
            (summary or None when not interrupted, still-pending presented questions)
        """
        handle = self._enter(session_id)
        if self.recovery is None:
            return None, []
        clarifications = self.clarification.clarifications(handle)
        open_questions = [
            q
            for qid in clarifications.presented_ids
            if (q := clarifications.get(qid)) is not None and q.is_pending
        ]
        return self.recovery, open_questions

    def status(self, session_id: str | None = None) -> StatusReport:
        handle = self._enter(session_id)
        contradictions: dict[str, int] = {}
        for contradiction in self.pipeline.contradictions(handle).contradictions:
            state = contradiction.state.value
            contradictions[state] = contradictions.get(state, 0) + 1
        clarifications = self.clarification.clarifications(handle)
        queue = self.approval.queue(handle)
        review = {status.value: len(queue.with_status(status)) for status in PresentationStatus}
        return StatusReport(
            session=self.sessions.load(handle),
            coverage=self.pipeline.coverage(handle),
            topics=len(self.pipeline.topics(handle).active()),
            contradictions=contradictions,
            questions_pending=len(clarifications.pending()),
            questions_answered=len(clarifications.answered()),
            stories=len(self.story_service.stories(handle).stories),
            review=review,
            recovery=self.recovery,
        )

