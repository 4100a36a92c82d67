"""
Session Manager - durable multi-session registry and phase bookkeeping.

Many sessions may exist; exactly one is active. Every phase function
receives an explicit SessionHandle instead of reading a global pointer,
so the pointer is only consulted at the command surface.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from storydigest.core.store import DocumentStore
from storydigest.core.store.base import (
    ACTIVE_SESSION,
    CLARIFICATIONS,
    CONVERSATION,
    REGISTRY,
    SESSION,
)
from storydigest.models.clarification import ClarificationSet
from storydigest.models.conversation import (
    Checkpoint,
    ConversationLog,
    InteractionType,
    RecoverySummary,
)
from storydigest.models.session import (
    ActiveSessionPointer,
    Phase,
    Session,
    SessionRegistry,
    SessionStatus,
)
from storydigest.utils.exceptions import (
    NoActiveSessionError,
    OverrideRequiredError,
    SessionNotFoundError,
)
from storydigest.utils.id_generator import generate_session_id
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

RECENT_ANSWERS = 3


class SessionHandle(BaseModel):
    """Explicit reference to the session a phase operates on."""

    model_config = ConfigDict(frozen=True)

    session_id: str


class SessionManager:
    """Registry, active pointer, phase transitions and conversation log."""

    def __init__(self, store: DocumentStore):
        """
        Initialize session manager.

        Args:
            store: Document store holding registry and session documents
        """
        self.store = store

    # ═══════════════════════════════════════════════════════════
    # REGISTRY
    # ═══════════════════════════════════════════════════════════

    def registry(self) -> SessionRegistry:
        return self.store.load_or_default(REGISTRY, SessionRegistry)

    def load(self, handle: SessionHandle) -> Session:
        session = self.store.load(SESSION, Session, handle.session_id)
        if session is None:
            raise SessionNotFoundError(handle.session_id)
        return session

    def save(self, session: Session) -> None:
        """Write the session document and mirror it into the registry."""
        session.updated_at = datetime.now()
        self.store.save(SESSION, session, session.id)
        registry = self.registry()
        registry.upsert(session)
        self.store.save(REGISTRY, registry)

    def create(self, source: str) -> tuple[SessionHandle, Session]:
        """
        Create a session and make it the active one.

        The previously active session is demoted to in_progress.
        """
        session = Session(id=generate_session_id())
        session.input.source = source
        self._demote_active()
        self.save(session)
        self.store.save(ACTIVE_SESSION, ActiveSessionPointer(session_id=session.id))

        log = ConversationLog()
        log.record(InteractionType.SESSION_CREATED, source=source)
        self.store.save(CONVERSATION, log, session.id)
        logger.info(f"Created session {session.id} from {source}")
        return SessionHandle(session_id=session.id), session

    def active_handle(self) -> SessionHandle | None:
        pointer = self.store.load(ACTIVE_SESSION, ActiveSessionPointer)
        if pointer is None or pointer.session_id is None:
            return None
        return SessionHandle(session_id=pointer.session_id)

    def require_active(self) -> SessionHandle:
        """
        Active session handle.

        Raises:
            NoActiveSessionError: No session has been created or switched to
        """
        handle = self.active_handle()
        if handle is None or handle.session_id not in self.registry().sessions:
            raise NoActiveSessionError()
        return handle

    def resolve(self, session_id: str | None = None) -> SessionHandle:
        """Handle for an explicit session id, or the active session."""
        if session_id is None:
            return self.require_active()
        if session_id not in self.registry().sessions:
            raise SessionNotFoundError(session_id)
        return SessionHandle(session_id=session_id)

    def _demote_active(self) -> None:
        current = self.active_handle()
        if current is None:
            return
        session = self.store.load(SESSION, Session, current.session_id)
        if session is not None and session.status == SessionStatus.ACTIVE:
            session.status = SessionStatus.IN_PROGRESS
            self.save(session)

    def switch(self, session_id: str) -> Session:
        """Make another session active, demoting the current one."""
        handle = self.resolve(session_id)
        session = self.load(handle)
        if session.status == SessionStatus.ARCHIVED:
            logger.warning(f"Switching to archived session {session_id}")
        self._demote_active()
        if session.status in (SessionStatus.IN_PROGRESS, SessionStatus.ACTIVE):
            session.status = SessionStatus.ACTIVE
        self.save(session)
        self.store.save(ACTIVE_SESSION, ActiveSessionPointer(session_id=session.id))
        logger.info(f"Switched to session {session.id}")
        return session

    def archive(self, session_id: str | None = None) -> Session:
        handle = self.resolve(session_id)
        session = self.load(handle)
        session.status = SessionStatus.ARCHIVED
        self.save(session)
        self._clear_pointer_if(session.id)
        logger.info(f"Archived session {session.id}")
        return session

    def delete(self, session_id: str, force: bool = False) -> None:
        """
        Delete a session and all its documents.

        Raises:
            OverrideRequiredError: force was not given
            SessionNotFoundError: Unknown session id
        """
        registry = self.registry()
        if session_id not in registry.sessions:
            raise SessionNotFoundError(session_id)
        if not force:
            raise OverrideRequiredError(
                f"Deleting session {session_id} is irreversible; pass --force to confirm.",
                context={"session_id": session_id},
            )
        self.store.delete_session(session_id)
        del registry.sessions[session_id]
        self.store.save(REGISTRY, registry)
        self._clear_pointer_if(session_id)
        logger.info(f"Deleted session {session_id}")

    def _clear_pointer_if(self, session_id: str) -> None:
        current = self.active_handle()
        if current is not None and current.session_id == session_id:
            self.store.save(ACTIVE_SESSION, ActiveSessionPointer(session_id=None))

    # ═══════════════════════════════════════════════════════════
    # PHASES
    # ═══════════════════════════════════════════════════════════

    @contextmanager
    def phase(self, handle: SessionHandle, phase: Phase) -> Iterator[Session]:
        """
        Run a phase inside the state machine.

        The phase is marked in_progress before the body runs. The body must
        save its documents; on success the phase is completed and
        phase_completed is logged, on error the phase is marked failed and
        the error propagates.
        """
        session = self.load(handle)
        session.start_phase(phase)
        self.save(session)
        logger.info(f"[{handle.session_id}] {phase.value} started")
        try:
            yield session
        except Exception as e:
            session.fail_phase(phase, str(e))
            self.save(session)
            logger.error(f"[{handle.session_id}] {phase.value} failed: {e}")
            raise
        summary = session.phases[phase].summary
        session.complete_phase(phase, summary)
        self.save(session)
        self.log(handle, InteractionType.PHASE_COMPLETED, phase=phase.value, summary=summary)
        logger.info(f"[{handle.session_id}] {phase.value} completed")

    # ═══════════════════════════════════════════════════════════
    # CONVERSATION LOG
    # ═══════════════════════════════════════════════════════════

    def conversation(self, handle: SessionHandle) -> ConversationLog:
        return self.store.load_or_default(CONVERSATION, ConversationLog, session_id=handle.session_id)

    def log(self, handle: SessionHandle, interaction_type: InteractionType, **data) -> None:
        log = self.conversation(handle)
        log.record(interaction_type, **data)
        self.store.save(CONVERSATION, log, handle.session_id)

    def checkpoint(self, handle: SessionHandle, name: str) -> Checkpoint:
        session = self.load(handle)
        log = self.conversation(handle)
        checkpoint = Checkpoint(name=name, phase=session.phase.value)
        log.checkpoints.append(checkpoint)
        log.record(InteractionType.CHECKPOINT, name=name, phase=session.phase.value)
        self.store.save(CONVERSATION, log, handle.session_id)
        logger.info(f"[{handle.session_id}] checkpoint '{name}' at {session.phase.value}")
        return checkpoint

    def detect_interruption(self, handle: SessionHandle) -> RecoverySummary | None:
        """
        Recovery summary when the session stopped while questions were open.

        Interrupted means the last interaction is questions_presented with
        no later answer. The session is flagged awaiting_response.
        """
        log = self.conversation(handle)
        last = log.last()
        if last is None or last.type != InteractionType.QUESTIONS_PRESENTED:
            return None

        session = self.load(handle)
        if not session.awaiting_response:
            session.awaiting_response = True
            self.save(session)

        clarifications = self.store.load_or_default(
            CLARIFICATIONS, ClarificationSet, session_id=handle.session_id
        )
        answered = clarifications.answered()
        total = len(clarifications.questions)
        recent = sorted(
            (q for q in answered if q.answered_at is not None),
            key=lambda q: q.answered_at,
        )[-RECENT_ANSWERS:]

        summary = RecoverySummary(
            session_id=handle.session_id,
            answered=len(answered),
            pending=len(clarifications.pending()),
            answered_ratio=f"{len(answered)}/{total}",
            presented_question_ids=list(last.data.get("question_ids", [])),
            recent_answers=[{"question_id": q.id, "answer": q.answer or ""} for q in recent],
            presented_at=last.timestamp,
            elapsed_seconds=round((datetime.now() - last.timestamp).total_seconds(), 1),
        )
        logger.warning(
            f"[{handle.session_id}] interrupted while awaiting answers "
            f"({summary.answered_ratio} answered, {summary.elapsed_seconds}s ago)"
        )
        return summary
