"""
Session, phase and registry models.

A Session is one digestion run over a single transcript. The registry is a
durable index of every session plus the id of the single active one.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from storydigest.models.input import ContentType, SourceFormat


class SessionStatus(str, Enum):
    """Session lifecycle status."""

    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Phase(str, Enum):
    """Pipeline phases in execution order."""

    INGESTION = "ingestion"
    EXTRACTION = "extraction"
    ASSOCIATION = "association"
    ORPHAN_RESOLUTION = "orphan_resolution"
    CONTRADICTION_RESOLUTION = "contradiction_resolution"
    CLARIFICATION = "clarification"
    STORY_GENERATION = "story_generation"
    REVIEW = "review"
    FINALIZED = "finalized"

    @classmethod
    def ordered(cls) -> list["Phase"]:
        return list(cls)


class PhaseState(str, Enum):
    """Status of a single phase."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class PhaseRecord(BaseModel):
    """Per-phase status record."""

    state: PhaseState = PhaseState.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    runs: int = 0
    summary: dict = Field(default_factory=dict)


class InputMetadata(BaseModel):
    """What was ingested."""

    source: str = Field(default="-", description="File path or '-' for stdin")
    source_format: SourceFormat = SourceFormat.PLAIN_TEXT
    content_type: ContentType = ContentType.UNKNOWN
    language: str = "unknown"
    language_confidence: float = 0.0
    word_count: int = 0
    token_count: int = 0
    char_count: int = 0
    chunked: bool = False


class Session(BaseModel):
    """One digestion run."""

    id: str = Field(..., description="Unique session ID (sess_xxx)")
    status: SessionStatus = SessionStatus.ACTIVE
    phase: Phase = Phase.INGESTION
    phases: dict[Phase, PhaseRecord] = Field(
        default_factory=lambda: {phase: PhaseRecord() for phase in Phase}
    )
    input: InputMetadata = Field(default_factory=InputMetadata)
    awaiting_response: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def is_completed(self, phase: Phase) -> bool:
        """True once the phase has committed at least once."""
        record = self.phases.get(phase)
        return record is not None and record.state == PhaseState.COMPLETED

    def start_phase(self, phase: Phase) -> None:
        record = self.phases.setdefault(phase, PhaseRecord())
        record.state = PhaseState.IN_PROGRESS
        record.started_at = datetime.now()
        record.runs += 1
        self.phase = phase
        self.updated_at = datetime.now()

    def complete_phase(self, phase: Phase, summary: dict | None = None) -> None:
        record = self.phases.setdefault(phase, PhaseRecord())
        record.state = PhaseState.COMPLETED
        record.completed_at = datetime.now()
        if summary is not None:
            record.summary = summary
        self.phase = phase
        self.updated_at = datetime.now()

    def fail_phase(self, phase: Phase, reason: str) -> None:
        record = self.phases.setdefault(phase, PhaseRecord())
        record.state = PhaseState.FAILED
        record.summary = {"error": reason}
        self.updated_at = datetime.now()


class RegistryEntry(BaseModel):
    """Registry row for one session."""

    session_id: str
    status: SessionStatus
    phase: Phase
    source: str = "-"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class SessionRegistry(BaseModel):
    """Durable multi-session registry."""

    sessions: dict[str, RegistryEntry] = Field(default_factory=dict)

    def upsert(self, session: Session) -> None:
        self.sessions[session.id] = RegistryEntry(
            session_id=session.id,
            status=session.status,
            phase=session.phase,
            source=session.input.source,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class ActiveSessionPointer(BaseModel):
    """Pointer document naming the active session."""

    session_id: str | None = None
    switched_at: datetime = Field(default_factory=datetime.now)
