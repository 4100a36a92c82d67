"""
Clarification question models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Why the question was asked."""

    COMPLETENESS = "completeness"
    SPECIFICITY = "specificity"
    FOLLOWUP = "followup"
    CONTRADICTION = "contradiction"
    AMBIGUOUS_TOPIC = "ambiguous_topic"


class QuestionStatus(str, Enum):
    PENDING = "pending"
    ANSWERED = "answered"


class Priority(str, Enum):
    """P1 missing core detail, P2 secondary, P3 polish."""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class ClarificationQuestion(BaseModel):
    """System-generated question seeking a missing or vague detail."""

    id: str
    type: QuestionType
    topic_id: str
    statement_id: str | None = None
    entity: str | None = None
    detail: str | None = None
    priority: Priority = Priority.P2
    status: QuestionStatus = QuestionStatus.PENDING
    text: str
    options: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    language: str = "en"

    answer: str | None = None
    answer_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    answered_at: datetime | None = None
    derived_statement_id: str | None = None

    followup_key: str | None = None
    contradiction_id: str | None = None
    candidate_topic_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_pending(self) -> bool:
        return self.status == QuestionStatus.PENDING


class PreAnsweredDetail(BaseModel):
    """A detail implied by an entity but already stated by a sibling statement."""

    topic_id: str
    entity: str
    detail: str
    statement_id: str


class ClarificationSet(BaseModel):
    """Persisted clarification document."""

    questions: list[ClarificationQuestion] = Field(default_factory=list)
    pre_answered: list[PreAnsweredDetail] = Field(default_factory=list)
    presented_ids: list[str] = Field(
        default_factory=list, description="Ids in the last presented batch"
    )
    generated: bool = False

    def get(self, question_id: str) -> ClarificationQuestion | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def pending(self) -> list[ClarificationQuestion]:
        return [q for q in self.questions if q.is_pending]

    def answered(self) -> list[ClarificationQuestion]:
        return [q for q in self.questions if q.status == QuestionStatus.ANSWERED]

    def for_topic(self, topic_id: str) -> list[ClarificationQuestion]:
        return [q for q in self.questions if q.topic_id == topic_id]
