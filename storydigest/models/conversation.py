"""
Conversation / checkpoint log models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class InteractionType(str, Enum):
    SESSION_CREATED = "session_created"
    PHASE_COMPLETED = "phase_completed"
    QUESTIONS_PRESENTED = "questions_presented"
    ANSWER_RECEIVED = "answer_received"
    STORY_DECISION = "story_decision"
    CHECKPOINT = "checkpoint"


class Interaction(BaseModel):
    type: InteractionType
    timestamp: datetime = Field(default_factory=datetime.now)
    data: dict[str, Any] = Field(default_factory=dict)


class Checkpoint(BaseModel):
    name: str
    phase: str
    created_at: datetime = Field(default_factory=datetime.now)


class ConversationLog(BaseModel):
    """Persisted conversation and checkpoint log."""

    interactions: list[Interaction] = Field(default_factory=list)
    checkpoints: list[Checkpoint] = Field(default_factory=list)

    def record(self, interaction_type: InteractionType, **data: Any) -> Interaction:
        interaction = Interaction(type=interaction_type, data=data)
        self.interactions.append(interaction)
        return interaction

    def last(self) -> Interaction | None:
        return self.interactions[-1] if self.interactions else None

    def last_of(self, interaction_type: InteractionType) -> Interaction | None:
        for interaction in reversed(self.interactions):
            if interaction.type == interaction_type:
                return interaction
        return None


class RecoverySummary(BaseModel):
    """Surfaced when a session was interrupted while questions were open."""

    session_id: str
    awaiting_response: bool = True
    answered: int = 0
    pending: int = 0
    answered_ratio: str = "0/0"
    presented_question_ids: list[str] = Field(default_factory=list)
    recent_answers: list[dict[str, str]] = Field(default_factory=list)
    presented_at: datetime | None = None
    elapsed_seconds: float = 0.0
