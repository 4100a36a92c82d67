"""
Contradiction models.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ContradictionType(str, Enum):
    """Kind of conflict between two statements."""

    OPPOSITE_VALUES = "opposite_values"
    NUMERIC_CONFLICT = "numeric_conflict"


class ContradictionState(str, Enum):
    """Resolution state."""

    PENDING = "pending"
    AUTO_RESOLVED = "auto_resolved"
    CLARIFICATION_NEEDED = "clarification_needed"
    NOT_CONTRADICTION = "not_contradiction"
    USER_RESOLVED = "user_resolved"


class ResolutionChoice(str, Enum):
    """Which side of the pair survives."""

    KEEP_FIRST = "keep_first"
    KEEP_SECOND = "keep_second"
    KEEP_BOTH = "keep_both"


class Contradiction(BaseModel):
    """A pair of same-topic statements matching an opposite pattern."""

    id: str
    topic_id: str
    first_id: str = Field(..., description="Earlier statement")
    second_id: str = Field(..., description="Later statement")
    type: ContradictionType
    attribute: str = Field(..., description="Contested values, e.g. 'left/right'")
    values: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    signals: list[str] = Field(default_factory=list)
    state: ContradictionState = ContradictionState.PENDING
    resolution: ResolutionChoice | None = None
    winner_id: str | None = None
    question_id: str | None = None

    @property
    def pair(self) -> tuple[str, str]:
        return (self.first_id, self.second_id)


class ContradictionSet(BaseModel):
    """Persisted contradiction document."""

    contradictions: list[Contradiction] = Field(default_factory=list)

    def get(self, contradiction_id: str) -> Contradiction | None:
        return next((c for c in self.contradictions if c.id == contradiction_id), None)

    def known_pairs(self) -> set[frozenset[str]]:
        return {frozenset(c.pair) for c in self.contradictions}
