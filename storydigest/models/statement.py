"""
Statement models and coverage accounting.

A Statement is one atomic extracted sentence, the unit of traceability.
A meaningful statement with no topic is an orphan.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class StatementSource(str, Enum):
    """Where the statement came from."""

    TRANSCRIPT = "transcript"
    CLARIFICATION = "clarification"


class AssociationKind(str, Enum):
    """How a statement got its topic."""

    DIRECT = "direct"
    CONTINUITY = "continuity"
    SEMANTIC_EXPANSION = "semantic_expansion"
    CLUSTER = "cluster"
    CATCH_ALL = "catch_all"
    CLARIFICATION = "clarification"


class Statement(BaseModel):
    """Atomic extracted sentence."""

    id: str = Field(..., description="Statement ID (stmt_NNNN)")
    text: str
    position: int = Field(default=0, ge=0)
    timestamp_ms: int | None = None
    speaker: str | None = None
    meaningful: bool = True
    requirement: bool = False
    source: StatementSource = StatementSource.TRANSCRIPT
    question_id: str | None = None

    topic_id: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    association: AssociationKind | None = None
    ambiguous: bool = False
    candidate_topic_ids: list[str] = Field(default_factory=list)

    superseded: bool = False
    superseded_by: str | None = None
    supersedes: str | None = None

    @model_validator(mode="after")
    def _filler_has_no_topic(self) -> "Statement":
        if not self.meaningful and self.topic_id is not None:
            raise ValueError("non-meaningful statement cannot belong to a topic")
        return self

    @property
    def is_orphan(self) -> bool:
        return self.meaningful and self.topic_id is None

    @property
    def is_active(self) -> bool:
        return self.meaningful and not self.superseded

    def assign(self, topic_id: str, confidence: float, kind: AssociationKind) -> None:
        self.topic_id = topic_id
        self.confidence = round(min(max(confidence, 0.0), 1.0), 2)
        self.association = kind


class CoverageReport(BaseModel):
    """Mapped/orphan counts over meaningful statements."""

    meaningful: int = 0
    mapped: int = 0
    orphans: int = 0
    coverage_percentage: float = 100.0


class StatementMap(BaseModel):
    """Persisted statement document."""

    statements: list[Statement] = Field(default_factory=list)

    def get(self, statement_id: str) -> Statement | None:
        return next((s for s in self.statements if s.id == statement_id), None)

    def meaningful(self) -> list[Statement]:
        return [s for s in self.statements if s.meaningful]

    def orphans(self) -> list[Statement]:
        return [s for s in self.statements if s.is_orphan]

    def for_topic(self, topic_id: str) -> list[Statement]:
        return [s for s in self.statements if s.topic_id == topic_id]

    def coverage(self) -> CoverageReport:
        return compute_coverage(self.statements)


def compute_coverage(statements: list[Statement]) -> CoverageReport:
    """
    Coverage of meaningful statements by topics.

    coverage_percentage is round(mapped / meaningful * 100, 1); an input
    with no meaningful statements has nothing left to map and reports 100.
    """
    meaningful = [s for s in statements if s.meaningful]
    mapped = sum(1 for s in meaningful if s.topic_id is not None)
    total = len(meaningful)
    percentage = round(mapped / total * 100, 1) if total else 100.0
    return CoverageReport(
        meaningful=total,
        mapped=mapped,
        orphans=total - mapped,
        coverage_percentage=percentage,
    )
