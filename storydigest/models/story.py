"""
Story, acceptance criteria and traceability models.

Every clause of every acceptance criterion carries the id of the statement
or question it came from, or one of the non-traceable markers
(``manual``, ``context``, ``inferred``).
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """What a clause source id refers to."""

    STATEMENT = "statement"
    CLARIFICATION = "clarification"
    MANUAL = "manual"
    CONTEXT = "context"
    INFERRED = "inferred"


NON_TRACEABLE = frozenset({SourceType.MANUAL, SourceType.CONTEXT, SourceType.INFERRED})


class TaggedValue(BaseModel):
    """Story triple component tagged with its origin."""

    value: str
    source: str = Field(default="inferred", description="Statement/question id, manual or inferred")


class UserStoryTriple(BaseModel):
    """As a <role>, I want <action>, so that <benefit>."""

    role: TaggedValue
    action: TaggedValue
    benefit: TaggedValue

    def render(self) -> str:
        return (
            f"As a {self.role.value}, I want to {self.action.value}, "
            f"so that {self.benefit.value}."
        )


class Clause(BaseModel):
    """One Given/When/Then clause."""

    text: str
    source: str
    source_type: SourceType

    @property
    def traceable(self) -> bool:
        return self.source_type not in NON_TRACEABLE


class AcceptanceCriterion(BaseModel):
    """Given/When/Then criterion."""

    id: str
    given: Clause
    when: Clause
    then: Clause
    origin: str = Field(default="statement", description="statement, clarification or manual")

    def clauses(self) -> list[tuple[str, Clause]]:
        return [("given", self.given), ("when", self.when), ("then", self.then)]

    def statement_sources(self) -> set[str]:
        return {
            clause.source
            for _, clause in self.clauses()
            if clause.source_type == SourceType.STATEMENT
        }

    def is_assumption(self) -> bool:
        """True when no clause traces back to a statement or question."""
        return all(not clause.traceable for _, clause in self.clauses())

    def render(self) -> str:
        return f"Given {self.given.text}, when {self.when.text}, then {self.then.text}"


class TraceabilityEntry(BaseModel):
    """Flattened criterion -> source row."""

    criterion: str
    clause: str
    source: str
    source_type: SourceType


class StoryValidation(BaseModel):
    """Coverage validation outcome (never blocks generation)."""

    passed: bool = True
    coverage: float = 100.0
    uncovered_statement_ids: list[str] = Field(default_factory=list)
    assumption_criterion_ids: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Story(BaseModel):
    """User story generated from one topic."""

    id: str
    topic_id: str
    title: str
    triple: UserStoryTriple
    criteria: list[AcceptanceCriterion] = Field(default_factory=list)
    traceability: list[TraceabilityEntry] = Field(default_factory=list)
    requirement_statement_ids: list[str] = Field(default_factory=list)
    coverage: float = 100.0
    validation: StoryValidation = Field(default_factory=StoryValidation)
    complexity: Complexity = Complexity.LOW
    revision: int = 1
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class StorySet(BaseModel):
    """Persisted story document."""

    stories: list[Story] = Field(default_factory=list)

    def get(self, story_id: str) -> Story | None:
        return next((s for s in self.stories if s.id == story_id), None)

    def replace(self, story: Story) -> None:
        self.stories = [story if s.id == story.id else s for s in self.stories]


class CriterionEdit(BaseModel):
    """Criterion to add or clauses to change (None leaves a clause unchanged)."""

    id: str | None = None
    given: str | None = None
    when: str | None = None
    then: str | None = None


class StoryEdit(BaseModel):
    """One edit session committed atomically."""

    role: str | None = None
    action: str | None = None
    benefit: str | None = None
    title: str | None = None
    add_criteria: list[CriterionEdit] = Field(default_factory=list)
    update_criteria: list[CriterionEdit] = Field(default_factory=list)
    remove_criteria: list[str] = Field(default_factory=list)
