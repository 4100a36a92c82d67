"""Traceability matrix, coverage validation and complexity."""

from storydigest.config import StoryConfig
from storydigest.models.story import (
    AcceptanceCriterion,
    Complexity,
    Story,
    StoryValidation,
    TraceabilityEntry,
)

PRIORITY_BY_COMPLEXITY = {
    Complexity.HIGH: "P1",
    Complexity.MEDIUM: "P2",
    Complexity.LOW: "P3",
}


def build_traceability(criteria: list[AcceptanceCriterion]) -> list[TraceabilityEntry]:
    """Flatten criteria into {criterion, clause, source, source_type} rows."""
    return [
        TraceabilityEntry(
            criterion=criterion.id,
            clause=name,
            source=clause.source,
            source_type=clause.source_type,
        )
        for criterion in criteria
        for name, clause in criterion.clauses()
    ]


def validate_story(story: Story, requirement_ids: list[str] | None = None) -> StoryValidation:
    """
    Coverage and assumption checks.

    Coverage is the share of requirement statements referenced by at least
    one criterion (100 when the topic has none). Uncovered requirements
    fail validation without blocking generation; criteria with no
    traceable clause are flagged as assumptions.
    """
    requirement_ids = requirement_ids if requirement_ids is not None else story.requirement_statement_ids
    referenced: set[str] = set()
    for criterion in story.criteria:
        referenced |= criterion.statement_sources()

    uncovered = [sid for sid in requirement_ids if sid not in referenced]
    covered = len(requirement_ids) - len(uncovered)
    coverage = round(covered / len(requirement_ids) * 100, 1) if requirement_ids else 100.0
    assumptions = [c.id for c in story.criteria if c.is_assumption()]

    warnings: list[str] = []
    if uncovered:
        warnings.append(
            f"Coverage {coverage}%: {len(uncovered)} requirement statement(s) not referenced "
            f"by any criterion ({', '.join(uncovered)})"
        )
    for criterion_id in assumptions:
        warnings.append(f"Criterion {criterion_id} has no traceable source and is an assumption")

    return StoryValidation(
        passed=not uncovered,
        coverage=coverage,
        uncovered_statement_ids=uncovered,
        assumption_criterion_ids=assumptions,
        warnings=warnings,
    )


def complexity_of(story: Story, config: StoryConfig | None = None) -> Complexity:
    config = config or StoryConfig()
    count = len(story.criteria)
    if count >= config.high_complexity_criteria:
        return Complexity.HIGH
    if count >= config.medium_complexity_criteria:
        return Complexity.MEDIUM
    return Complexity.LOW


def refresh(story: Story, config: StoryConfig | None = None) -> Story:
    """Recompute traceability, validation, coverage and complexity in place."""
    story.traceability = build_traceability(story.criteria)
    story.validation = validate_story(story)
    story.coverage = story.validation.coverage
    story.complexity = complexity_of(story, config)
    return story
