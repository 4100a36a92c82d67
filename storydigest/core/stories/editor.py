"""
Story edit sessions.

An edit is validated as a whole and committed atomically: either every
change lands (revision bumped, traceability and validation recomputed) or
a StoryValidationError lists every offending field and the story is left
untouched.
"""

from datetime import datetime

from storydigest.config import StoryConfig
from storydigest.core.stories.validation import refresh
from storydigest.models.story import (
    AcceptanceCriterion,
    Clause,
    SourceType,
    Story,
    StoryEdit,
    TaggedValue,
)
from storydigest.utils.exceptions import StoryValidationError
from storydigest.utils.id_generator import generate_criterion_id
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

MANUAL = "manual"
CLAUSE_NAMES = ("given", "when", "then")


def _blank(value: str | None) -> bool:
    return value is not None and not value.strip()


def _criterion_number(criterion_id: str) -> int:
    tail = criterion_id.rsplit("_", 1)[-1]
    return int(tail) if tail.isdigit() else 0


class StoryEditor:
    """Applies StoryEdit commits to stories."""

    def __init__(self, config: StoryConfig | None = None):
        self.config = config or StoryConfig()

    def check(self, story: Story, edit: StoryEdit) -> list[dict[str, str]]:
        """Field-level errors the edit would cause (empty when it can be committed)."""
        errors: list[dict[str, str]] = []
        for name in ("role", "action", "benefit", "title"):
            if _blank(getattr(edit, name)):
                errors.append({"field": name, "message": f"{name} cannot be empty"})

        known = {criterion.id for criterion in story.criteria}
        for index, added in enumerate(edit.add_criteria):
            for clause in CLAUSE_NAMES:
                value = getattr(added, clause)
                if value is None or not value.strip():
                    errors.append(
                        {
                            "field": f"add_criteria[{index}].{clause}",
                            "message": f"{clause} clause is required",
                        }
                    )
        for index, updated in enumerate(edit.update_criteria):
            if updated.id not in known:
                errors.append(
                    {
                        "field": f"update_criteria[{index}].id",
                        "message": f"unknown criterion: {updated.id}",
                    }
                )
                continue
            for clause in CLAUSE_NAMES:
                if _blank(getattr(updated, clause)):
                    errors.append(
                        {
                            "field": f"update_criteria[{index}].{clause}",
                            "message": f"{clause} clause cannot be empty",
                        }
                    )
        for index, criterion_id in enumerate(edit.remove_criteria):
            if criterion_id not in known:
                errors.append(
                    {
                        "field": f"remove_criteria[{index}]",
                        "message": f"unknown criterion: {criterion_id}",
                    }
                )

        removed = set(edit.remove_criteria) & known
        if len(known - removed) + len(edit.add_criteria) == 0:
            errors.append(
                {"field": "criteria", "message": "a story needs at least one acceptance criterion"}
            )
        return errors

    def apply(self, story: Story, edit: StoryEdit) -> Story:
        """
        Commit an edit session.

        Args:
            story: Story to edit (not mutated when the edit is rejected)
            edit: Changes to commit

        Returns:
            New story revision with refreshed traceability and validation

        Raises:
            StoryValidationError: Required fields empty or last criterion removed
        """
        errors = self.check(story, edit)
        if errors:
            logger.warning(f"Rejected edit of {story.id}: {len(errors)} field error(s)")
            raise StoryValidationError(story.id, errors)

        edited = story.model_copy(deep=True)
        if edit.title is not None:
            edited.title = edit.title.strip()
        for name in ("role", "action", "benefit"):
            value = getattr(edit, name)
            if value is not None:
                setattr(edited.triple, name, TaggedValue(value=value.strip(), source=MANUAL))

        removed = set(edit.remove_criteria)
        edited.criteria = [c for c in edited.criteria if c.id not in removed]

        for updated in edit.update_criteria:
            criterion = next(c for c in edited.criteria if c.id == updated.id)
            for clause in CLAUSE_NAMES:
                value = getattr(updated, clause)
                if value is not None:
                    setattr(
                        criterion,
                        clause,
                        Clause(text=value.strip(), source=MANUAL, source_type=SourceType.MANUAL),
                    )

        number = max((_criterion_number(c.id) for c in story.criteria), default=0)
        for added in edit.add_criteria:
            number += 1
            edited.criteria.append(
                AcceptanceCriterion(
                    id=generate_criterion_id(story.id, number),
                    given=Clause(text=added.given.strip(), source=MANUAL, source_type=SourceType.MANUAL),
                    when=Clause(text=added.when.strip(), source=MANUAL, source_type=SourceType.MANUAL),
                    then=Clause(text=added.then.strip(), source=MANUAL, source_type=SourceType.MANUAL),
                    origin=MANUAL,
                )
            )

        edited.revision += 1
        edited.updated_at = datetime.now()
        refresh(edited, self.config)
        for warning in edited.validation.warnings:
            logger.warning(f"{edited.id}: {warning}")
        return edited
