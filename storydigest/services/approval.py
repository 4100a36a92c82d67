"""
Approval Queue - present / approve / reject / skip, and finalize.

Finalize hands approved stories to the global ready queue as structured
task records, deduplicated by originating story id.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from storydigest.core.store import DocumentStore
from storydigest.core.store.base import PRESENTATION, READY_QUEUE, STORIES
from storydigest.core.stories import PRIORITY_BY_COMPLEXITY
from storydigest.models.conversation import InteractionType
from storydigest.models.queue import (
    PresentationQueue,
    PresentationStatus,
    ReadyQueue,
    ReadyTask,
)
from storydigest.models.session import Phase, SessionStatus
from storydigest.models.story import Story, StorySet
from storydigest.services.pipeline import require_phase
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.utils.exceptions import OverrideRequiredError, PrerequisiteError, ValidationError
from storydigest.utils.id_generator import generate_task_id, next_index
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

DECISION_COMMANDS = {
    PresentationStatus.APPROVED: "approve",
    PresentationStatus.REJECTED: "reject",
    PresentationStatus.SKIPPED: "skip",
}


class FinalizeResult(BaseModel):
    """What finalize handed off."""

    task_ids: list[str] = Field(default_factory=list)
    duplicate_story_ids: list[str] = Field(default_factory=list)
    unresolved_story_ids: list[str] = Field(default_factory=list)


def story_to_task(story: Story, task_id: str, session_id: str) -> ReadyTask:
    description = story.triple.render()
    if story.validation.warnings:
        description += "\n\nWarnings:\n" + "\n".join(f"- {w}" for w in story.validation.warnings)
    return ReadyTask(
        id=task_id,
        title=story.title,
        priority=PRIORITY_BY_COMPLEXITY[story.complexity],
        description=description,
        acceptance_criteria=[criterion.render() for criterion in story.criteria],
        source_story_id=story.id,
        source_session_id=session_id,
    )


class ApprovalQueue:
    """Drives story review for a session."""

    def __init__(self, store: DocumentStore, sessions: SessionManager):
        self.store = store
        self.sessions = sessions

    def queue(self, handle: SessionHandle) -> PresentationQueue:
        return self.store.load_or_default(PRESENTATION, PresentationQueue, session_id=handle.session_id)

    def _stories(self, handle: SessionHandle) -> StorySet:
        return self.store.load_or_default(STORIES, StorySet, session_id=handle.session_id)

    def present(self, handle: SessionHandle) -> Story | None:
        """
        Present the next story.

        The currently presented story stays presented until decided. Pending
        stories come first, then skipped ones.

        Returns:
            Story to review, or None when every story is decided
        """
        session = self.sessions.load(handle)
        require_phase(session, Phase.REVIEW)
        queue = self.queue(handle)

        current = queue.get(queue.current_story_id) if queue.current_story_id else None
        if current is None or current.status != PresentationStatus.PRESENTED:
            current = next(
                iter(
                    queue.with_status(PresentationStatus.PENDING)
                    or queue.with_status(PresentationStatus.SKIPPED)
                ),
                None,
            )
        if current is None:
            queue.current_story_id = None
            self.store.save(PRESENTATION, queue, handle.session_id)
            return None

        current.status = PresentationStatus.PRESENTED
        queue.current_story_id = current.story_id
        self.store.save(PRESENTATION, queue, handle.session_id)
        if session.phase != Phase.REVIEW:
            session.start_phase(Phase.REVIEW)
            self.sessions.save(session)
        return self._stories(handle).get(current.story_id)

    def _decide(
        self, handle: SessionHandle, status: PresentationStatus, reason: str | None = None
    ) -> str:
        queue = self.queue(handle)
        item = queue.get(queue.current_story_id) if queue.current_story_id else None
        if item is None or item.status != PresentationStatus.PRESENTED:
            raise PrerequisiteError(DECISION_COMMANDS[status], "present")

        item.status = status
        item.reason = reason
        item.decided_at = datetime.now()
        queue.current_story_id = None
        self.store.save(PRESENTATION, queue, handle.session_id)
        self.sessions.log(
            handle,
            InteractionType.STORY_DECISION,
            story_id=item.story_id,
            decision=status.value,
            reason=reason,
        )
        logger.info(f"[{handle.session_id}] {item.story_id} {status.value}")

        if not queue.unresolved():
            session = self.sessions.load(handle)
            approved = len(queue.with_status(PresentationStatus.APPROVED))
            session.complete_phase(Phase.REVIEW, {"approved": approved})
            self.sessions.save(session)
            self.sessions.log(handle, InteractionType.PHASE_COMPLETED, phase=Phase.REVIEW.value)
        return item.story_id

    def approve(self, handle: SessionHandle) -> str:
        return self._decide(handle, PresentationStatus.APPROVED)

    def reject(self, handle: SessionHandle, reason: str) -> str:
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        return self._decide(handle, PresentationStatus.REJECTED, reason.strip())

    def skip(self, handle: SessionHandle) -> str:
        return self._decide(handle, PresentationStatus.SKIPPED)

    def finalize(self, handle: SessionHandle, force: bool = False) -> FinalizeResult:
        """
        Hand approved stories to the ready queue.

        Args:
            handle: Session
            force: Finalize even though some stories are still undecided

        Raises:
            OverrideRequiredError: Undecided stories and force not given
        """
        require_phase(self.sessions.load(handle), Phase.FINALIZED)
        queue = self.queue(handle)
        unresolved = [item.story_id for item in queue.unresolved()]
        if unresolved and not force:
            raise OverrideRequiredError(
                f"{len(unresolved)} stories are not approved or rejected; "
                "review them or pass --force to finalize anyway.",
                context={"unresolved_story_ids": unresolved},
            )

        story_set = self._stories(handle)
        ready = self.store.load_or_default(READY_QUEUE, ReadyQueue)
        index = next_index(task.id for task in ready.all_tasks())
        result = FinalizeResult(unresolved_story_ids=unresolved)

        with self.sessions.phase(handle, Phase.FINALIZED) as session:
            for item in queue.with_status(PresentationStatus.APPROVED):
                story = story_set.get(item.story_id)
                if story is None:
                    continue
                if ready.has_story(story.id, handle.session_id):
                    result.duplicate_story_ids.append(story.id)
                    continue
                task = story_to_task(story, generate_task_id(index), handle.session_id)
                index += 1
                ready.ready.append(task)
                result.task_ids.append(task.id)

            ready.last_updated = datetime.now()
            self.store.save(READY_QUEUE, ready)
            session.status = SessionStatus.COMPLETED
            session.phases[Phase.FINALIZED].summary = result.model_dump()
        logger.info(
            f"[{handle.session_id}] finalized: {len(result.task_ids)} tasks, "
            f"{len(result.duplicate_story_ids)} duplicates skipped"
        )
        return result
