"""
Approval queue and ready-task queue models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class PresentationStatus(str, Enum):
    PENDING = "pending"
    PRESENTED = "presented"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class PresentationItem(BaseModel):
    story_id: str
    status: PresentationStatus = PresentationStatus.PENDING
    reason: str | None = None
    decided_at: datetime | None = None


class PresentationQueue(BaseModel):
    """Persisted approval queue."""

    items: list[PresentationItem] = Field(default_factory=list)
    current_story_id: str | None = None

    def get(self, story_id: str) -> PresentationItem | None:
        return next((item for item in self.items if item.story_id == story_id), None)

    def with_status(self, *statuses: PresentationStatus) -> list[PresentationItem]:
        return [item for item in self.items if item.status in statuses]

    def unresolved(self) -> list[PresentationItem]:
        return self.with_status(
            PresentationStatus.PENDING, PresentationStatus.PRESENTED, PresentationStatus.SKIPPED
        )


class ReadyTask(BaseModel):
    """Structured task handed to the ready queue."""

    id: str
    title: str
    priority: str
    description: str
    acceptance_criteria: list[str] = Field(default_factory=list)
    source_story_id: str
    source_session_id: str
    status: str = "ready"
    created_at: datetime = Field(default_factory=datetime.now)


class ReadyQueue(BaseModel):
    """Global ready-task store shared with the task workflow."""

    model_config = {"populate_by_name": True}

    ready: list[ReadyTask] = Field(default_factory=list)
    in_progress: list[ReadyTask] = Field(default_factory=list, alias="inProgress")
    blocked: list[ReadyTask] = Field(default_factory=list)
    recently_completed: list[ReadyTask] = Field(
        default_factory=list, alias="recentlyCompleted"
    )
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    def all_tasks(self) -> list[ReadyTask]:
        return self.ready + self.in_progress + self.blocked + self.recently_completed

    def has_story(self, story_id: str, session_id: str | None = None) -> bool:
        """True when a task already originates from the story (story ids are per session)."""
        return any(
            task.source_story_id == story_id
            and (session_id is None or task.source_session_id == session_id)
            for task in self.all_tasks()
        )
