"""
Topic models.

A Topic is a detected feature/requirement cluster. Statements point at
topics by id; topics never hold statement references.
"""

from enum import Enum

from pydantic import BaseModel, Field

from storydigest.utils.text import normalize_title


class TopicSource(str, Enum):
    """Which pass created the topic."""

    EXTRACTION = "pass-1-extraction"
    ORPHAN_RESOLUTION = "orphan_resolution"
    CATCH_ALL = "catch_all"


class TopicStatus(str, Enum):
    """Topic lifecycle status."""

    ACTIVE = "active"


class Topic(BaseModel):
    """Detected requirement cluster."""

    id: str = Field(..., description="Topic ID (topic_NNN)")
    title: str = Field(..., min_length=1)
    keywords: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    source: TopicSource = TopicSource.EXTRACTION
    status: TopicStatus = TopicStatus.ACTIVE
    needs_review: bool = False
    chunk_ids: list[str] = Field(default_factory=list)

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    def add_keywords(self, keywords: list[str]) -> None:
        """Union keywords preserving first-seen order."""
        for keyword in keywords:
            if keyword and keyword not in self.keywords:
                self.keywords.append(keyword)

    def add_entities(self, entities: list[str]) -> None:
        for entity in entities:
            if entity and entity not in self.entities:
                self.entities.append(entity)


class TopicSet(BaseModel):
    """Persisted topic document."""

    topics: list[Topic] = Field(default_factory=list)

    def get(self, topic_id: str) -> Topic | None:
        return next((topic for topic in self.topics if topic.id == topic_id), None)

    def active(self) -> list[Topic]:
        return [topic for topic in self.topics if topic.status == TopicStatus.ACTIVE]

    def find_by_title(self, title: str) -> Topic | None:
        wanted = normalize_title(title)
        return next((topic for topic in self.topics if topic.normalized_title == wanted), None)

    def catch_all(self) -> Topic | None:
        return next(
            (topic for topic in self.topics if topic.source == TopicSource.CATCH_ALL), None
        )
