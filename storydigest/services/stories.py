"""
Story Service - story generation, listing and edit sessions.
"""

from storydigest.config import Config
from storydigest.core.store import DocumentStore
from storydigest.core.store.base import (
    CLARIFICATIONS,
    PRESENTATION,
    STATEMENTS,
    STORIES,
    TOPICS,
)
from storydigest.core.stories import StoryEditor, StorySynthesizer
from storydigest.models.clarification import ClarificationSet
from storydigest.models.queue import PresentationItem, PresentationQueue
from storydigest.models.session import Phase
from storydigest.models.statement import StatementMap
from storydigest.models.story import Story, StoryEdit, StorySet
from storydigest.models.topic import TopicSet
from storydigest.services.pipeline import require_phase
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.utils.exceptions import NotFoundError
from storydigest.utils.id_generator import generate_story_id, next_index
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)


class StoryService:
    """Generates and edits the stories of a session."""

    def __init__(self, store: DocumentStore, sessions: SessionManager, config: Config):
        self.store = store
        self.sessions = sessions
        self.config = config
        self.synthesizer = StorySynthesizer(config.stories)
        self.editor = StoryEditor(config.stories)

    def stories(self, handle: SessionHandle) -> StorySet:
        return self.store.load_or_default(STORIES, StorySet, session_id=handle.session_id)

    def get(self, handle: SessionHandle, story_id: str) -> Story:
        story = self.stories(handle).get(story_id)
        if story is None:
            raise NotFoundError(f"Story not found: {story_id}", context={"story_id": story_id})
        return story

    def generate(self, handle: SessionHandle) -> StorySet:
        """
        Generate one story per active topic with active statements.

        A topic that already has a story keeps its story id. Regeneration
        resets the approval queue so every story is reviewed again.

        Returns:
            The new story set
        """
        require_phase(self.sessions.load(handle), Phase.STORY_GENERATION)
        topic_set = self.store.load_or_default(TOPICS, TopicSet, session_id=handle.session_id)
        statement_map = self.store.load_or_default(
            STATEMENTS, StatementMap, session_id=handle.session_id
        )
        clarifications = self.store.load_or_default(
            CLARIFICATIONS, ClarificationSet, session_id=handle.session_id
        )
        previous = {story.topic_id: story.id for story in self.stories(handle).stories}

        pending = clarifications.pending()
        if pending:
            logger.warning(
                f"[{handle.session_id}] generating stories with {len(pending)} unanswered questions"
            )

        with self.sessions.phase(handle, Phase.STORY_GENERATION) as session:
            index = next_index(previous.values())
            stories: list[Story] = []
            for topic in topic_set.active():
                members = [
                    s for s in statement_map.for_topic(topic.id) if s.is_active
                ]
                if not members:
                    continue
                story_id = previous.get(topic.id)
                if story_id is None:
                    story_id = generate_story_id(index)
                    index += 1
                stories.append(
                    self.synthesizer.synthesize(
                        story_id, topic, statement_map.statements, clarifications.questions
                    )
                )

            story_set = StorySet(stories=stories)
            queue = PresentationQueue(items=[PresentationItem(story_id=s.id) for s in stories])
            self.store.save(STORIES, story_set, handle.session_id)
            self.store.save(PRESENTATION, queue, handle.session_id)
            session.phases[Phase.STORY_GENERATION].summary = {
                "stories": len(stories),
                "failed_validation": sum(1 for s in stories if not s.validation.passed),
                "unanswered_questions": len(pending),
            }
        return story_set

    def edit(self, handle: SessionHandle, story_id: str, edit: StoryEdit) -> Story:
        """
        Commit an edit session to a story.

        Raises:
            NotFoundError: Unknown story
            StoryValidationError: Edit rejected; nothing is saved
        """
        story_set = self.stories(handle)
        story = story_set.get(story_id)
        if story is None:
            raise NotFoundError(f"Story not found: {story_id}", context={"story_id": story_id})
        edited = self.editor.apply(story, edit)
        story_set.replace(edited)
        self.store.save(STORIES, story_set, handle.session_id)
        logger.info(f"[{handle.session_id}] {story_id} edited (revision {edited.revision})")
        return edited
