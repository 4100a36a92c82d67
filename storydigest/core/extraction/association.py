"""
Statement-to-topic association (pass 2).

Scores:
- entity-name match: 0.9
- topic-title keyword match: 0.8
- topic keyword-list match: 0.75
- context continuity (preceding high-confidence topic): 0.6
"""

from storydigest.config import ExtractionConfig
from storydigest.models.statement import AssociationKind, Statement, StatementSource
from storydigest.models.topic import Topic
from storydigest.utils.logger import get_logger
from storydigest.utils.text import STOPWORDS, contains_term, words

logger = get_logger(__name__)

ENTITY_SCORE = 0.9
TITLE_SCORE = 0.8
KEYWORD_SCORE = 0.75


def score_topic(text: str, topic: Topic) -> float:
    """
    Base association score of text against one topic.

    Returns:
        Highest matching tier, or 0.0
    """
    if any(contains_term(text, entity) for entity in topic.entities):
        return ENTITY_SCORE
    title_words = [w for w in words(topic.title) if w not in STOPWORDS and len(w) > 2]
    if any(contains_term(text, word) for word in title_words):
        return TITLE_SCORE
    if any(contains_term(text, keyword) for keyword in topic.keywords):
        return KEYWORD_SCORE
    return 0.0


def rank_topics(text: str, topics: list[Topic], scorer=score_topic) -> list[tuple[Topic, float]]:
    """
    All topics with a positive score, best first.

    The sort is stable, so equal scores keep topic-list order.
    """
    scored = [(topic, scorer(text, topic)) for topic in topics]
    scored = [(topic, score) for topic, score in scored if score > 0]
    return sorted(scored, key=lambda pair: -pair[1])


class StatementAssociator:
    """Assigns each meaningful transcript statement to its best topic."""

    def __init__(self, config: ExtractionConfig | None = None):
        self.config = config or ExtractionConfig()

    def associate(self, statements: list[Statement], topics: list[Topic]) -> list[Statement]:
        """
        Associate statements with topics in place.

        Transcript statements are re-associated from scratch; statements
        derived from clarification answers keep their topic.

        Args:
            statements: Statements in transcript order
            topics: Topics in list order (ties keep the first)

        Returns:
            The same statements
        """
        previous: Statement | None = None
        assigned = continuity = 0

        for statement in statements:
            if statement.source == StatementSource.CLARIFICATION:
                continue
            statement.topic_id = None
            statement.confidence = 0.0
            statement.association = None
            statement.ambiguous = False
            statement.candidate_topic_ids = []
            if not statement.meaningful:
                continue

            ranked = rank_topics(statement.text, topics)
            if ranked and ranked[0][1] >= self.config.match_threshold:
                topic, score = ranked[0]
                statement.assign(topic.id, score, AssociationKind.DIRECT)
                assigned += 1
            elif (
                previous is not None
                and previous.topic_id is not None
                and previous.confidence >= self.config.continuity_min_confidence
            ):
                statement.assign(
                    previous.topic_id, self.config.continuity_score, AssociationKind.CONTINUITY
                )
                continuity += 1
            previous = statement

        orphans = sum(1 for s in statements if s.is_orphan)
        logger.info(
            f"Pass 2 associated {assigned} directly, {continuity} by continuity, {orphans} orphans"
        )
        return statements
