"""
Topic extraction (pass 1).

Subjects of requirement and imperative statements become topics:
"the X should ...", "add a X ...", "put the X ...". A subject already
covered by an existing topic enriches that topic instead.
"""

import re

from storydigest.core.extraction.vocabulary import (
    ENTITY_VOCABULARY,
    PRONOUNS,
    ROLE_WORDS,
    SUBJECT_FILLERS,
)
from storydigest.models.statement import Statement
from storydigest.models.topic import Topic, TopicSource
from storydigest.utils.id_generator import generate_topic_id, next_index
from storydigest.utils.logger import get_logger
from storydigest.utils.text import STOPWORDS, contains_term, normalize_title, words

logger = get_logger(__name__)

DETERMINER = r"(?:the|a|an|our|this|that|some|my|your|their)"

MODAL_SUBJECT = re.compile(
    rf"\b{DETERMINER}\s+((?:[a-z][\w-]*\s+){{0,2}}?[a-z][\w-]*)\s+"
    r"(?:should|must|shall|needs?|will need|has to|have to|can|could|would)\b",
    re.IGNORECASE,
)
ACTION_OBJECT = re.compile(
    r"\b(?:add|create|build|implement|include|put|place|move|show|display|hide|remove|"
    r"introduce|support)\s+"
    rf"(?:{DETERMINER}\s+)?((?:[a-z][\w-]*\s*){{1,4}})",
    re.IGNORECASE,
)
MAX_SUBJECT_WORDS = 3


def clean_subject(phrase: str) -> str | None:
    """
    Reduce a captured phrase to its subject words.

    Stops at the first stopword after the subject starts, drops filler
    adjectives, and rejects pronouns and actor nouns.
    """
    tokens: list[str] = []
    for token in words(phrase):
        if token in SUBJECT_FILLERS:
            continue
        if token in STOPWORDS or token in PRONOUNS:
            if tokens:
                break
            continue
        tokens.append(token)
        if len(tokens) == MAX_SUBJECT_WORDS:
            break
    if not tokens:
        return None
    if all(token in ROLE_WORDS for token in tokens):
        return None
    if tokens[0] in PRONOUNS:
        return None
    return " ".join(tokens)


def entities_in(text: str) -> list[str]:
    """Entity vocabulary words mentioned in text, in vocabulary order."""
    return [entity for entity in ENTITY_VOCABULARY if contains_term(text, entity)]


def extract_subject(text: str) -> str | None:
    """Subject of a requirement/imperative statement, or None."""
    match = MODAL_SUBJECT.search(text)
    if match:
        subject = clean_subject(match.group(1))
        if subject:
            return subject
    match = ACTION_OBJECT.search(text)
    if match:
        subject = clean_subject(match.group(1))
        if subject:
            return subject
    entities = entities_in(text)
    return entities[0] if entities else None


def _title(subject: str) -> str:
    return subject[:1].upper() + subject[1:]


class TopicExtractor:
    """Pass-1 topic extraction over meaningful requirement statements."""

    def _covering_topic(self, subject: str, topics: list[Topic]) -> Topic | None:
        wanted = normalize_title(subject)
        subject_words = set(wanted.split())
        for topic in topics:
            if topic.normalized_title == wanted:
                return topic
            known = {k.lower() for k in topic.keywords} | {e.lower() for e in topic.entities}
            if wanted in known or (subject_words and subject_words <= known):
                return topic
        return None

    def extract(
        self,
        statements: list[Statement],
        existing: list[Topic] | None = None,
    ) -> list[Topic]:
        """
        Extract topics from statements.

        Args:
            statements: Statements produced by split_statements
            existing: Topics to enrich (not copied)

        Returns:
            All topics: existing ones (possibly enriched) followed by new ones
        """
        topics = list(existing or [])
        index = next_index(topic.id for topic in topics)

        for statement in statements:
            if not statement.meaningful or not statement.requirement:
                continue
            subject = extract_subject(statement.text)
            if not subject:
                continue
            entities = entities_in(statement.text)
            keywords = [w for w in subject.split() if w not in STOPWORDS]
            keywords += [e for e in entities if e not in keywords]

            topic = self._covering_topic(subject, topics)
            if topic is None:
                topic = Topic(
                    id=generate_topic_id(index),
                    title=_title(subject),
                    source=TopicSource.EXTRACTION,
                )
                index += 1
                topics.append(topic)
                logger.debug(f"New topic {topic.id} '{topic.title}' from {statement.id}")
            topic.add_keywords(keywords)
            topic.add_entities([e for e in entities if contains_term(subject, e)] + entities)

        logger.info(f"Pass 1 extracted {len(topics)} topics from {len(statements)} statements")
        return topics
