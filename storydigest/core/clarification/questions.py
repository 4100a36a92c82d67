"""
Question generation.

GapDetector emits completeness questions for details implied by an
entity but absent from the topic. VaguenessDetector emits specificity
questions for vague phrasing. The builders create contradiction and
ambiguous-topic questions.
"""

from storydigest.core.clarification.templates import (
    CONTRADICTION_BOTH_OPTION,
    ENTITY_DETAILS,
    get_template,
    render_template,
)
from storydigest.core.extraction.topics import entities_in
from storydigest.core.rules.tables import VAGUE_RULES
from storydigest.models.clarification import (
    ClarificationQuestion,
    ClarificationSet,
    PreAnsweredDetail,
    Priority,
    QuestionType,
)
from storydigest.models.contradiction import Contradiction
from storydigest.models.statement import Statement, StatementSource
from storydigest.models.topic import Topic
from storydigest.utils.id_generator import generate_question_id, next_index
from storydigest.utils.logger import get_logger
from storydigest.utils.text import contains_term

logger = get_logger(__name__)


class QuestionIds:
    """Sequential question ids continuing after an existing set."""

    def __init__(self, clarifications: ClarificationSet):
        self._next = next_index(q.id for q in clarifications.questions)

    def take(self) -> str:
        question_id = generate_question_id(self._next)
        self._next += 1
        return question_id


def _topic_members(statements: list[Statement], topic_id: str) -> list[Statement]:
    return [s for s in statements if s.topic_id == topic_id and s.is_active]


class GapDetector:
    """Completeness questions from the entity detail table."""

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language

    def detect(
        self,
        statements: list[Statement],
        topics: list[Topic],
        clarifications: ClarificationSet,
        language: str = "en",
        ids: QuestionIds | None = None,
    ) -> tuple[list[ClarificationQuestion], list[PreAnsweredDetail]]:
        """
        Detect missing entity details per topic.

        A detail mentioned by any active statement of the same topic is
        recorded as pre-answered instead of asked.

        Returns:
            (new questions, new pre-answered details)
        """
        ids = ids or QuestionIds(clarifications)
        known = {(q.topic_id, q.entity, q.detail) for q in clarifications.questions}
        known |= {(p.topic_id, p.entity, p.detail) for p in clarifications.pre_answered}
        questions: list[ClarificationQuestion] = []
        pre_answered: list[PreAnsweredDetail] = []

        for topic in topics:
            members = _topic_members(statements, topic.id)
            for statement in members:
                if statement.source != StatementSource.TRANSCRIPT:
                    continue
                for entity in entities_in(statement.text):
                    for entry in ENTITY_DETAILS.get(entity, ()):
                        key = (topic.id, entity, entry.detail)
                        if key in known:
                            continue
                        known.add(key)

                        sibling = next(
                            (
                                s
                                for s in members
                                if any(contains_term(s.text, kw) for kw in entry.keywords)
                            ),
                            None,
                        )
                        if sibling is not None:
                            pre_answered.append(
                                PreAnsweredDetail(
                                    topic_id=topic.id,
                                    entity=entity,
                                    detail=entry.detail,
                                    statement_id=sibling.id,
                                )
                            )
                            continue

                        template = get_template(
                            f"{entity}.{entry.detail}", language, self.default_language
                        )
                        if template is None:
                            logger.debug(f"No template for {entity}.{entry.detail}, skipping")
                            continue
                        questions.append(
                            ClarificationQuestion(
                                id=ids.take(),
                                type=QuestionType.COMPLETENESS,
                                topic_id=topic.id,
                                statement_id=statement.id,
                                entity=entity,
                                detail=entry.detail,
                                priority=entry.priority,
                                text=render_template(template, entity=entity, topic=topic.title),
                                keywords=[entity, entry.detail.replace("_", " "), *entry.keywords],
                                language=language,
                            )
                        )
        return questions, pre_answered


class VaguenessDetector:
    """Specificity questions for vague phrasing."""

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language

    def detect(
        self,
        statements: list[Statement],
        topics: list[Topic],
        clarifications: ClarificationSet,
        language: str = "en",
        ids: QuestionIds | None = None,
    ) -> list[ClarificationQuestion]:
        ids = ids or QuestionIds(clarifications)
        titles = {topic.id: topic.title for topic in topics}
        known = {
            (q.statement_id, q.detail)
            for q in clarifications.questions
            if q.type == QuestionType.SPECIFICITY
        }
        questions: list[ClarificationQuestion] = []

        for statement in statements:
            if (
                not statement.is_active
                or statement.topic_id not in titles
                or statement.source != StatementSource.TRANSCRIPT
            ):
                continue
            for rule in VAGUE_RULES:
                match = rule.search(statement.text)
                if not match or (statement.id, rule.label) in known:
                    continue
                known.add((statement.id, rule.label))
                template = get_template(
                    f"specificity.{rule.label}", language, self.default_language
                )
                if template is None:
                    continue
                questions.append(
                    ClarificationQuestion(
                        id=ids.take(),
                        type=QuestionType.SPECIFICITY,
                        topic_id=statement.topic_id,
                        statement_id=statement.id,
                        detail=rule.label,
                        priority=Priority.P2,
                        text=render_template(
                            template, phrase=match.group(0), topic=titles[statement.topic_id]
                        ),
                        keywords=[rule.label.replace("_", " "), match.group(0).lower()],
                        language=language,
                    )
                )
        return questions


def contradiction_question(
    contradiction: Contradiction,
    first: Statement,
    second: Statement,
    topic: Topic,
    question_id: str,
    language: str = "en",
    default_language: str = "en",
) -> ClarificationQuestion:
    """Question presenting both values plus a 'both are needed' option."""
    template = get_template("contradiction", language, default_language) or "{first} / {second}"
    return ClarificationQuestion(
        id=question_id,
        type=QuestionType.CONTRADICTION,
        topic_id=topic.id,
        statement_id=second.id,
        detail=contradiction.attribute,
        priority=Priority.P1,
        text=render_template(template, topic=topic.title, first=first.text, second=second.text),
        options=[first.text, second.text, CONTRADICTION_BOTH_OPTION],
        keywords=list(contradiction.values),
        language=language,
        contradiction_id=contradiction.id,
    )


def ambiguous_topic_question(
    statement: Statement,
    candidates: list[Topic],
    question_id: str,
    language: str = "en",
    default_language: str = "en",
) -> ClarificationQuestion | None:
    """Question asking which candidate topic an ambiguous statement belongs to."""
    template = get_template("ambiguous_topic", language, default_language)
    if template is None or not statement.topic_id:
        return None
    listing = ", ".join(f"{i}. {topic.title}" for i, topic in enumerate(candidates, 1))
    return ClarificationQuestion(
        id=question_id,
        type=QuestionType.AMBIGUOUS_TOPIC,
        topic_id=statement.topic_id,
        statement_id=statement.id,
        priority=Priority.P2,
        text=render_template(template, statement=statement.text, candidates=listing),
        options=[topic.title for topic in candidates],
        keywords=[topic.title.lower() for topic in candidates],
        language=language,
        candidate_topic_ids=[topic.id for topic in candidates],
    )
