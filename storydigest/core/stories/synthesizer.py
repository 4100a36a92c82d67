"""
Story synthesis.

One story per active topic: role from user-type patterns, one acceptance
criterion per requirement statement, plus criteria from answered
clarification questions. Every clause records where it came from.
"""

import re

from storydigest.config import StoryConfig
from storydigest.core.extraction.topics import clean_subject, entities_in, extract_subject
from storydigest.core.rules.tables import CONDITIONAL_RULES, ROLE_RULES
from storydigest.core.stories.validation import refresh
from storydigest.models.clarification import ClarificationQuestion, QuestionType
from storydigest.models.statement import Statement, StatementSource
from storydigest.models.story import (
    AcceptanceCriterion,
    Clause,
    SourceType,
    Story,
    TaggedValue,
    UserStoryTriple,
)
from storydigest.models.topic import Topic
from storydigest.utils.id_generator import generate_criterion_id
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

MODAL_SPLIT = re.compile(
    r"^(?P<subject>.+?)\s+(?P<modal>should|must|shall|needs? to|has to|have to|will need to|will)\s+(?P<action>.+)$",
    re.IGNORECASE,
)
LEADING_CONDITION = re.compile(r"^(?P<condition>(?:if|when|whenever|once|after|before)\b[^,]+),\s*(?P<rest>.+)$", re.IGNORECASE)
BENEFIT = re.compile(r"\b(?:so that|so we can|so i can|in order to|because)\s+(?P<benefit>[^.!?]+)", re.IGNORECASE)
CORRECTION_PREFIX = re.compile(r"^(?:(?:actually|wait|ok(?:ay)?|so|and|also|no)[,\s]+)+", re.IGNORECASE)
HAVING_VERBS = re.compile(r"^(?:have|has|add|include|show|display|create|contain|get)\b", re.IGNORECASE)

ENTITY_OUTCOMES: dict[str, str] = {
    "table": "I see the data displayed in a table",
    "button": "the button's action is performed",
    "form": "I can fill in and submit the form",
    "list": "I see the items listed",
    "chart": "I see the data visualized in a chart",
    "graph": "I see the data visualized in a graph",
    "search": "I see the matching results",
    "filter": "only the matching items are shown",
    "notification": "I receive a notification",
    "login": "I am signed in",
    "report": "I can view the report",
    "export": "the data is exported",
    "upload": "the file is uploaded",
    "modal": "a modal dialog is shown",
    "dashboard": "I see the dashboard",
    "page": "the page is displayed",
}
VIEWABLE = frozenset({"dashboard", "page", "table", "list", "chart", "graph", "report", "modal", "form", "profile", "settings"})

CATEGORY_DETAILS = {
    "columns": "columns",
    "fields": "columns",
    "items": "columns",
    "contents": "columns",
    "data": "columns",
    "validation": "validation",
    "actions": "actions",
    "action": "actions",
    "submit": "actions",
    "sorting": "sort_filter",
    "criteria": "sort_filter",
    "scope": "sort_filter",
}


def _sentence(text: str) -> str:
    return text.strip().rstrip(".!?…").strip()


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:] if text else text


def split_requirement(text: str, fallback_subject: str) -> tuple[str, str | None, str]:
    """
    (subject, modal, action) of a requirement sentence.

    Imperatives have no modal; pronoun subjects fall back to the topic.
    """
    sentence = CORRECTION_PREFIX.sub("", _sentence(text))
    match = MODAL_SPLIT.match(sentence)
    if match:
        subject = clean_subject(match.group("subject")) or fallback_subject
        return subject, match.group("modal").lower(), match.group("action")
    subject = extract_subject(sentence) or fallback_subject
    return subject, None, _lower_first(sentence)


class StorySynthesizer:
    """Builds a Story with acceptance criteria and traceability for a topic."""

    def __init__(self, config: StoryConfig | None = None):
        self.config = config or StoryConfig()

    def _role(self, members: list[Statement]) -> TaggedValue:
        for statement in members:
            match = ROLE_RULES.first_match(statement.text)
            if match:
                return TaggedValue(value=match[0].label, source=statement.id)
        return TaggedValue(value=self.config.default_role, source="inferred")

    def _benefit(self, members: list[Statement], topic: Topic) -> TaggedValue:
        for statement in members:
            match = BENEFIT.search(statement.text)
            if match:
                return TaggedValue(value=match.group("benefit").strip(), source=statement.id)
        return TaggedValue(
            value=f"I can work with the {topic.title.lower()} effectively", source="inferred"
        )

    def _action(self, requirements: list[Statement], topic: Topic) -> TaggedValue:
        if requirements:
            first = requirements[0]
            subject, modal, action = split_requirement(first.text, topic.title.lower())
            if modal is None:
                value = action
            elif HAVING_VERBS.match(action) and subject not in action:
                value = f"{action} on the {subject}"
            elif HAVING_VERBS.match(action):
                value = action
            else:
                value = f"have the {subject} {action}"
            return TaggedValue(value=_lower_first(value), source=first.id)
        return TaggedValue(value=f"use the {topic.title.lower()}", source="inferred")

    def _default_given(self, topic: Topic) -> str:
        entities = topic.entities or entities_in(topic.title)
        if any(entity in VIEWABLE for entity in entities):
            return f"I am viewing the {topic.title.lower()}"
        return f"I am using the {topic.title.lower()}"

    def _given(
        self, requirement: Statement, members: list[Statement], topic: Topic
    ) -> tuple[Clause, str]:
        """Given clause and the text left for the When/Then parts."""
        sentence = CORRECTION_PREFIX.sub("", _sentence(requirement.text))
        leading = LEADING_CONDITION.match(sentence)
        if leading:
            condition = re.sub(r"^(if|when|whenever|once)\s+", "", leading.group("condition"), flags=re.IGNORECASE)
            return (
                Clause(text=condition, source=requirement.id, source_type=SourceType.STATEMENT),
                leading.group("rest"),
            )

        previous = [s for s in members if s.position < requirement.position]
        if previous and CONDITIONAL_RULES.matches(previous[-1].text) and not previous[-1].requirement:
            return (
                Clause(
                    text=_lower_first(_sentence(previous[-1].text)),
                    source=previous[-1].id,
                    source_type=SourceType.STATEMENT,
                ),
                sentence,
            )
        return (
            Clause(text=self._default_given(topic), source="context", source_type=SourceType.CONTEXT),
            sentence,
        )

    def _statement_criterion(
        self, criterion_id: str, requirement: Statement, members: list[Statement], topic: Topic
    ) -> AcceptanceCriterion:
        given, remainder = self._given(requirement, members, topic)
        subject, modal, action = split_requirement(remainder, topic.title.lower())
        access = "open" if any(e in VIEWABLE for e in entities_in(subject)) else "use"
        when = Clause(
            text=f"I {access} the {subject}",
            source=requirement.id,
            source_type=SourceType.STATEMENT,
        )

        outcome = None
        if modal is not None and HAVING_VERBS.match(action):
            entities = entities_in(action)
            outcome = ENTITY_OUTCOMES.get(entities[0]) if entities else None
        if outcome is None:
            outcome = f"the {subject} {modal} {action}" if modal else f"the system should {action}"
        then = Clause(text=outcome, source=requirement.id, source_type=SourceType.STATEMENT)
        return AcceptanceCriterion(id=criterion_id, given=given, when=when, then=then, origin="statement")

    def _clarification_criterion(
        self, criterion_id: str, question: ClarificationQuestion, topic: Topic
    ) -> AcceptanceCriterion:
        entity = question.entity or topic.title.lower()
        answer = _sentence(question.answer or "")
        category = CATEGORY_DETAILS.get(question.detail or "", "generic")
        if question.type == QuestionType.SPECIFICITY and question.detail == "validation":
            category = "validation"

        if category == "columns":
            when_text = f"I view the {entity}"
            then_text = f"I see the {question.detail or 'details'}: {answer}"
        elif category == "validation":
            when_text = f"I submit invalid data in the {entity}"
            then_text = f"the input is rejected according to: {answer}"
        elif category == "actions":
            when_text = f"I use the {entity} actions"
            then_text = f"I can {_lower_first(answer)}"
        elif category == "sort_filter":
            when_text = f"I sort or filter the {entity}"
            then_text = f"the results are ordered or narrowed by: {answer}"
        else:
            when_text = f"I use the {entity}"
            then_text = _lower_first(answer)

        return AcceptanceCriterion(
            id=criterion_id,
            given=Clause(text=self._default_given(topic), source="context", source_type=SourceType.CONTEXT),
            when=Clause(text=when_text, source=question.id, source_type=SourceType.CLARIFICATION),
            then=Clause(text=then_text, source=question.id, source_type=SourceType.CLARIFICATION),
            origin="clarification",
        )

    def synthesize(
        self,
        story_id: str,
        topic: Topic,
        statements: list[Statement],
        questions: list[ClarificationQuestion],
    ) -> Story:
        """
        Generate a story for one topic.

        Args:
            story_id: Id for the new story
            topic: Source topic
            statements: All session statements (filtered to the topic here)
            questions: All session questions (answered ones of this topic are used)

        Returns:
            Story with criteria, traceability, coverage and validation
        """
        members = sorted(
            (s for s in statements if s.topic_id == topic.id and s.is_active),
            key=lambda s: s.position,
        )
        transcript = [s for s in members if s.source == StatementSource.TRANSCRIPT]
        requirements = [s for s in transcript if s.requirement]

        criteria: list[AcceptanceCriterion] = []
        for requirement in requirements:
            criteria.append(
                self._statement_criterion(
                    generate_criterion_id(story_id, len(criteria) + 1), requirement, transcript, topic
                )
            )
        for question in questions:
            if (
                question.topic_id == topic.id
                and question.answer
                and question.type
                in (QuestionType.COMPLETENESS, QuestionType.SPECIFICITY, QuestionType.FOLLOWUP)
            ):
                criteria.append(
                    self._clarification_criterion(
                        generate_criterion_id(story_id, len(criteria) + 1), question, topic
                    )
                )

        story = Story(
            id=story_id,
            topic_id=topic.id,
            title=topic.title,
            triple=UserStoryTriple(
                role=self._role(members),
                action=self._action(requirements, topic),
                benefit=self._benefit(members, topic),
            ),
            criteria=criteria,
            requirement_statement_ids=[s.id for s in requirements],
        )
        refresh(story, self.config)
        logger.debug(
            f"Story {story.id} for {topic.id}: {len(criteria)} criteria, coverage {story.coverage}%"
        )
        return story
