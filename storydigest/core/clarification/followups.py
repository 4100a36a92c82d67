"""Follow-up question triggers scanned over captured answers."""

from storydigest.core.clarification.templates import get_template, render_template
from storydigest.core.rules.tables import FOLLOWUP_TRIGGER_RULES
from storydigest.models.clarification import (
    ClarificationQuestion,
    ClarificationSet,
    Priority,
    QuestionType,
)

TRIGGER_PRIORITY: dict[str, Priority] = {
    "multiplicity": Priority.P2,
    "conditionality": Priority.P2,
    "destructive": Priority.P1,
    "permission": Priority.P1,
    "deferred": Priority.P3,
}

# Answers to these question types never spawn follow-ups
NO_FOLLOWUP_TYPES = frozenset({QuestionType.CONTRADICTION, QuestionType.AMBIGUOUS_TOPIC})


def detect_followups(
    answer: str,
    question: ClarificationQuestion,
    clarifications: ClarificationSet,
    next_id,
    subject: str,
    default_language: str = "en",
) -> list[ClarificationQuestion]:
    """
    Follow-up questions triggered by an answer.

    Deduplicated per topic by trigger: a topic never gets two follow-ups
    for the same trigger.

    Args:
        answer: Captured (cleaned) answer text
        question: Question that was answered
        clarifications: Current set, used for deduplication
        next_id: Callable returning the next question id
        subject: What the follow-up is about (entity or topic title)
        default_language: Template fallback language

    Returns:
        New pending follow-up questions
    """
    if question.type in NO_FOLLOWUP_TYPES:
        return []
    existing = {
        q.followup_key for q in clarifications.for_topic(question.topic_id) if q.followup_key
    }
    spawned: list[ClarificationQuestion] = []
    for label in FOLLOWUP_TRIGGER_RULES.matching_labels(answer):
        if label in existing:
            continue
        template = get_template(f"followup.{label}", question.language, default_language)
        if template is None:
            continue
        existing.add(label)
        spawned.append(
            ClarificationQuestion(
                id=next_id(),
                type=QuestionType.FOLLOWUP,
                topic_id=question.topic_id,
                statement_id=question.statement_id,
                entity=question.entity,
                detail=label,
                priority=TRIGGER_PRIORITY.get(label, Priority.P3),
                text=render_template(template, subject=subject),
                keywords=[label, *(question.keywords[:2])],
                language=question.language,
                followup_key=label,
            )
        )
    return spawned
