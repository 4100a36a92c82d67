"""
Clarification Loop - stateful question / answer cycle.

Generates questions (gaps, vagueness, ambiguous orphans; contradiction
questions come from pass 4), presents them in priority batches, and turns
every captured answer into a derived statement attached to the
question's topic. Answers may spawn follow-up questions.
"""

import re
from datetime import datetime

from pydantic import BaseModel, Field

from storydigest.config import Config
from storydigest.core.clarification import (
    AnswerParser,
    GapDetector,
    QuestionIds,
    VaguenessDetector,
    VoiceNormalizer,
    ambiguous_topic_question,
    answer_confidence,
    detect_followups,
)
from storydigest.core.resolution import apply_contradiction_answer, parse_resolution_choice
from storydigest.core.store import DocumentStore
from storydigest.core.store.base import CLARIFICATIONS, CONTRADICTIONS, STATEMENTS, TOPICS
from storydigest.models.clarification import (
    ClarificationQuestion,
    ClarificationSet,
    Priority,
    QuestionStatus,
    QuestionType,
)
from storydigest.models.contradiction import ContradictionSet, ResolutionChoice
from storydigest.models.conversation import InteractionType
from storydigest.models.session import Phase
from storydigest.models.statement import (
    AssociationKind,
    Statement,
    StatementMap,
    StatementSource,
)
from storydigest.models.topic import Topic, TopicSet
from storydigest.services.pipeline import require_phase
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.utils.exceptions import PrerequisiteError, ValidationError
from storydigest.utils.id_generator import generate_statement_id, next_index
from storydigest.utils.logger import get_logger
from storydigest.utils.text import contains_term

logger = get_logger(__name__)

PRIORITY_ORDER = {Priority.P1: 0, Priority.P2: 1, Priority.P3: 2}
CHOICE_TEXT = {
    ResolutionChoice.KEEP_FIRST: "{0}",
    ResolutionChoice.KEEP_SECOND: "{1}",
    ResolutionChoice.KEEP_BOTH: "{0} Also: {1}",
}


class AnswerResult(BaseModel):
    """Outcome of one answer submission."""

    strategy: str | None = None
    voice_applied: bool = False
    cleaned_text: str = ""
    answered_ids: list[str] = Field(default_factory=list)
    derived_statement_ids: list[str] = Field(default_factory=list)
    followup_ids: list[str] = Field(default_factory=list)
    pending: int = 0
    complete: bool = False


def choose_candidate(answer: str, candidates: list[Topic]) -> Topic | None:
    """Candidate topic named by option number or by title."""
    match = re.match(r"^\s*(\d+)\b", answer)
    if match:
        index = int(match.group(1)) - 1
        return candidates[index] if 0 <= index < len(candidates) else None
    named = [topic for topic in candidates if contains_term(answer, topic.title.lower())]
    return named[0] if len(named) == 1 else None


class ClarificationLoop:
    """Question generation, batching and answer capture for a session."""

    def __init__(self, store: DocumentStore, sessions: SessionManager, config: Config):
        """
        Initialize clarification loop.

        Args:
            store: Document store
            sessions: Session manager
            config: Configuration (clarification section used)
        """
        self.store = store
        self.sessions = sessions
        self.config = config
        default_language = config.clarification.default_language
        self.gaps = GapDetector(default_language)
        self.vagueness = VaguenessDetector(default_language)
        self.parser = AnswerParser()
        self.voice = VoiceNormalizer(config.clarification)

    def clarifications(self, handle: SessionHandle) -> ClarificationSet:
        return self.store.load_or_default(CLARIFICATIONS, ClarificationSet, session_id=handle.session_id)

    # ═══════════════════════════════════════════════════════════
    # GENERATION
    # ═══════════════════════════════════════════════════════════

    def _ambiguous_questions(
        self,
        statements: list[Statement],
        topic_set: TopicSet,
        clarifications: ClarificationSet,
        language: str,
        ids: QuestionIds,
    ) -> list[ClarificationQuestion]:
        asked = {
            q.statement_id
            for q in clarifications.questions
            if q.type == QuestionType.AMBIGUOUS_TOPIC
        }
        questions = []
        for statement in statements:
            if not statement.ambiguous or not statement.is_active or statement.id in asked:
                continue
            candidates = [
                topic for tid in statement.candidate_topic_ids if (topic := topic_set.get(tid))
            ]
            if len(candidates) < 2:
                continue
            question = ambiguous_topic_question(
                statement,
                candidates,
                ids.take(),
                language=language,
                default_language=self.config.clarification.default_language,
            )
            if question is not None:
                questions.append(question)
        return questions

    def generate(self, handle: SessionHandle) -> list[ClarificationQuestion]:
        """
        Generate new questions for the session.

        Re-running only adds questions for details not yet asked or
        pre-answered.

        Returns:
            Newly generated questions
        """
        require_phase(self.sessions.load(handle), Phase.CLARIFICATION)
        topic_set = self.store.load_or_default(TOPICS, TopicSet, session_id=handle.session_id)
        statement_map = self.store.load_or_default(
            STATEMENTS, StatementMap, session_id=handle.session_id
        )
        clarifications = self.clarifications(handle)

        with self.sessions.phase(handle, Phase.CLARIFICATION) as session:
            language = session.input.language
            ids = QuestionIds(clarifications)
            topics = topic_set.active()
            gap_questions, pre_answered = self.gaps.detect(
                statement_map.statements, topics, clarifications, language, ids
            )
            vague_questions = self.vagueness.detect(
                statement_map.statements, topics, clarifications, language, ids
            )
            ambiguous = self._ambiguous_questions(
                statement_map.statements, topic_set, clarifications, language, ids
            )
            new_questions = gap_questions + vague_questions + ambiguous

            clarifications.questions.extend(new_questions)
            clarifications.pre_answered.extend(pre_answered)
            clarifications.generated = True
            self.store.save(CLARIFICATIONS, clarifications, handle.session_id)
            session.phases[Phase.CLARIFICATION].summary = {
                "generated": len(new_questions),
                "pre_answered": len(clarifications.pre_answered),
                "pending": len(clarifications.pending()),
            }
        logger.info(
            f"[{handle.session_id}] generated {len(new_questions)} questions "
            f"({len(pre_answered)} details pre-answered)"
        )
        return new_questions

    # ═══════════════════════════════════════════════════════════
    # PRESENTATION
    # ═══════════════════════════════════════════════════════════

    def next_batch(self, clarifications: ClarificationSet) -> list[ClarificationQuestion]:
        pending = sorted(
            clarifications.pending(),
            key=lambda q: (PRIORITY_ORDER.get(q.priority, 3), q.id),
        )
        return pending[: self.config.clarification.batch_size]

    def present(self, handle: SessionHandle) -> list[ClarificationQuestion]:
        """
        Present the next batch of pending questions by priority.

        Generates questions first when none were generated yet. Records
        questions_presented so an interruption can be detected later.
        """
        clarifications = self.clarifications(handle)
        if not clarifications.generated:
            self.generate(handle)
            clarifications = self.clarifications(handle)

        batch = self.next_batch(clarifications)
        clarifications.presented_ids = [q.id for q in batch]
        self.store.save(CLARIFICATIONS, clarifications, handle.session_id)
        if batch:
            self.sessions.log(
                handle,
                InteractionType.QUESTIONS_PRESENTED,
                question_ids=[q.id for q in batch],
            )
        return batch

    def is_complete(self, handle: SessionHandle) -> bool:
        clarifications = self.clarifications(handle)
        return clarifications.generated and not clarifications.pending()

    # ═══════════════════════════════════════════════════════════
    # ANSWERS
    # ═══════════════════════════════════════════════════════════

    def _check_choices(
        self,
        answers: dict[str, str],
        clarifications: ClarificationSet,
        contradictions: ContradictionSet,
        topic_set: TopicSet,
    ) -> dict[str, ResolutionChoice | Topic]:
        """Decisions for contradiction and ambiguity questions, validated before any mutation."""
        decisions: dict[str, ResolutionChoice | Topic] = {}
        errors: list[dict[str, str]] = []
        for question_id, text in answers.items():
            question = clarifications.get(question_id)
            if question.type == QuestionType.CONTRADICTION:
                contradiction = contradictions.get(question.contradiction_id or "")
                choice = parse_resolution_choice(text, contradiction) if contradiction else None
                if choice is None:
                    errors.append(
                        {"field": question_id, "message": "answer 1 (first), 2 (second) or 3 (both)"}
                    )
                else:
                    decisions[question_id] = choice
            elif question.type == QuestionType.AMBIGUOUS_TOPIC:
                candidates = [
                    topic for tid in question.candidate_topic_ids if (topic := topic_set.get(tid))
                ]
                topic = choose_candidate(text, candidates)
                if topic is None:
                    errors.append(
                        {"field": question_id, "message": "answer with a listed topic number or title"}
                    )
                else:
                    decisions[question_id] = topic
        if errors:
            raise ValidationError(
                "Some answers could not be interpreted; nothing was recorded.",
                context={"field_errors": errors},
            )
        return decisions

    def answer(self, handle: SessionHandle, text: str, voice: bool | None = None) -> AnswerResult:
        """
        Capture a free-text answer to the presented questions.

        Args:
            handle: Session
            text: Reply text (typed or voice transcript)
            voice: Force (True) or skip (False) voice cleanup; None auto-detects

        Returns:
            AnswerResult

        Raises:
            PrerequisiteError: Questions were never generated
            ValidationError: Empty or unparseable reply, or an invalid choice
        """
        clarifications = self.clarifications(handle)
        if not clarifications.generated:
            raise PrerequisiteError("answer", "questions")
        if not text or not text.strip():
            raise ValidationError("Answer is empty")

        pending_ids = {q.id for q in clarifications.pending()}
        presented = [
            clarifications.get(qid) for qid in clarifications.presented_ids if qid in pending_ids
        ]
        targets = presented or self.next_batch(clarifications)
        if not targets:
            raise ValidationError("No pending questions to answer")

        cleaned, voice_applied = self.voice.normalize(text, voice)
        parsed = self.parser.parse(cleaned, targets)
        if not parsed.parsed:
            raise ValidationError(
                "Could not match the answer to the presented questions; "
                "answer as a numbered list (1. ... 2. ...).",
                context={"question_ids": [q.id for q in targets]},
            )

        topic_set = self.store.load_or_default(TOPICS, TopicSet, session_id=handle.session_id)
        statement_map = self.store.load_or_default(
            STATEMENTS, StatementMap, session_id=handle.session_id
        )
        contradictions = self.store.load_or_default(
            CONTRADICTIONS, ContradictionSet, session_id=handle.session_id
        )
        decisions = self._check_choices(parsed.answers, clarifications, contradictions, topic_set)

        result = AnswerResult(
            strategy=parsed.strategy, voice_applied=voice_applied, cleaned_text=cleaned
        )
        ids = QuestionIds(clarifications)
        position = max((s.position for s in statement_map.statements), default=-1) + 1
        statement_index = next_index(s.id for s in statement_map.statements)

        for question_id, answer_text in parsed.answers.items():
            question = clarifications.get(question_id)
            question.answer = answer_text
            question.answer_confidence = answer_confidence(answer_text)
            question.status = QuestionStatus.ANSWERED
            question.answered_at = datetime.now()

            decision = decisions.get(question_id)
            derived_text, topic_id = answer_text, question.topic_id
            if isinstance(decision, ResolutionChoice):
                contradiction = contradictions.get(question.contradiction_id)
                apply_contradiction_answer(
                    contradiction,
                    decision,
                    statement_map.get(contradiction.first_id),
                    statement_map.get(contradiction.second_id),
                    statement_map.statements,
                )
                derived_text = CHOICE_TEXT[decision].format(*question.options[:2])
            elif isinstance(decision, Topic):
                statement = statement_map.get(question.statement_id)
                statement.assign(decision.id, 1.0, AssociationKind.CLARIFICATION)
                statement.ambiguous = False
                statement.candidate_topic_ids = []
                topic_id = decision.id

            derived = Statement(
                id=generate_statement_id(statement_index),
                text=derived_text,
                position=position,
                meaningful=True,
                requirement=False,
                source=StatementSource.CLARIFICATION,
                question_id=question.id,
            )
            derived.assign(topic_id, question.answer_confidence, AssociationKind.CLARIFICATION)
            statement_map.statements.append(derived)
            question.derived_statement_id = derived.id
            statement_index += 1
            position += 1

            topic = topic_set.get(question.topic_id)
            subject = question.entity or (topic.title.lower() if topic else "this feature")
            followups = detect_followups(
                answer_text,
                question,
                clarifications,
                ids.take,
                subject,
                self.config.clarification.default_language,
            )
            clarifications.questions.extend(followups)

            result.answered_ids.append(question.id)
            result.derived_statement_ids.append(derived.id)
            result.followup_ids.extend(q.id for q in followups)

        clarifications.presented_ids = [
            qid for qid in clarifications.presented_ids if qid not in parsed.answers
        ]
        self.store.save(STATEMENTS, statement_map, handle.session_id)
        self.store.save(CONTRADICTIONS, contradictions, handle.session_id)
        self.store.save(CLARIFICATIONS, clarifications, handle.session_id)

        session = self.sessions.load(handle)
        session.awaiting_response = False
        self.sessions.save(session)
        self.sessions.log(
            handle,
            InteractionType.ANSWER_RECEIVED,
            question_ids=result.answered_ids,
            strategy=parsed.strategy,
            voice=voice_applied,
        )

        result.pending = len(clarifications.pending())
        result.complete = result.pending == 0
        logger.info(
            f"[{handle.session_id}] answered {len(result.answered_ids)} via {parsed.strategy}, "
            f"{len(result.followup_ids)} follow-ups, {result.pending} pending"
        )
        return result
