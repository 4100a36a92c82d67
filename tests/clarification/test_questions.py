"""
Tests for clarification question generation.

Tests cover:
1. Gap detection with pre-answered details
2. Vagueness detection
3. Contradiction and ambiguous-topic question builders
4. Localized template lookup with fallback
5. Follow-up triggers and per-topic deduplication
"""

import pytest

from storydigest.core.clarification import (
    CONTRADICTION_BOTH_OPTION,
    GapDetector,
    QuestionIds,
    VaguenessDetector,
    ambiguous_topic_question,
    contradiction_question,
    detect_followups,
    get_template,
)
from storydigest.core.extraction import StatementAssociator, TopicExtractor, split_statements
from storydigest.core.resolution import ContradictionDetector, ContradictionResolver
from storydigest.models.clarification import (
    ClarificationQuestion,
    ClarificationSet,
    Priority,
    QuestionType,
)
from storydigest.models.statement import Statement
from storydigest.models.topic import Topic
from tests.conftest import DASHBOARD_TRANSCRIPT


@pytest.fixture
def dashboard():
    """Dashboard statements and topics after passes 1-4."""
    statements = split_statements(DASHBOARD_TRANSCRIPT)
    topics = TopicExtractor().extract(statements)
    StatementAssociator().associate(statements, topics)
    for contradiction in ContradictionDetector().detect(statements, topics):
        ContradictionResolver().resolve(contradiction, statements[1], statements[3], topics[0])
    return statements, topics


def completeness_question(**overrides) -> ClarificationQuestion:
    values = {
        "id": "q_001",
        "type": QuestionType.COMPLETENESS,
        "topic_id": "topic_001",
        "statement_id": "stmt_0001",
        "entity": "table",
        "detail": "columns",
        "text": "Which columns?",
        "keywords": ["table", "columns"],
    }
    values.update(overrides)
    return ClarificationQuestion(**values)


class TestGapDetector:
    """Tests for completeness questions."""

    def test_dashboard_gaps(self, dashboard):
        statements, topics = dashboard

        questions, pre_answered = GapDetector().detect(statements, topics, ClarificationSet())

        assert [(q.id, q.entity, q.detail, q.priority) for q in questions] == [
            ("q_001", "table", "columns", Priority.P1),
            ("q_002", "table", "actions", Priority.P2),
            ("q_003", "button", "action", Priority.P1),
            ("q_004", "button", "label", Priority.P3),
            ("q_005", "export", "format", Priority.P1),
        ]
        assert questions[0].text == "Which columns should the table in Dashboard show?"
        assert all(q.type == QuestionType.COMPLETENESS for q in questions)
        assert {q.topic_id for q in questions} == {"topic_001"}

    def test_sibling_statement_pre_answers(self, dashboard):
        """Test 'sortable' in a sibling statement answers table.sorting."""
        statements, topics = dashboard

        _, pre_answered = GapDetector().detect(statements, topics, ClarificationSet())

        assert [(p.entity, p.detail, p.statement_id) for p in pre_answered] == [
            ("table", "sorting", "stmt_0003")
        ]

    def test_superseded_statement_not_asked_about(self, dashboard):
        statements, topics = dashboard

        questions, _ = GapDetector().detect(statements, topics, ClarificationSet())

        assert "stmt_0002" not in {q.statement_id for q in questions}

    def test_rerun_adds_nothing(self, dashboard):
        statements, topics = dashboard
        questions, pre_answered = GapDetector().detect(statements, topics, ClarificationSet())
        existing = ClarificationSet(questions=questions, pre_answered=pre_answered)

        again, again_pre = GapDetector().detect(statements, topics, existing)

        assert again == []
        assert again_pre == []

    def test_localized_questions(self, dashboard):
        statements, topics = dashboard

        questions, _ = GapDetector().detect(statements, topics, ClarificationSet(), language="es")

        assert questions[0].text == "¿Qué columnas debe mostrar la table en Dashboard?"
        # no Spanish template for button.label, so English is used
        assert questions[3].text == "What should the button label say?"
        assert questions[0].language == "es"


class TestVagueness:
    def test_vague_phrases(self):
        topics = [Topic(id="topic_001", title="Checkout")]
        statements = [
            Statement(
                id="stmt_0001",
                text="The page should be fast and user-friendly.",
                topic_id="topic_001",
            )
        ]

        questions = VaguenessDetector().detect(statements, topics, ClarificationSet())

        assert [q.detail for q in questions] == ["usability", "performance"]
        assert questions[0].text == 'What would make Checkout "user-friendly" in concrete terms?'
        assert questions[1].text == 'What response time counts as "fast" for Checkout?'
        assert all(q.type == QuestionType.SPECIFICITY for q in questions)

    def test_orphans_skipped(self):
        statements = [Statement(id="stmt_0001", text="It should be fast.")]
        assert VaguenessDetector().detect(statements, [], ClarificationSet()) == []


class TestBuilders:
    def test_contradiction_question(self):
        statements = split_statements(DASHBOARD_TRANSCRIPT)
        topics = TopicExtractor().extract(statements)
        StatementAssociator().associate(statements, topics)
        detected = ContradictionDetector().detect(statements, topics)[0]
        first, second = statements[1], statements[3]

        question = contradiction_question(detected, first, second, topics[0], "q_009")

        assert question.type == QuestionType.CONTRADICTION
        assert question.priority == Priority.P1
        assert question.options == [first.text, second.text, CONTRADICTION_BOTH_OPTION]
        assert question.contradiction_id == "contra_001"
        assert question.keywords == ["left", "right"]

    def test_ambiguous_topic_question(self):
        candidates = [Topic(id="topic_001", title="Login"), Topic(id="topic_002", title="Signup")]
        statement = Statement(
            id="stmt_0001", text="Registration and sign in share one screen.", topic_id="topic_003"
        )

        question = ambiguous_topic_question(statement, candidates, "q_001")

        assert question.options == ["Login", "Signup"]
        assert question.candidate_topic_ids == ["topic_001", "topic_002"]
        assert question.text.endswith("1. Login, 2. Signup")

    def test_ambiguous_orphan_not_asked(self):
        statement = Statement(id="stmt_0001", text="Registration and sign in.")
        assert ambiguous_topic_question(statement, [], "q_001") is None

    def test_question_ids_continue(self):
        ids = QuestionIds(ClarificationSet(questions=[completeness_question(id="q_004")]))
        assert [ids.take(), ids.take()] == ["q_005", "q_006"]


class TestTemplates:
    def test_locale_hit(self):
        assert get_template("button.action", "de").startswith("Was soll passieren")

    def test_fallback_to_default_language(self):
        assert get_template("table.sorting", "es") == get_template("table.sorting", "en")

    def test_custom_default_language(self):
        assert get_template("form.fields", "xx", default_language="fr").startswith("Quels champs")

    def test_missing_everywhere(self):
        assert get_template("no.such.key", "en") is None


class TestFollowups:
    """Tests for follow-up triggers."""

    def test_triggers_spawn_questions(self):
        ids = iter(["q_010", "q_011", "q_012"])
        question = completeness_question()

        spawned = detect_followups(
            "Multiple columns, admins can delete rows",
            question,
            ClarificationSet(questions=[question]),
            lambda: next(ids),
            subject="table",
        )

        assert [(q.id, q.followup_key, q.priority) for q in spawned] == [
            ("q_010", "multiplicity", Priority.P2),
            ("q_011", "destructive", Priority.P1),
            ("q_012", "permission", Priority.P1),
        ]
        assert spawned[0].text == "Is there a limit on how many table are allowed?"
        assert all(q.type == QuestionType.FOLLOWUP for q in spawned)

    def test_one_followup_per_trigger_per_topic(self):
        previous = completeness_question(
            id="q_002", type=QuestionType.FOLLOWUP, followup_key="multiplicity"
        )
        question = completeness_question()

        spawned = detect_followups(
            "Several columns",
            question,
            ClarificationSet(questions=[question, previous]),
            lambda: "q_003",
            subject="table",
        )

        assert spawned == []

    def test_contradiction_answers_never_follow_up(self):
        question = completeness_question(type=QuestionType.CONTRADICTION)
        spawned = detect_followups(
            "Delete both later", question, ClarificationSet(), lambda: "q_002", subject="x"
        )
        assert spawned == []
