"""
Tests for story synthesis and validation.

Tests cover:
1. User story triple (role, action, benefit) with sources
2. Given/When/Then criteria from requirement statements
3. Criteria from answered clarification questions
4. Traceability matrix and coverage validation
5. Complexity and priority
"""

import pytest

from storydigest.config import StoryConfig
from storydigest.core.stories import (
    PRIORITY_BY_COMPLEXITY,
    StorySynthesizer,
    complexity_of,
    split_requirement,
    validate_story,
)
from storydigest.models import ClarificationQuestion, QuestionType, Statement, Topic
from storydigest.models.story import Complexity, SourceType


class TestSplitRequirement:
    """Tests for splitting requirement sentences."""

    def test_modal_sentence(self):
        assert split_requirement(
            "The dashboard should show a table of recent orders.", "dashboard"
        ) == ("dashboard", "should", "show a table of recent orders")

    def test_imperative_drops_correction_prefix(self):
        """Test imperatives have no modal and lose their leading correction."""
        subject, modal, action = split_requirement(
            "Actually, put the export button on the right side of the dashboard.", "dashboard"
        )

        assert subject == "export button"
        assert modal is None
        assert action == "put the export button on the right side of the dashboard"

    def test_pronoun_subject_uses_fallback(self):
        assert split_requirement("It should be fast.", "search") == ("search", "should", "be fast")


class TestTriple:
    """Tests for the As a / I want / So that triple."""

    def test_triple_values_and_sources(self, story):
        triple = story.triple

        assert (triple.role.value, triple.role.source) == ("manager", "stmt_0003")
        assert triple.action.value == "show a table of recent orders on the dashboard"
        assert triple.action.source == "stmt_0001"
        assert (triple.benefit.value, triple.benefit.source) == ("they can spot delays", "stmt_0003")

    def test_render(self, story):
        assert story.triple.render() == (
            "As a manager, I want to show a table of recent orders on the dashboard, "
            "so that they can spot delays."
        )

    def test_topic_without_requirements_is_inferred(self):
        """Test a topic with no statements still yields a story."""
        topic = Topic(id="topic_002", title="Export button", entities=["button", "export"])

        story = StorySynthesizer().synthesize("story_002", topic, [], [])

        assert (story.triple.role.value, story.triple.role.source) == ("user", "inferred")
        assert story.triple.action.value == "use the export button"
        assert story.triple.benefit.value == "I can work with the export button effectively"
        assert story.criteria == []
        assert story.coverage == 100.0
        assert story.validation.passed
        assert story.complexity == Complexity.LOW

    def test_default_role_from_config(self):
        topic = Topic(id="topic_001", title="Search")
        synthesizer = StorySynthesizer(StoryConfig(default_role="operator"))

        assert synthesizer.synthesize("story_001", topic, [], []).triple.role.value == "operator"


class TestStatementCriteria:
    """Tests for criteria built from requirement statements."""

    def test_one_criterion_per_active_requirement(self, story):
        """Test superseded and other-topic statements are left out."""
        assert story.requirement_statement_ids == ["stmt_0001", "stmt_0002"]
        assert [c.id for c in story.criteria] == [
            "story_001_ac_1",
            "story_001_ac_2",
            "story_001_ac_3",
            "story_001_ac_4",
        ]

    def test_entity_outcome_criterion(self, story):
        criterion = story.criteria[0]

        assert criterion.given.text == "I am viewing the dashboard"
        assert criterion.given.source_type == SourceType.CONTEXT
        assert criterion.when.text == "I open the dashboard"
        assert criterion.then.text == "I see the data displayed in a table"
        assert criterion.then.source == "stmt_0001"
        assert criterion.origin == "statement"

    def test_leading_condition_becomes_given(self, story):
        criterion = story.criteria[1]

        assert criterion.given.text == "an order is late"
        assert criterion.given.source == "stmt_0002"
        assert criterion.given.source_type == SourceType.STATEMENT
        assert criterion.when.text == "I open the table"
        assert criterion.then.text == "the table must highlight the row"

    def test_preceding_condition_becomes_given(self, dashboard_topic):
        """Test a conditional non-requirement statement sets up the next requirement."""
        statements = [
            Statement(id="stmt_0001", text="When the user logs in.", position=0, topic_id="topic_001"),
            Statement(
                id="stmt_0002",
                text="The dashboard should greet them.",
                position=1,
                requirement=True,
                topic_id="topic_001",
            ),
        ]

        story = StorySynthesizer().synthesize("story_001", dashboard_topic, statements, [])
        criterion = story.criteria[0]

        assert criterion.given.text == "when the user logs in"
        assert criterion.given.source == "stmt_0001"
        assert criterion.then.text == "the dashboard should greet them"

    def test_render_criterion(self, story):
        assert story.criteria[1].render() == (
            "Given an order is late, when I open the table, then the table must highlight the row"
        )


class TestClarificationCriteria:
    """Tests for criteria built from answered questions."""

    def test_only_answered_detail_questions_of_topic(self, story):
        """Test unanswered, contradiction and other-topic questions are skipped."""
        clarification = [c for c in story.criteria if c.origin == "clarification"]

        assert [c.when.source for c in clarification] == ["q_001", "q_004"]

    def test_columns_criterion(self, story):
        criterion = story.criteria[2]

        assert criterion.when.text == "I view the table"
        assert criterion.then.text == "I see the columns: Order number, date and total"
        assert criterion.then.source_type == SourceType.CLARIFICATION

    def test_validation_criterion(self, story):
        criterion = story.criteria[3]

        assert criterion.when.text == "I submit invalid data in the form"
        assert criterion.then.text == "the input is rejected according to: Email is required"

    @pytest.mark.parametrize(
        "detail,answer,when,then",
        [
            ("columns", "Name and date", "I view the table", "I see the columns: Name and date"),
            ("actions", "View details", "I use the table actions", "I can view details"),
            (
                "sorting",
                "Newest first",
                "I sort or filter the table",
                "the results are ordered or narrowed by: Newest first",
            ),
            ("label", "Export", "I use the table", "export"),
        ],
    )
    def test_detail_categories(self, detail, answer, when, then):
        topic = Topic(id="topic_001", title="Orders table", entities=["table"])
        question = ClarificationQuestion(
            id="q_001",
            type=QuestionType.COMPLETENESS,
            topic_id="topic_001",
            entity="table",
            detail=detail,
            text="?",
            answer=answer,
        )

        criterion = StorySynthesizer().synthesize("story_001", topic, [], [question]).criteria[0]

        assert criterion.given.text == "I am viewing the orders table"
        assert criterion.when.text == when
        assert criterion.then.text == then


class TestValidation:
    """Tests for traceability, coverage and complexity."""

    def test_traceability_has_a_row_per_clause(self, story):
        assert len(story.traceability) == 12
        first = story.traceability[0]
        assert (first.criterion, first.clause, first.source) == ("story_001_ac_1", "given", "context")

    def test_full_coverage(self, story):
        assert story.coverage == 100.0
        assert story.validation.passed
        assert story.validation.assumption_criterion_ids == []

    def test_uncovered_requirement_fails_validation(self, story):
        validation = validate_story(story, ["stmt_0001", "stmt_0002", "stmt_0099"])

        assert not validation.passed
        assert validation.coverage == 66.7
        assert validation.uncovered_statement_ids == ["stmt_0099"]
        assert validation.warnings[0].startswith("Coverage 66.7%")

    @pytest.mark.parametrize(
        "count,expected",
        [(1, Complexity.LOW), (4, Complexity.MEDIUM), (8, Complexity.HIGH)],
    )
    def test_complexity_by_criteria_count(self, story, count, expected):
        criteria = (story.criteria * 2)[:count]

        assert complexity_of(story.model_copy(update={"criteria": criteria})) == expected

    def test_story_complexity_and_priority(self, story):
        assert story.complexity == Complexity.MEDIUM
        assert PRIORITY_BY_COMPLEXITY[story.complexity] == "P2"
