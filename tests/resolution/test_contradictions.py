"""
Tests for contradiction detection and resolution (pass 4).

Tests cover:
1. Opposite-value and numeric conflict detection
2. Resolution confidence signals and auto-resolution
3. Additive language dismissal
4. Parsing and applying user decisions
"""

import pytest

from storydigest.core.extraction import StatementAssociator, TopicExtractor, split_statements
from storydigest.core.resolution import (
    ContradictionDetector,
    ContradictionResolver,
    apply_contradiction_answer,
    parse_resolution_choice,
)
from storydigest.models.contradiction import (
    Contradiction,
    ContradictionState,
    ContradictionType,
    ResolutionChoice,
)
from storydigest.models.statement import Statement
from storydigest.models.topic import Topic
from tests.conftest import DASHBOARD_TRANSCRIPT


@pytest.fixture
def dashboard():
    statements = split_statements(DASHBOARD_TRANSCRIPT)
    topics = TopicExtractor().extract(statements)
    StatementAssociator().associate(statements, topics)
    return statements, topics


@pytest.fixture
def menu_topic():
    return Topic(id="topic_001", title="Menu", entities=["menu"])


def member(statement_id, text, position, speaker=None, topic_id="topic_001"):
    return Statement(
        id=statement_id, text=text, position=position, speaker=speaker, topic_id=topic_id
    )


class TestDetection:
    """Tests for conflict detection."""

    def test_dashboard_left_right(self, dashboard):
        statements, topics = dashboard

        found = ContradictionDetector().detect(statements, topics)

        assert len(found) == 1
        contradiction = found[0]
        assert contradiction.id == "contra_001"
        assert contradiction.type == ContradictionType.OPPOSITE_VALUES
        assert contradiction.attribute == "left/right"
        assert contradiction.pair == ("stmt_0002", "stmt_0004")
        assert contradiction.state == ContradictionState.PENDING

    def test_numeric_conflict(self, menu_topic):
        statements = [
            member("stmt_0001", "The list should show 10 orders per page.", 0),
            member("stmt_0002", "The list should show 25 orders per page.", 1),
        ]

        found = ContradictionDetector().detect(statements, [menu_topic])

        assert found[0].type == ContradictionType.NUMERIC_CONFLICT
        assert found[0].attribute == "10/25"

    def test_no_shared_subject(self, menu_topic):
        statements = [
            member("stmt_0001", "Align the logo left.", 0),
            member("stmt_0002", "Swipe right to archive mail.", 1),
        ]
        assert ContradictionDetector().detect(statements, [menu_topic]) == []

    def test_known_pairs_skipped(self, dashboard):
        statements, topics = dashboard
        detector = ContradictionDetector()
        known = detector.detect(statements, topics)

        assert detector.detect(statements, topics, known=known) == []

    def test_other_topics_not_compared(self, menu_topic):
        statements = [
            member("stmt_0001", "Place the menu at the top of the page.", 0),
            member("stmt_0002", "Place the menu at the bottom of the page.", 1, topic_id="topic_002"),
        ]
        assert ContradictionDetector().detect(statements, [menu_topic]) == []

    def test_superseded_statements_ignored(self, menu_topic):
        statements = [
            member("stmt_0001", "Place the menu at the top of the page.", 0),
            member("stmt_0002", "Place the menu at the bottom of the page.", 1),
        ]
        statements[0].superseded = True

        assert ContradictionDetector().detect(statements, [menu_topic]) == []


class TestResolution:
    """Tests for confidence scoring and resolution."""

    def test_dashboard_auto_resolved(self, dashboard):
        statements, topics = dashboard
        contradiction = ContradictionDetector().detect(statements, topics)[0]
        left, right = statements[1], statements[3]

        ContradictionResolver().resolve(contradiction, left, right, topics[0])

        assert contradiction.confidence == 0.95
        assert contradiction.signals == ["correction:actually", "same_speaker", "re_mention"]
        assert contradiction.state == ContradictionState.AUTO_RESOLVED
        assert contradiction.resolution == ResolutionChoice.KEEP_SECOND
        assert contradiction.winner_id == "stmt_0004"
        assert left.superseded and left.superseded_by == "stmt_0004"
        assert right.supersedes == "stmt_0002"
        assert right.is_active

    def test_additive_is_not_contradiction(self, menu_topic):
        first = member("stmt_0001", "Show the export button on the left.", 0)
        second = member("stmt_0002", "Also show the export button on the right.", 1)
        contradiction = ContradictionDetector().detect([first, second], [menu_topic])[0]

        ContradictionResolver().resolve(contradiction, first, second, menu_topic)

        assert contradiction.state == ContradictionState.NOT_CONTRADICTION
        assert contradiction.signals == ["additive:also"]
        assert first.is_active and second.is_active

    def test_low_confidence_needs_clarification(self, menu_topic):
        first = member("stmt_0001", "Place the menu at the top of the page.", 0, "Alice")
        second = member("stmt_0002", "Place the menu at the bottom of the page.", 1, "Bob")
        contradiction = ContradictionDetector().detect([first, second], [menu_topic])[0]

        ContradictionResolver().resolve(contradiction, first, second, menu_topic)

        assert contradiction.confidence == 0.1
        assert contradiction.state == ContradictionState.CLARIFICATION_NEEDED
        assert not first.superseded

    def test_distance_signal(self):
        first = member("stmt_0001", "a", 0, "Alice")
        second = member("stmt_0002", "b", 12, "Bob")

        confidence, signals, additive = ContradictionResolver().score(first, second)

        assert (confidence, signals, additive) == (0.1, ["distance"], False)


class TestUserDecision:
    """Tests for parsing and applying a user's choice."""

    @pytest.fixture
    def resolved(self, dashboard):
        statements, topics = dashboard
        contradiction = ContradictionDetector().detect(statements, topics)[0]
        ContradictionResolver().resolve(contradiction, statements[1], statements[3], topics[0])
        return contradiction, statements[1], statements[3]

    @pytest.mark.parametrize(
        "answer,expected",
        [
            ("1", ResolutionChoice.KEEP_FIRST),
            ("the first one", ResolutionChoice.KEEP_FIRST),
            ("2", ResolutionChoice.KEEP_SECOND),
            ("the later one", ResolutionChoice.KEEP_SECOND),
            ("3", ResolutionChoice.KEEP_BOTH),
            ("keep both please", ResolutionChoice.KEEP_BOTH),
            ("left", ResolutionChoice.KEEP_FIRST),
            ("Right side", ResolutionChoice.KEEP_SECOND),
            ("banana", None),
            ("", None),
        ],
    )
    def test_parse_choice(self, resolved, answer, expected):
        contradiction, _, _ = resolved
        assert parse_resolution_choice(answer, contradiction) == expected

    def test_keep_first_reverses_auto_resolution(self, resolved):
        contradiction, left, right = resolved

        apply_contradiction_answer(contradiction, ResolutionChoice.KEEP_FIRST, left, right)

        assert left.is_active
        assert right.superseded and right.superseded_by == "stmt_0002"
        assert left.supersedes == "stmt_0004"
        assert right.supersedes is None
        assert contradiction.state == ContradictionState.USER_RESOLVED
        assert contradiction.winner_id == "stmt_0002"

    def test_keep_both(self, resolved):
        contradiction, left, right = resolved

        apply_contradiction_answer(contradiction, ResolutionChoice.KEEP_BOTH, left, right)

        assert left.is_active and right.is_active
        assert contradiction.winner_id is None
        assert contradiction.resolution == ResolutionChoice.KEEP_BOTH

    def test_relinking_clears_previous_winner(self):
        """Test a loser moved to a new winner is unlinked from its old one."""
        first = Statement(id="stmt_0001", text="Show 10 rows per page.", topic_id="topic_001")
        second = Statement(id="stmt_0002", text="Show 20 rows per page.", topic_id="topic_001")
        third = Statement(
            id="stmt_0003",
            text="Show 50 rows per page.",
            topic_id="topic_001",
            supersedes="stmt_0001",
        )
        first.superseded = True
        first.superseded_by = "stmt_0003"
        contradiction = Contradiction(
            id="contra_002",
            topic_id="topic_001",
            first_id="stmt_0001",
            second_id="stmt_0002",
            type=ContradictionType.NUMERIC_CONFLICT,
            attribute="10/20",
            values=["10", "20"],
        )

        apply_contradiction_answer(
            contradiction,
            ResolutionChoice.KEEP_SECOND,
            first,
            second,
            [first, second, third],
        )

        assert first.superseded_by == "stmt_0002"
        assert second.supersedes == "stmt_0001"
        assert third.supersedes is None
