"""Fixtures for story synthesis tests: one dashboard topic with mixed statements."""

import pytest

from storydigest.core.stories import StorySynthesizer
from storydigest.models import ClarificationQuestion, QuestionType, Statement, Topic


@pytest.fixture
def dashboard_topic() -> Topic:
    return Topic(
        id="topic_001",
        title="Dashboard",
        keywords=["dashboard", "table"],
        entities=["dashboard", "table"],
    )


@pytest.fixture
def statements() -> list[Statement]:
    return [
        Statement(
            id="stmt_0001",
            text="The dashboard should show a table of recent orders.",
            position=0,
            requirement=True,
            topic_id="topic_001",
        ),
        Statement(
            id="stmt_0002",
            text="When an order is late, the table must highlight the row.",
            position=1,
            requirement=True,
            topic_id="topic_001",
        ),
        Statement(
            id="stmt_0003",
            text="Managers need this so that they can spot delays.",
            position=2,
            topic_id="topic_001",
        ),
        Statement(
            id="stmt_0004",
            text="The table should hide cancelled orders.",
            position=3,
            requirement=True,
            topic_id="topic_001",
            superseded=True,
        ),
        Statement(
            id="stmt_0005",
            text="The export button should download a CSV.",
            position=4,
            requirement=True,
            topic_id="topic_002",
        ),
    ]


@pytest.fixture
def questions() -> list[ClarificationQuestion]:
    return [
        ClarificationQuestion(
            id="q_001",
            type=QuestionType.COMPLETENESS,
            topic_id="topic_001",
            entity="table",
            detail="columns",
            text="Which columns should the table in Dashboard show?",
            answer="Order number, date and total.",
        ),
        ClarificationQuestion(
            id="q_002",
            type=QuestionType.COMPLETENESS,
            topic_id="topic_001",
            entity="table",
            detail="actions",
            text="What actions can be taken on the table in Dashboard?",
        ),
        ClarificationQuestion(
            id="q_003",
            type=QuestionType.CONTRADICTION,
            topic_id="topic_001",
            text="Left or right?",
            answer="Right",
        ),
        ClarificationQuestion(
            id="q_004",
            type=QuestionType.SPECIFICITY,
            topic_id="topic_001",
            entity="form",
            detail="validation",
            text="What validation should the form apply?",
            answer="Email is required",
        ),
        ClarificationQuestion(
            id="q_005",
            type=QuestionType.FOLLOWUP,
            topic_id="topic_002",
            entity="export",
            detail="format",
            text="Which formats should export support?",
            answer="CSV",
        ),
    ]


@pytest.fixture
def story(dashboard_topic, statements, questions):
    return StorySynthesizer().synthesize("story_001", dashboard_topic, statements, questions)
