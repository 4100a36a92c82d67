"""
ID generation utilities for StoryDigest.

Provides consistent ID generation for all entity types:
- Sessions: sess_xxx (random)
- Topics: topic_NNN
- Statements: stmt_NNNN
- Questions: q_NNN
- Contradictions: contra_NNN
- Stories: story_NNN
- Criteria: story_NNN_ac_N
- Chunks: chunk_NNN
- Ready tasks: TASK-NNN

Everything except sessions is sequential within a session so that ids
can be regenerated deterministically when chunk results are merged.
"""

import re
from collections.abc import Iterable
from uuid import uuid4


def generate_session_id() -> str:
    """
    Generate unique Session ID.

    Returns:
        ID in format "sess_xxx" where xxx is 12 hex characters
    """
    return f"sess_{uuid4().hex[:12]}"


def generate_topic_id(index: int) -> str:
    """Topic ID for a 1-based index: topic_001."""
    return f"topic_{index:03d}"


def generate_statement_id(index: int) -> str:
    """Statement ID for a 1-based index: stmt_0001."""
    return f"stmt_{index:04d}"


def generate_question_id(index: int) -> str:
    """Question ID for a 1-based index: q_001."""
    return f"q_{index:03d}"


def generate_contradiction_id(index: int) -> str:
    """Contradiction ID for a 1-based index: contra_001."""
    return f"contra_{index:03d}"


def generate_story_id(index: int) -> str:
    """Story ID for a 1-based index: story_001."""
    return f"story_{index:03d}"


def generate_criterion_id(story_id: str, index: int) -> str:
    """
    Generate acceptance criterion ID scoped to its story.

    Args:
        story_id: Parent story ID
        index: 1-based criterion index

    Returns:
        ID in format "story_NNN_ac_N"
    """
    return f"{story_id}_ac_{index}"


def generate_chunk_id(index: int) -> str:
    """Chunk ID for a zero-based chunk index: chunk_000."""
    return f"chunk_{index:03d}"


def generate_task_id(index: int) -> str:
    """Ready-queue task ID for a 1-based index: TASK-001."""
    return f"TASK-{index:03d}"


def next_index(existing_ids: Iterable[str]) -> int:
    """
    Next free 1-based index after the highest numeric suffix in existing_ids.

    Args:
        existing_ids: IDs produced by one of the sequential generators

    Returns:
        max(suffix) + 1, or 1 when there are none
    """
    highest = 0
    for entity_id in existing_ids:
        match = re.search(r"(\d+)$", entity_id)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1
