"""Utility modules for StoryDigest."""

from storydigest.utils.exceptions import (
    ConfigurationError,
    DigestError,
    NoActiveSessionError,
    NotFoundError,
    OverrideRequiredError,
    PrerequisiteError,
    SessionError,
    SessionNotFoundError,
    StoreError,
    StoryValidationError,
    ValidationError,
)
from storydigest.utils.id_generator import (
    generate_chunk_id,
    generate_contradiction_id,
    generate_criterion_id,
    generate_question_id,
    generate_session_id,
    generate_statement_id,
    generate_story_id,
    generate_task_id,
    generate_topic_id,
    next_index,
)
from storydigest.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_session_id",
    "generate_topic_id",
    "generate_statement_id",
    "generate_question_id",
    "generate_contradiction_id",
    "generate_story_id",
    "generate_criterion_id",
    "generate_chunk_id",
    "generate_task_id",
    "next_index",
    # Exceptions
    "DigestError",
    "StoreError",
    "SessionError",
    "NoActiveSessionError",
    "SessionNotFoundError",
    "PrerequisiteError",
    "ValidationError",
    "StoryValidationError",
    "OverrideRequiredError",
    "NotFoundError",
    "ConfigurationError",
]
