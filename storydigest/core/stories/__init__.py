"""
Story synthesis module.

Acceptance-criteria generation, traceability, coverage validation and
edit sessions.
"""

from storydigest.core.stories.editor import StoryEditor
from storydigest.core.stories.synthesizer import (
    ENTITY_OUTCOMES,
    StorySynthesizer,
    split_requirement,
)
from storydigest.core.stories.validation import (
    PRIORITY_BY_COMPLEXITY,
    build_traceability,
    complexity_of,
    refresh,
    validate_story,
)

__all__ = [
    "StorySynthesizer",
    "StoryEditor",
    "split_requirement",
    "build_traceability",
    "validate_story",
    "complexity_of",
    "refresh",
    "ENTITY_OUTCOMES",
    "PRIORITY_BY_COMPLEXITY",
]
