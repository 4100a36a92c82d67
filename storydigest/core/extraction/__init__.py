"""
Topic/statement extraction module.

Splits text into statements, filters filler, extracts topics (pass 1) and
associates statements with topics (pass 2).
"""

from storydigest.core.extraction.association import (
    ENTITY_SCORE,
    KEYWORD_SCORE,
    TITLE_SCORE,
    StatementAssociator,
    rank_topics,
    score_topic,
)
from storydigest.core.extraction.statements import (
    has_requirement_signal,
    is_filler,
    is_meaningful,
    segment_input,
    split_chunk_statements,
    split_sentences,
    split_statements,
)
from storydigest.core.extraction.topics import TopicExtractor, entities_in, extract_subject

__all__ = [
    "split_sentences",
    "split_statements",
    "split_chunk_statements",
    "segment_input",
    "is_meaningful",
    "is_filler",
    "has_requirement_signal",
    "TopicExtractor",
    "extract_subject",
    "entities_in",
    "StatementAssociator",
    "score_topic",
    "rank_topics",
    "ENTITY_SCORE",
    "TITLE_SCORE",
    "KEYWORD_SCORE",
]
