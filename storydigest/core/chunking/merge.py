"""
Merge contract for per-chunk extraction results.

- Topics merge by case/punctuation-normalized title equality, unioning
  keywords and entities and recording contributing chunk ids.
- Statements merge by a truncated normalized-text signature so duplicates
  found in overlap regions are dropped. Distinct statements sharing a long
  common prefix can collide; this is a known limitation of the heuristic.
- All ids are regenerated sequentially and statement topic ids remapped.
"""

from pydantic import BaseModel, Field

from storydigest.models.statement import Statement
from storydigest.models.topic import Topic
from storydigest.utils.id_generator import generate_statement_id, generate_topic_id
from storydigest.utils.logger import get_logger
from storydigest.utils.text import normalize_text

logger = get_logger(__name__)

SIGNATURE_LENGTH = 100


class ChunkExtraction(BaseModel):
    """Pass-1 output of one chunk."""

    chunk_id: str
    topics: list[Topic] = Field(default_factory=list)
    statements: list[Statement] = Field(default_factory=list)


class MergedExtraction(BaseModel):
    """Merged pass-1 output across chunks."""

    topics: list[Topic] = Field(default_factory=list)
    statements: list[Statement] = Field(default_factory=list)
    summary: dict = Field(default_factory=dict)


def statement_signature(text: str, length: int = SIGNATURE_LENGTH) -> str:
    return normalize_text(text)[:length]


def merge_chunk_results(results: list[ChunkExtraction]) -> MergedExtraction:
    """
    Merge per-chunk topics and statements.

    Args:
        results: Per-chunk extractions in chunk order

    Returns:
        MergedExtraction with sequential ids
    """
    merged_topics: list[Topic] = []
    by_title: dict[str, Topic] = {}
    topic_remap: dict[tuple[str, str], str] = {}

    for result in results:
        for topic in result.topics:
            key = topic.normalized_title
            target = by_title.get(key)
            if target is None:
                target = topic.model_copy(
                    deep=True,
                    update={"id": generate_topic_id(len(merged_topics) + 1), "chunk_ids": []},
                )
                merged_topics.append(target)
                by_title[key] = target
            else:
                target.add_keywords(topic.keywords)
                target.add_entities(topic.entities)
                target.needs_review = target.needs_review or topic.needs_review
            if result.chunk_id not in target.chunk_ids:
                target.chunk_ids.append(result.chunk_id)
            topic_remap[(result.chunk_id, topic.id)] = target.id

    merged_statements: list[Statement] = []
    seen: set[str] = set()
    duplicates = 0
    total = 0
    for result in results:
        for statement in result.statements:
            total += 1
            signature = statement_signature(statement.text)
            if signature and signature in seen:
                duplicates += 1
                continue
            seen.add(signature)
            topic_id = None
            if statement.topic_id is not None:
                topic_id = topic_remap.get((result.chunk_id, statement.topic_id))
            merged_statements.append(
                statement.model_copy(
                    update={
                        "id": generate_statement_id(len(merged_statements) + 1),
                        "position": len(merged_statements),
                        "topic_id": topic_id,
                    }
                )
            )

    summary = {
        "chunks": len(results),
        "topics_in": sum(len(r.topics) for r in results),
        "topics_out": len(merged_topics),
        "statements_in": total,
        "statements_out": len(merged_statements),
        "duplicates_dropped": duplicates,
    }
    logger.info(f"Merged chunk results: {summary}")
    return MergedExtraction(topics=merged_topics, statements=merged_statements, summary=summary)
