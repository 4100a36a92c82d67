"""
Tests for chunk planning and merging.

Tests cover:
1. Threshold detection
2. Forced cuts over unpunctuated text (spans tile the input, words stay whole)
3. Boundary priority (speaker change, paragraph)
4. Overlap context offsets
5. Merging per-chunk topics and statements
6. Statements owned by the chunk they start in
"""

import pytest

from storydigest.config import ChunkingConfig, TokenizerConfig
from storydigest.core.chunking import (
    ChunkExtraction,
    ChunkPlanner,
    merge_chunk_results,
    statement_signature,
)
from storydigest.core.extraction import split_chunk_statements
from storydigest.core.tokenizer import Tokenizer
from storydigest.models.chunk import BoundaryType, Chunk
from storydigest.models.statement import Statement
from storydigest.models.topic import Topic


def make_planner(**overrides) -> ChunkPlanner:
    return ChunkPlanner(
        ChunkingConfig(**overrides), Tokenizer(TokenizerConfig(provider="approximate"))
    )


@pytest.fixture
def unpunctuated():
    """12000 distinct six-character words with no punctuation or newlines."""
    return " ".join(f"w{i:05d}" for i in range(12000))


class TestNeedsChunking:
    def test_small_text(self):
        assert not make_planner().needs_chunking("The table should sort by date.")

    def test_empty(self):
        assert not make_planner().needs_chunking("")

    def test_word_threshold(self):
        assert make_planner().needs_chunking("word " * 3001)

    def test_char_threshold(self):
        assert make_planner(char_threshold=100).needs_chunking("x" * 101)

    def test_token_threshold(self):
        assert make_planner(token_threshold=10).needs_chunking("x" * 80)


class TestForcedCuts:
    """Tests for text with no natural boundaries."""

    def test_eight_chunks(self, unpunctuated):
        plan = make_planner().plan(unpunctuated)

        assert plan.chunked
        assert len(plan.chunks) == 8
        assert plan.total_words == 12000
        assert [c.boundary_type for c in plan.chunks[:-1]] == [BoundaryType.FORCED] * 7
        assert plan.chunks[-1].boundary_type == BoundaryType.END_OF_INPUT

    def test_spans_tile_input(self, unpunctuated):
        """Test spans are contiguous, cover the input and reassemble it."""
        plan = make_planner().plan(unpunctuated)

        assert plan.chunks[0].start_offset == 0
        assert plan.chunks[-1].end_offset == len(unpunctuated)
        for previous, current in zip(plan.chunks, plan.chunks[1:]):
            assert current.start_offset == previous.end_offset
        assert "".join(c.span_text(unpunctuated) for c in plan.chunks) == unpunctuated

    def test_words_stay_whole(self, unpunctuated):
        plan = make_planner().plan(unpunctuated)

        assert sum(c.word_count for c in plan.chunks) == 12000
        assert all(1490 <= c.word_count <= 1510 for c in plan.chunks)

    def test_overlap_context(self, unpunctuated):
        plan = make_planner().plan(unpunctuated)

        assert plan.chunks[0].context_offset == 0
        for chunk in plan.chunks[1:]:
            assert chunk.context_offset == chunk.start_offset - 200
            assert chunk.processing_text(unpunctuated).endswith(chunk.span_text(unpunctuated))

    def test_chunk_ids(self, unpunctuated):
        plan = make_planner().plan(unpunctuated)
        assert [c.id for c in plan.chunks[:2]] == ["chunk_000", "chunk_001"]


class TestBoundaryPriority:
    """Tests for natural boundary selection."""

    def test_speaker_changes_preferred(self):
        lines = [
            f"{'Alice' if i % 2 == 0 else 'Bob'}: sentence number {i} is here."
            for i in range(40)
        ]
        text = "\n".join(lines)

        plan = make_planner(target_chunk_words=60).plan(text)

        assert len(plan.chunks) == 4
        assert all(c.boundary_type == BoundaryType.SPEAKER_CHANGE for c in plan.chunks[:-1])
        for chunk in plan.chunks:
            assert chunk.span_text(text).startswith(("Alice:", "Bob:"))

    def test_paragraphs_before_sentences(self):
        paragraph = "The report lists every order. It can be filtered by date."
        text = "\n\n".join([paragraph] * 10)

        plan = make_planner(target_chunk_words=40).plan(text)

        assert len(plan.chunks) == 3
        assert all(c.boundary_type == BoundaryType.PARAGRAPH for c in plan.chunks[:-1])
        assert all(c.span_text(text).startswith("The report") for c in plan.chunks)

    def test_context_snaps_to_sentence(self):
        paragraph = "The report lists every order. It can be filtered by date."
        text = "\n\n".join([paragraph] * 10)

        plan = make_planner(target_chunk_words=40, overlap_chars=80).plan(text)

        for chunk in plan.chunks[1:]:
            context = text[chunk.context_offset : chunk.start_offset]
            assert context[:1].isupper()

    def test_empty_text(self):
        plan = make_planner().plan("")
        assert not plan.chunked
        assert plan.chunks == []


class TestMerge:
    """Tests for merging chunk extractions."""

    @pytest.fixture
    def results(self):
        return [
            ChunkExtraction(
                chunk_id="chunk_000",
                topics=[Topic(id="topic_001", title="Dashboard", keywords=["dashboard"])],
                statements=[
                    Statement(id="stmt_0001", text="The dashboard shows orders.", topic_id="topic_001"),
                    Statement(id="stmt_0002", text="Export uses CSV files."),
                ],
            ),
            ChunkExtraction(
                chunk_id="chunk_001",
                topics=[
                    Topic(id="topic_001", title="dashboard!", keywords=["orders"]),
                    Topic(id="topic_002", title="Login"),
                ],
                statements=[
                    Statement(id="stmt_0001", text="The dashboard shows orders", topic_id="topic_001"),
                    Statement(id="stmt_0002", text="Login needs single sign on.", topic_id="topic_002"),
                ],
            ),
        ]

    def test_topics_merge_by_title(self, results):
        merged = merge_chunk_results(results)

        assert [t.id for t in merged.topics] == ["topic_001", "topic_002"]
        dashboard = merged.topics[0]
        assert dashboard.title == "Dashboard"
        assert dashboard.keywords == ["dashboard", "orders"]
        assert dashboard.chunk_ids == ["chunk_000", "chunk_001"]
        assert merged.topics[1].chunk_ids == ["chunk_001"]

    def test_overlap_duplicates_dropped(self, results):
        merged = merge_chunk_results(results)

        assert [s.text for s in merged.statements] == [
            "The dashboard shows orders.",
            "Export uses CSV files.",
            "Login needs single sign on.",
        ]
        assert merged.summary["duplicates_dropped"] == 1
        assert merged.summary["statements_in"] == 4

    def test_ids_regenerated_and_topics_remapped(self, results):
        merged = merge_chunk_results(results)

        assert [s.id for s in merged.statements] == ["stmt_0001", "stmt_0002", "stmt_0003"]
        assert [s.position for s in merged.statements] == [0, 1, 2]
        assert [s.topic_id for s in merged.statements] == ["topic_001", None, "topic_002"]

    def test_long_common_prefix_collides(self):
        """Statements sharing their first 100 normalized characters count as duplicates."""
        prefix = "the export " * 10
        results = [
            ChunkExtraction(
                chunk_id="chunk_000",
                statements=[
                    Statement(id="stmt_0001", text=prefix + "uses CSV."),
                    Statement(id="stmt_0002", text=prefix + "uses PDF."),
                ],
            )
        ]

        merged = merge_chunk_results(results)

        assert len(merged.statements) == 1
        assert len(statement_signature(prefix + "x")) == 100


class TestChunkOwnership:
    """Tests for assigning statements to the chunk they start in."""

    TEXT = (
        "The invoice list should show the customer name. "
        "The export should include every invoice line item with totals and taxes. "
        "The table should sort by date."
    )

    @pytest.fixture
    def chunks(self):
        cut = self.TEXT.index("line item")
        return [
            Chunk(
                id="chunk_000",
                index=0,
                start_offset=0,
                end_offset=cut,
                context_offset=0,
                boundary_type=BoundaryType.FORCED,
            ),
            Chunk(
                id="chunk_001",
                index=1,
                start_offset=cut,
                end_offset=len(self.TEXT),
                context_offset=self.TEXT.index("The export"),
                boundary_type=BoundaryType.END_OF_INPUT,
            ),
        ]

    def test_sentence_across_cut_owned_by_first_chunk(self, chunks):
        (first, first_context), (second, second_context) = split_chunk_statements(
            self.TEXT, chunks
        )

        assert [s.text for s in first] == [
            "The invoice list should show the customer name.",
            "The export should include every invoice line item with totals and taxes.",
        ]
        assert first_context == []
        assert [s.text for s in second] == ["The table should sort by date."]
        assert [s.text for s in second_context] == [
            "The export should include every invoice line item with totals and taxes."
        ]

    def test_merge_keeps_one_whole_copy(self, chunks):
        per_chunk = split_chunk_statements(self.TEXT, chunks)
        results = [
            ChunkExtraction(chunk_id=chunk.id, statements=owned)
            for chunk, (owned, _) in zip(chunks, per_chunk)
        ]

        merged = merge_chunk_results(results)

        assert [s.text for s in merged.statements] == [
            "The invoice list should show the customer name.",
            "The export should include every invoice line item with totals and taxes.",
            "The table should sort by date.",
        ]
        assert merged.summary["duplicates_dropped"] == 0
