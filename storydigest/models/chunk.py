"""
Chunk models for large-input planning.
"""

from enum import Enum

from pydantic import BaseModel, Field


class BoundaryType(str, Enum):
    """Boundary at the end of a chunk, in descending priority."""

    SPEAKER_CHANGE = "speaker_change"
    PARAGRAPH = "paragraph"
    NEWLINE = "newline"
    SENTENCE = "sentence"
    FORCED = "forced"
    END_OF_INPUT = "end_of_input"


class Chunk(BaseModel):
    """
    Contiguous slice of a large input.

    [start_offset, end_offset) spans tile the input exactly. The processing
    text of a non-first chunk starts at context_offset, overlap_chars before
    start_offset, so extraction sees some leading context.
    """

    id: str
    index: int = Field(..., ge=0)
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=1)
    context_offset: int = Field(..., ge=0)
    word_count: int = 0
    token_count: int = 0
    char_count: int = 0
    boundary_type: BoundaryType

    def span_text(self, text: str) -> str:
        return text[self.start_offset : self.end_offset]

    def processing_text(self, text: str) -> str:
        return text[self.context_offset : self.end_offset]


class ChunkPlan(BaseModel):
    """Persisted chunking state."""

    chunked: bool = False
    total_words: int = 0
    total_tokens: int = 0
    total_chars: int = 0
    target_chunk_words: int = 0
    chunks: list[Chunk] = Field(default_factory=list)
    merge_summary: dict = Field(default_factory=dict)
