"""
Chunk planning for large inputs.

Inputs above the configured word/token/char thresholds are split into
contiguous spans at natural boundaries. Spans tile [0, len(text)) exactly;
only the processing text of a chunk (which starts up to overlap_chars
earlier) overlaps its predecessor.
"""

import math
import re

from storydigest.config import ChunkingConfig
from storydigest.core.tokenizer import Tokenizer
from storydigest.models.chunk import BoundaryType, Chunk, ChunkPlan
from storydigest.utils.id_generator import generate_chunk_id
from storydigest.utils.logger import get_logger
from storydigest.utils.text import word_count

logger = get_logger(__name__)

SPEAKER_LABEL = re.compile(r"^[ \t]*(?:\[[^\]\n]{1,20}\]\s*)?([A-Z][\w .'-]{0,30}):\s", re.MULTILINE)
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")
LINE_BREAK = re.compile(r"\n")
SENTENCE_END = re.compile(r"[.!?…](?=\s)")
WHITESPACE = re.compile(r"\s+")

BOUNDARY_PRIORITY = [
    BoundaryType.SPEAKER_CHANGE,
    BoundaryType.PARAGRAPH,
    BoundaryType.NEWLINE,
    BoundaryType.SENTENCE,
]


def _speaker_changes(text: str, lo: int, hi: int) -> list[int]:
    """Line starts in [lo, hi] whose speaker label differs from the previous label."""
    cuts = []
    previous = None
    for match in SPEAKER_LABEL.finditer(text):
        speaker = match.group(1).strip()
        start = match.start()
        if lo <= start <= hi and previous is not None and speaker != previous and start > 0:
            cuts.append(start)
        if start > hi:
            break
        previous = speaker
    return cuts


def _candidates(text: str, boundary: BoundaryType, lo: int, hi: int) -> list[int]:
    """Cut offsets of one boundary type within [lo, hi]."""
    if boundary == BoundaryType.SPEAKER_CHANGE:
        return _speaker_changes(text, lo, hi)
    window = text[lo:hi]
    if boundary == BoundaryType.PARAGRAPH:
        return [lo + m.end() for m in PARAGRAPH_BREAK.finditer(window)]
    if boundary == BoundaryType.NEWLINE:
        return [lo + m.end() for m in LINE_BREAK.finditer(window)]
    if boundary == BoundaryType.SENTENCE:
        return [lo + m.end() for m in SENTENCE_END.finditer(window)]
    return []


class ChunkPlanner:
    """
    Splits large inputs into overlapping chunks at natural boundaries.

    Boundary priority: speaker change > paragraph > newline > sentence >
    forced cut. Every cut is strictly after the previous one.
    """

    def __init__(self, config: ChunkingConfig | None = None, tokenizer: Tokenizer | None = None):
        """
        Initialize chunk planner.

        Args:
            config: Chunking thresholds (defaults if omitted)
            tokenizer: Token counter used for the token threshold
        """
        self.config = config or ChunkingConfig()
        self.tokenizer = tokenizer or Tokenizer()

    def needs_chunking(self, text: str) -> bool:
        """True when word, token or char counts exceed the thresholds."""
        if not text:
            return False
        if word_count(text) > self.config.word_threshold:
            return True
        if len(text) > self.config.char_threshold:
            return True
        return self.tokenizer.count_tokens_or_estimate(text) > self.config.token_threshold

    def _find_cut(self, text: str, ideal: int, previous: int) -> tuple[int, BoundaryType]:
        """Best boundary near ideal, strictly after previous and before the end."""
        floor = previous + 1
        ceiling = len(text) - 1
        ideal = min(max(ideal, floor), ceiling)
        lo = max(floor, ideal - self.config.search_window)
        hi = min(ceiling, ideal + self.config.search_window)

        for boundary in BOUNDARY_PRIORITY:
            cuts = [c for c in _candidates(text, boundary, lo, hi) if floor <= c <= ceiling]
            if cuts:
                return min(cuts, key=lambda c: (abs(c - ideal), c)), boundary

        # forced: prefer the nearest whitespace so words stay whole
        spaces = [lo + m.start() for m in WHITESPACE.finditer(text[lo:hi])]
        spaces = [c for c in spaces if floor <= c <= ceiling]
        if spaces:
            return min(spaces, key=lambda c: (abs(c - ideal), c)), BoundaryType.FORCED
        return ideal, BoundaryType.FORCED

    def _context_start(self, text: str, start: int) -> int:
        """
        Where the overlap-prefixed processing text begins.

        Snaps forward to the first sentence or line boundary inside the
        overlap so the leading context starts with a whole sentence.
        """
        if start == 0 or self.config.overlap_chars <= 0:
            return start
        earliest = max(0, start - self.config.overlap_chars)
        window = text[earliest:start]
        match = re.search(r"(?:[.!?…]\s+|\n)", window)
        if match and earliest + match.end() < start:
            return earliest + match.end()
        return earliest

    def plan(self, text: str) -> ChunkPlan:
        """
        Plan chunks for text.

        Args:
            text: Normalized input text

        Returns:
            ChunkPlan whose chunk spans cover [0, len(text)) with no gaps
        """
        total_words = word_count(text)
        plan = ChunkPlan(
            chunked=False,
            total_words=total_words,
            total_chars=len(text),
            total_tokens=self.tokenizer.count_tokens_or_estimate(text),
            target_chunk_words=self.config.target_chunk_words,
        )
        if not text:
            return plan

        target_count = max(1, math.ceil(total_words / max(1, self.config.target_chunk_words)))
        # cannot cut more often than there are characters
        target_count = min(target_count, len(text))

        cuts: list[tuple[int, BoundaryType]] = []
        previous = 0
        for i in range(1, target_count):
            if previous >= len(text) - 1:
                break
            ideal = round(i * len(text) / target_count)
            cut, boundary = self._find_cut(text, ideal, previous)
            cuts.append((cut, boundary))
            previous = cut
        cuts.append((len(text), BoundaryType.END_OF_INPUT))

        start = 0
        for index, (end, boundary) in enumerate(cuts):
            span = text[start:end]
            plan.chunks.append(
                Chunk(
                    id=generate_chunk_id(index),
                    index=index,
                    start_offset=start,
                    end_offset=end,
                    context_offset=self._context_start(text, start),
                    word_count=word_count(span),
                    token_count=self.tokenizer.count_tokens_or_estimate(span),
                    char_count=len(span),
                    boundary_type=boundary,
                )
            )
            start = end

        plan.chunked = len(plan.chunks) > 1
        logger.info(
            f"Planned {len(plan.chunks)} chunks for {total_words} words "
            f"(boundaries: {[c.boundary_type.value for c in plan.chunks]})"
        )
        return plan
