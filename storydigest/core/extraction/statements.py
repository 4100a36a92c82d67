"""Statement splitting and meaningfulness filtering."""

import re
from typing import NamedTuple

from storydigest.core.rules.tables import FILLER_RULES, IMPERATIVE_RULES, REQUIREMENT_SIGNAL_RULES
from storydigest.models.chunk import Chunk
from storydigest.models.input import NormalizedInput
from storydigest.models.statement import Statement
from storydigest.utils.id_generator import generate_statement_id
from storydigest.utils.text import word_count

SENTENCE_SPLIT = re.compile(r"(?<=[.!?…])\s+")
BULLET_PREFIX = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")

DEFAULT_MIN_WORDS = 4


class Segment(NamedTuple):
    """A sentence with its char offset in the normalized text."""

    text: str
    offset: int
    timestamp_ms: int | None = None
    speaker: str | None = None


def sentence_spans(text: str, base: int = 0) -> list[tuple[str, int]]:
    """Split on line breaks, then on sentence-final punctuation, keeping offsets."""
    spans: list[tuple[str, int]] = []
    line_start = base
    for line in (text or "").split("\n"):
        bullet = BULLET_PREFIX.match(line)
        body_start = bullet.end() if bullet else 0
        body = line[body_start:]

        piece_start = 0
        bounds = [(m.start(), m.end()) for m in SENTENCE_SPLIT.finditer(body)]
        for end, next_start in bounds + [(len(body), len(body))]:
            piece = body[piece_start:end]
            stripped = piece.strip()
            if stripped:
                lead = len(piece) - len(piece.lstrip())
                spans.append((stripped, line_start + body_start + piece_start + lead))
            piece_start = next_start
        line_start += len(line) + 1
    return spans


def split_sentences(text: str) -> list[str]:
    """Split on line breaks, then on sentence-final punctuation."""
    return [sentence for sentence, _ in sentence_spans(text)]


def has_requirement_signal(text: str) -> bool:
    """should/must/need/add/create/implement/when...then, or a leading imperative."""
    stripped = text.strip()
    return REQUIREMENT_SIGNAL_RULES.matches(stripped) or IMPERATIVE_RULES.matches(stripped)


def is_filler(text: str) -> bool:
    return FILLER_RULES.matches(text.strip())


def is_meaningful(text: str, min_words: int = DEFAULT_MIN_WORDS) -> bool:
    """
    Filler (acknowledgements, greetings, hedges) is never meaningful.
    Requirement-signal statements are always meaningful; anything else
    needs at least min_words words.
    """
    if not text or not text.strip():
        return False
    if is_filler(text):
        return False
    if has_requirement_signal(text):
        return True
    return word_count(text) >= min_words


def segment_input(source: NormalizedInput | str) -> list[Segment]:
    """
    Sentences of the normalized text with their offsets.

    Entries are laid out exactly as the normalizer renders them (one
    ``prefix + text`` line each), so offsets line up with chunk spans
    while speaker and timestamp come from the entry, never the text.
    """
    if isinstance(source, NormalizedInput) and source.entries:
        segments = []
        line_start = 0
        for entry in source.entries:
            prefix = entry.prefix
            for sentence, offset in sentence_spans(entry.text, line_start + len(prefix)):
                segments.append(Segment(sentence, offset, entry.timestamp_ms, entry.speaker))
            line_start += len(prefix) + len(entry.text) + 1
        return segments

    text = source.text if isinstance(source, NormalizedInput) else source
    return [Segment(sentence, offset) for sentence, offset in sentence_spans(text)]


def build_statements(
    segments: list[Segment],
    min_words: int = DEFAULT_MIN_WORDS,
    start_index: int = 1,
) -> list[Statement]:
    statements = []
    for position, segment in enumerate(segments):
        meaningful = is_meaningful(segment.text, min_words)
        statements.append(
            Statement(
                id=generate_statement_id(start_index + position),
                text=segment.text,
                position=position,
                timestamp_ms=segment.timestamp_ms,
                speaker=segment.speaker,
                meaningful=meaningful,
                requirement=meaningful and has_requirement_signal(segment.text),
            )
        )
    return statements


def split_statements(
    source: NormalizedInput | str,
    min_words: int = DEFAULT_MIN_WORDS,
    start_index: int = 1,
) -> list[Statement]:
    """
    Split normalized input into atomic statements.

    Entries (speaker/timestamp changes) always start a new statement;
    within an entry or plain text, line breaks and sentence boundaries split.

    Args:
        source: NormalizedInput or raw text
        min_words: Minimum words for a statement without requirement signal
        start_index: Index of the first generated statement id

    Returns:
        Statements in order, with meaningful/requirement flags set
    """
    return build_statements(segment_input(source), min_words, start_index)


def split_chunk_statements(
    source: NormalizedInput | str,
    chunks: list[Chunk],
    min_words: int = DEFAULT_MIN_WORDS,
) -> list[tuple[list[Statement], list[Statement]]]:
    """
    Statements per chunk as (owned, context) pairs.

    A chunk owns the statements that start inside its span, so a sentence
    crossing a cut is kept whole by the chunk it starts in. Statements
    starting in the overlap before the span are context only.
    """
    segments = segment_input(source)
    statements = build_statements(segments, min_words)

    per_chunk = []
    for chunk in chunks:
        owned, context = [], []
        for segment, statement in zip(segments, statements):
            if chunk.start_offset <= segment.offset < chunk.end_offset:
                owned.append(statement)
            elif chunk.context_offset <= segment.offset < chunk.start_offset:
                context.append(statement)
        per_chunk.append((owned, context))
    return per_chunk
