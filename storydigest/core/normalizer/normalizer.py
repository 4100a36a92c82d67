"""
Input Normalizer.

Turns a raw transcript blob into a NormalizedInput. For subtitle and
meeting inputs the downstream text is re-rendered one entry per line
(``[hh:mm:ss] Speaker: text``) so that chunk boundaries can find speaker
changes and statement offsets map back onto the entries.
"""

import sys
from pathlib import Path
from typing import TextIO

from storydigest.config import Config
from storydigest.core.normalizer.content import classify_content
from storydigest.core.normalizer.formats import detect_format, parse_entries
from storydigest.core.normalizer.language import detect_language
from storydigest.core.tokenizer import Tokenizer
from storydigest.models.input import NormalizedEntry, NormalizedInput, SourceFormat
from storydigest.utils.exceptions import ValidationError
from storydigest.utils.logger import get_logger
from storydigest.utils.text import word_count

logger = get_logger(__name__)

STDIN_SENTINEL = "-"


def read_input(source: str, stdin: TextIO | None = None) -> str:
    """
    Read a transcript from a file path, or the whole default input stream
    when source is "-".

    Raises:
        ValidationError: If the file does not exist
    """
    if source == STDIN_SENTINEL:
        stream = stdin if stdin is not None else sys.stdin
        return stream.read()

    path = Path(source)
    if not path.is_file():
        raise ValidationError(f"Input file not found: {source}", context={"source": source})
    return path.read_text(encoding="utf-8-sig", errors="replace")


def render_entries(entries: list[NormalizedEntry]) -> str:
    """One line per entry, keeping timestamp and speaker markers."""
    return "\n".join(f"{entry.prefix}{entry.text}" for entry in entries)


class InputNormalizer:
    """
    Format, content-type and language detection over raw input.

    Pure function of input + config: no state is kept between calls.
    """

    def __init__(self, config: Config | None = None, tokenizer: Tokenizer | None = None):
        self.config = config or Config()
        self.tokenizer = tokenizer or Tokenizer(self.config.tokenizer)

    def _detect_format(self, text: str) -> SourceFormat:
        try:
            return detect_format(text)
        except Exception as e:
            logger.debug(f"Format detection failed, treating as plain text: {e}")
            return SourceFormat.PLAIN_TEXT

    def _parse_entries(self, text: str, source_format: SourceFormat) -> list[NormalizedEntry]:
        try:
            return parse_entries(text, source_format)
        except Exception as e:
            logger.debug(f"Entry parsing failed for {source_format.value}: {e}")
            return []

    def normalize(self, raw: str) -> NormalizedInput:
        """
        Normalize a raw transcript.

        Args:
            raw: Raw input text

        Returns:
            NormalizedInput with format, content type, language, entries
            and size counts
        """
        text = (raw or "").replace("\r\n", "\n").replace("\r", "\n")
        source_format = self._detect_format(text)
        entries = self._parse_entries(text, source_format)

        if source_format != SourceFormat.PLAIN_TEXT and not entries:
            logger.debug(f"No entries parsed from {source_format.value} input, using plain text")
            source_format = SourceFormat.PLAIN_TEXT

        body = render_entries(entries) if entries else text.strip()
        spoken = " ".join(entry.text for entry in entries) if entries else body

        content_type, content_score = classify_content(text)
        language = detect_language(spoken)

        normalized = NormalizedInput(
            format=source_format,
            content_type=content_type,
            content_score=content_score,
            language=language,
            text=body,
            entries=entries,
            word_count=word_count(body),
            char_count=len(body),
            token_count=self.tokenizer.count_tokens_or_estimate(body),
        )
        logger.info(
            f"Normalized input: format={normalized.format.value}, "
            f"content={normalized.content_type.value}, language={language.language} "
            f"({language.confidence}), words={normalized.word_count}, entries={len(entries)}"
        )
        return normalized
