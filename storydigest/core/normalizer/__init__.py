"""
Input normalization module.

Detects the source format (plain text, subtitle, chat export, JSON
meeting export), classifies content, detects language, and exposes a
uniform list of timestamped, speaker-attributed entries.
"""

from storydigest.core.normalizer.content import classify_content
from storydigest.core.normalizer.formats import detect_format, parse_entries, parse_timestamp_ms
from storydigest.core.normalizer.language import detect_language
from storydigest.core.normalizer.normalizer import (
    STDIN_SENTINEL,
    InputNormalizer,
    read_input,
    render_entries,
)

__all__ = [
    "InputNormalizer",
    "read_input",
    "render_entries",
    "detect_format",
    "parse_entries",
    "parse_timestamp_ms",
    "classify_content",
    "detect_language",
    "STDIN_SENTINEL",
]
