"""
Tests for input normalization.

Tests cover:
1. Format detection (plain text, WebVTT, chat export, JSON meeting)
2. Entry parsing with timestamps and speakers
3. Content-type classification
4. Language detection
5. Reading from files and stdin
"""

import io
import json

import pytest

from storydigest.config import Config, TokenizerConfig
from storydigest.core.normalizer import (
    InputNormalizer,
    classify_content,
    detect_format,
    detect_language,
    parse_timestamp_ms,
    read_input,
)
from storydigest.models.input import ContentType, SourceFormat
from storydigest.utils.exceptions import ValidationError
from tests.conftest import DASHBOARD_TRANSCRIPT, MEETING_TRANSCRIPT

WEBVTT_SAMPLE = """WEBVTT

00:00:01.000 --> 00:00:04.000
<v Alice>The checkout page should show the total

00:00:04.500 --> 00:00:07.000
<v Alice>including taxes.</v>

00:00:08.000 --> 00:00:10.000
Bob: Sounds good.
"""

JSON_SAMPLE = json.dumps(
    {
        "segments": [
            {"speaker": "Ana", "start": 1.5, "text": "Add a search bar to the header."},
            {"speaker": {"name": "Ben"}, "start_ms": 4000, "text": "Okay."},
        ]
    }
)


@pytest.fixture
def normalizer():
    return InputNormalizer(Config(tokenizer=TokenizerConfig(provider="approximate")))


class TestFormatDetection:
    """Tests for source format detection."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            (DASHBOARD_TRANSCRIPT, SourceFormat.PLAIN_TEXT),
            (WEBVTT_SAMPLE, SourceFormat.SUBTITLE),
            (MEETING_TRANSCRIPT, SourceFormat.CHAT_EXPORT),
            (JSON_SAMPLE, SourceFormat.JSON_MEETING),
            ("", SourceFormat.PLAIN_TEXT),
        ],
    )
    def test_detect_format(self, text, expected):
        assert detect_format(text) == expected

    def test_speaker_colon_lines(self):
        text = "Alice: We need a login page.\nBob: With Google sign in.\nAlice: Good."
        assert detect_format(text) == SourceFormat.CHAT_EXPORT

    def test_json_without_text_is_plain(self):
        assert detect_format('{"count": 3}') == SourceFormat.PLAIN_TEXT


class TestTimestamps:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("01:02:03,500", 3723500),
            ("05:10", 310000),
            ("2:30 PM", 52200000),
            ("12:05 AM", 300000),
            ("garbage", None),
        ],
    )
    def test_parse_timestamp_ms(self, value, expected):
        assert parse_timestamp_ms(value) == expected


class TestNormalize:
    """Tests for the full normalizer."""

    def test_plain_text(self, normalizer):
        result = normalizer.normalize(DASHBOARD_TRANSCRIPT)

        assert result.format == SourceFormat.PLAIN_TEXT
        assert result.entries == []
        assert result.language.language == "en"
        assert result.text == DASHBOARD_TRANSCRIPT.strip()
        assert result.word_count == len(DASHBOARD_TRANSCRIPT.split())
        assert result.token_count == int(len(result.text) / 4.0)

    def test_subtitle_cues_merge_continuations(self, normalizer):
        """Test a cue that continues the same speaker's sentence is joined."""
        result = normalizer.normalize(WEBVTT_SAMPLE)

        assert result.format == SourceFormat.SUBTITLE
        assert [(e.speaker, e.text) for e in result.entries] == [
            ("Alice", "The checkout page should show the total including taxes."),
            ("Bob", "Sounds good."),
        ]
        assert result.entries[0].timestamp_ms == 1000
        assert result.text.splitlines()[1] == "[00:00:08] Bob: Sounds good."

    def test_chat_export(self, normalizer):
        result = normalizer.normalize(MEETING_TRANSCRIPT)

        assert result.format == SourceFormat.CHAT_EXPORT
        assert len(result.entries) == 4
        assert result.entries[1].speaker == "Bob"
        assert result.entries[1].timestamp_ms == 9000
        assert result.has_entries

    def test_json_meeting(self, normalizer):
        result = normalizer.normalize(JSON_SAMPLE)

        assert result.format == SourceFormat.JSON_MEETING
        assert [(e.timestamp_ms, e.speaker) for e in result.entries] == [
            (1500, "Ana"),
            (4000, "Ben"),
        ]

    def test_windows_line_endings(self, normalizer):
        result = normalizer.normalize(MEETING_TRANSCRIPT.replace("\n", "\r\n"))
        assert len(result.entries) == 4

    def test_empty_input(self, normalizer):
        result = normalizer.normalize("")

        assert result.format == SourceFormat.PLAIN_TEXT
        assert result.word_count == 0
        assert result.language.language == "unknown"


class TestContentType:
    def test_user_story(self):
        content, score = classify_content(
            "As a shopper, I want to save my cart so that I can buy later."
        )
        assert content == ContentType.USER_STORY
        assert score > 2.0

    def test_unknown_below_threshold(self):
        assert classify_content("hello there")[0] == ContentType.UNKNOWN

    def test_empty(self):
        assert classify_content("") == (ContentType.UNKNOWN, 0.0)


class TestLanguage:
    """Tests for language detection."""

    def test_spanish(self):
        result = detect_language(
            "El usuario debe poder exportar la tabla de pedidos con un botón en la parte superior."
        )
        assert result.language == "es"
        assert result.script == "latin"
        assert 0.0 < result.confidence <= 1.0

    def test_cyrillic_script(self):
        result = detect_language("Привет, как дела? Мы должны добавить кнопку.")
        assert result.language == "ru"
        assert result.script == "cyrillic"

    def test_no_letters(self):
        result = detect_language("12345 !!!")
        assert result.language == "unknown"
        assert result.confidence == 0.0

    def test_short_input_lower_confidence(self):
        long_text = "The dashboard should show the table of orders and the export button."
        assert detect_language("the table").confidence < detect_language(long_text).confidence


class TestReadInput:
    def test_read_stdin(self):
        assert read_input("-", io.StringIO("hello")) == "hello"

    def test_read_file_strips_bom(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("\ufeffThe table should sort.", encoding="utf-8")
        assert read_input(str(path)) == "The table should sort."

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            read_input(str(tmp_path / "missing.txt"))
        assert exc_info.value.context["source"].endswith("missing.txt")
