"""
Tests for text helpers used by the heuristic passes.
"""

from storydigest.utils.text import (
    contains_term,
    content_words,
    normalize_text,
    numbers,
    significant_words,
    word_count,
    words,
)


class TestWords:
    def test_words_lowercased(self):
        assert words("The Dashboard's table") == ["the", "dashboard's", "table"]

    def test_content_words_drop_stopwords_and_numbers(self):
        result = content_words("The table should show 10 orders")
        assert result == {"table", "show", "orders"}

    def test_significant_words_min_length(self):
        assert significant_words("add an export button", min_length=5) == {"export", "button"}

    def test_numbers(self):
        assert numbers("limit 10 rows, 2.5 seconds") == {"10", "2.5"}

    def test_word_count(self):
        assert word_count("  one two   three ") == 3
        assert word_count("") == 0


class TestMatching:
    def test_normalize_text(self):
        assert normalize_text("  Export, Button!! ") == "export button"

    def test_contains_term_whole_word(self):
        """Test terms match whole words only."""
        assert contains_term("Show the tables", "table")
        assert not contains_term("A timetable view", "table")

    def test_contains_term_phrase(self):
        assert contains_term("open the view   details panel", "view details")

    def test_contains_term_empty(self):
        assert not contains_term("anything", "")
