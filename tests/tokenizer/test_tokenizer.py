"""
Tests for Tokenizer class.

Tests cover:
1. Approximate token counting
2. Threshold detection
3. Degrading to the estimate when the encoding cannot load
"""

import pytest

from storydigest.config import TokenizerConfig
from storydigest.core.tokenizer import Tokenizer


@pytest.fixture
def tokenizer():
    return Tokenizer(TokenizerConfig(provider="approximate"))


class TestTokenCounting:
    """Tests for token counting functionality."""

    def test_count_tokens_empty(self, tokenizer):
        """Test counting tokens in empty string."""
        assert tokenizer.count_tokens("") == 0

    def test_approximate_uses_char_ratio(self, tokenizer):
        """Test the approximate provider divides characters by ratio."""
        assert tokenizer.count_tokens("x" * 400) == 100

    def test_custom_ratio(self):
        tokenizer = Tokenizer(TokenizerConfig(provider="approximate", chars_per_token=2.0))
        assert tokenizer.estimate_tokens("abcdefgh") == 4

    def test_count_tokens_deterministic(self, tokenizer):
        """Test token counting is deterministic."""
        text = "The quick brown fox jumps over the lazy dog."
        assert tokenizer.count_tokens(text) == tokenizer.count_tokens(text)


class TestThreshold:
    """Tests for threshold detection."""

    def test_small_text_below(self, tokenizer):
        assert not tokenizer.exceeds("short note", 100)

    def test_large_text_above(self, tokenizer):
        assert tokenizer.exceeds("word " * 1000, 1000)

    def test_empty_never_exceeds(self, tokenizer):
        assert not tokenizer.exceeds("", 0)


class TestDegradation:
    """Tests for falling back when tiktoken cannot load its encoding."""

    def test_falls_back_to_estimate(self, monkeypatch):
        """Test an encoder failure switches the tokenizer to approximate."""
        tokenizer = Tokenizer(TokenizerConfig(provider="tiktoken"))

        def broken(name):
            raise RuntimeError("offline")

        monkeypatch.setattr("storydigest.core.tokenizer.tokenizer.tiktoken.get_encoding", broken)

        assert tokenizer.count_tokens_or_estimate("x" * 40) == 10
        assert tokenizer.config.provider == "approximate"
