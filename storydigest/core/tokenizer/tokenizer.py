"""
Token counting utilities for chunk planning.

Uses tiktoken for accurate OpenAI-compatible token counting with
character-based approximation as fallback.
"""

import tiktoken

from storydigest.config import TokenizerConfig
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)


class Tokenizer:
    """
    Universal token counter.

    Provides accurate token counting using tiktoken, or a cheap
    characters-per-token estimate when configured as "approximate".

    Usage:
        tokenizer = Tokenizer()
        count = tokenizer.count_tokens("Hello world")
        too_big = tokenizer.exceeds("Long text...", 4500)
    """

    def __init__(self, config: TokenizerConfig | None = None):
        """
        Initialize tokenizer with configuration.

        Args:
            config: Optional tokenizer configuration. Uses defaults if not provided.
        """
        self.config = config or TokenizerConfig()
        self._encoder: tiktoken.Encoding | None = None

    @property
    def encoder(self) -> tiktoken.Encoding:
        """
        Lazy-load tiktoken encoder.

        Returns:
            Tiktoken encoding instance
        """
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.config.model)
        return self._encoder

    def count_tokens(self, text: str) -> int:
        """
        Count tokens accurately using tiktoken.

        Args:
            text: Text to count tokens for

        Returns:
            Exact token count
        """
        if not text:
            return 0

        if self.config.provider == "approximate":
            return self.estimate_tokens(text)

        return len(self.encoder.encode(text, disallowed_special=()))

    def count_tokens_or_estimate(self, text: str) -> int:
        """
        Count tokens, degrading to the character estimate if the encoding
        cannot be loaded (e.g. offline without a cached BPE file).
        """
        try:
            return self.count_tokens(text)
        except Exception as e:
            logger.warning(f"tiktoken unavailable ({e}), using approximate token count")
            self.config = self.config.model_copy(update={"provider": "approximate"})
            return self.estimate_tokens(text)

    def estimate_tokens(self, text: str) -> int:
        """
        Fast approximate token count using character ratio.

        Args:
            text: Text to estimate tokens for

        Returns:
            Approximate token count
        """
        if not text:
            return 0
        return int(len(text) / self.config.chars_per_token)

    def exceeds(self, text: str, threshold: int) -> bool:
        """
        Check whether text is at or above a token threshold.

        Uses two-stage detection:
        1. Fast estimate to quickly reject small content
        2. Accurate count only if estimate is near threshold

        Args:
            text: Content to check
            threshold: Token threshold

        Returns:
            True if content is >= threshold tokens
        """
        if not text:
            return False

        estimate = self.estimate_tokens(text)
        if estimate < threshold * 0.8:
            return False

        return self.count_tokens(text) >= threshold
