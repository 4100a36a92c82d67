"""
Tokenizer module for token counting.

Provides accurate token counting using tiktoken with fast approximation
fallback. Used by the chunk planner to decide whether an input is large
enough to split.
"""

from storydigest.config import TokenizerConfig
from storydigest.core.tokenizer.tokenizer import Tokenizer

__all__ = ["Tokenizer", "TokenizerConfig"]
