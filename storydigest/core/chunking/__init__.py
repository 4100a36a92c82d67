"""
Chunk planning module.

Splits large inputs at natural boundaries and merges per-chunk results.
"""

from storydigest.core.chunking.merge import (
    ChunkExtraction,
    MergedExtraction,
    merge_chunk_results,
    statement_signature,
)
from storydigest.core.chunking.planner import ChunkPlanner

__all__ = [
    "ChunkPlanner",
    "ChunkExtraction",
    "MergedExtraction",
    "merge_chunk_results",
    "statement_signature",
]
