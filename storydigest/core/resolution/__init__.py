"""
Orphan and contradiction resolution module.
"""

from storydigest.core.resolution.contradictions import (
    ANTONYM_PAIRS,
    ContradictionDetector,
    ContradictionResolver,
    apply_contradiction_answer,
    parse_resolution_choice,
)
from storydigest.core.resolution.orphans import (
    CoverageStep,
    OrphanReport,
    OrphanResolver,
    expansion_score,
)

__all__ = [
    "OrphanResolver",
    "OrphanReport",
    "CoverageStep",
    "expansion_score",
    "ContradictionDetector",
    "ContradictionResolver",
    "apply_contradiction_answer",
    "parse_resolution_choice",
    "ANTONYM_PAIRS",
]
