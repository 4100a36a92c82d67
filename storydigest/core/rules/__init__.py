"""
Rule-set module.

Heuristic classification tables are data: ordered ``Rule(pattern, weight,
label)`` lists consumed by the generic ``RuleSet`` scorer.
"""

from storydigest.core.rules.rules import Rule, RuleSet, best_label

__all__ = ["Rule", "RuleSet", "best_label"]
