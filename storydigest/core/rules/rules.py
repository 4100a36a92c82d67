"""
Data-driven rule sets.

Every heuristic table (content types, fillers, requirement signals, vague
phrasing, correction phrases, follow-up triggers, ...) is an ordered list of
``Rule(pattern, weight, label)`` consumed by the generic functions below, so
tables can be extended without touching control flow.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Rule:
    """A single weighted pattern."""

    pattern: str
    weight: float = 1.0
    label: str = ""
    flags: int = re.IGNORECASE
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern, self.flags))

    @property
    def regex(self) -> re.Pattern:
        return self._compiled

    def count(self, text: str) -> int:
        return len(self._compiled.findall(text))

    def search(self, text: str) -> re.Match | None:
        return self._compiled.search(text)


class RuleSet:
    """Ordered collection of rules."""

    def __init__(self, name: str, rules: list[Rule]):
        self.name = name
        self.rules = list(rules)

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def extend(self, rules: list[Rule]) -> "RuleSet":
        """Return a new rule set with extra rules appended."""
        return RuleSet(self.name, self.rules + list(rules))

    def labels(self) -> list[str]:
        seen: list[str] = []
        for rule in self.rules:
            if rule.label not in seen:
                seen.append(rule.label)
        return seen

    def matches(self, text: str) -> bool:
        """True when any rule matches."""
        return any(rule.search(text) for rule in self.rules)

    def first_match(self, text: str) -> tuple[Rule, re.Match] | None:
        """First rule (in order) that matches, with its match."""
        for rule in self.rules:
            match = rule.search(text)
            if match:
                return rule, match
        return None

    def matching_labels(self, text: str) -> list[str]:
        """Labels of all matching rules, in rule order, without duplicates."""
        labels: list[str] = []
        for rule in self.rules:
            if rule.label not in labels and rule.search(text):
                labels.append(rule.label)
        return labels

    def weight_of_matches(self, text: str) -> float:
        """Sum of weights of matching rules (each rule counted once)."""
        return sum(rule.weight for rule in self.rules if rule.search(text))

    def score(self, text: str, normalize_by: int | None = None) -> dict[str, float]:
        """
        Score text per label: sum(weight * hit count).

        Args:
            text: Text to scan
            normalize_by: Optional divisor (e.g. word count); scores are
                reported per 100 units when given

        Returns:
            Mapping label -> score for labels with at least one hit
        """
        scores: dict[str, float] = defaultdict(float)
        for rule in self.rules:
            hits = rule.count(text)
            if hits:
                scores[rule.label] += rule.weight * hits
        if normalize_by:
            return {label: value / normalize_by * 100 for label, value in scores.items()}
        return dict(scores)


def best_label(scores: dict[str, float], threshold: float = 0.0) -> tuple[str | None, float]:
    """
    Highest-scoring label above threshold.

    Ties keep the label that was inserted first.
    """
    best: str | None = None
    best_score = 0.0
    for label, value in scores.items():
        if value > best_score:
            best, best_score = label, value
    if best is None or best_score < threshold:
        return None, best_score
    return best, best_score
