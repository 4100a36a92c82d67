"""
Contradiction detection and resolution (pass 4).

Detection is limited to pairs of active statements in the same topic:
- opposite values from a fixed antonym table (left/right, show/hide, ...)
- numeric conflicts: more than two shared non-trivial words, different numbers

Resolution confidence:
- correction phrase in the later statement: +0.7
- same speaker: +0.15
- large positional distance: +0.1
- later statement re-mentions the contested subject: +0.1
Additive language in the later statement overrides everything and marks
the pair not_contradiction.
"""

import re

from storydigest.config import ResolutionConfig
from storydigest.core.rules.tables import ADDITIVE_RULES, CORRECTION_RULES
from storydigest.models.contradiction import (
    Contradiction,
    ContradictionState,
    ContradictionType,
    ResolutionChoice,
)
from storydigest.models.statement import Statement, StatementSource
from storydigest.models.topic import Topic
from storydigest.utils.id_generator import generate_contradiction_id, next_index
from storydigest.utils.logger import get_logger
from storydigest.utils.text import STOPWORDS, contains_term, content_words, numbers, words

logger = get_logger(__name__)

ANTONYM_PAIRS: tuple[tuple[str, str], ...] = (
    ("left", "right"),
    ("top", "bottom"),
    ("show", "hide"),
    ("enable", "disable"),
    ("enabled", "disabled"),
    ("required", "optional"),
    ("ascending", "descending"),
    ("public", "private"),
    ("allow", "deny"),
    ("visible", "hidden"),
    ("include", "exclude"),
    ("always", "never"),
    ("light", "dark"),
    ("single", "multiple"),
    ("horizontal", "vertical"),
    ("open", "closed"),
    ("minimum", "maximum"),
    ("before", "after"),
    ("manual", "automatic"),
    ("sync", "async"),
)

CORRECTION_WEIGHT = 0.7
SAME_SPEAKER_WEIGHT = 0.15
DISTANCE_WEIGHT = 0.1
REMENTION_WEIGHT = 0.1
NUMERIC_MIN_SHARED_WORDS = 3


def _opposite(first: str, second: str) -> tuple[str, str] | None:
    """(value in first, value in second) for the first antonym pair split across the texts."""
    for a, b in ANTONYM_PAIRS:
        for x, y in ((a, b), (b, a)):
            if (
                contains_term(first, x)
                and contains_term(second, y)
                and not contains_term(first, y)
                and not contains_term(second, x)
            ):
                return x, y
    return None


class ContradictionDetector:
    """Finds opposite-value and numeric conflicts within a topic."""

    def detect(
        self,
        statements: list[Statement],
        topics: list[Topic],
        known: list[Contradiction] | None = None,
    ) -> list[Contradiction]:
        """
        Detect new contradictions.

        Args:
            statements: All statements of the session
            topics: Topics to scan
            known: Already recorded contradictions; their pairs are skipped

        Returns:
            Newly detected contradictions (state pending)
        """
        known = known or []
        seen = {frozenset(c.pair) for c in known}
        index = next_index(c.id for c in known)
        found: list[Contradiction] = []

        for topic in topics:
            members = sorted(
                (
                    s
                    for s in statements
                    if s.topic_id == topic.id
                    and s.is_active
                    and s.source == StatementSource.TRANSCRIPT
                ),
                key=lambda s: s.position,
            )
            for i, first in enumerate(members):
                for second in members[i + 1 :]:
                    if frozenset((first.id, second.id)) in seen:
                        continue
                    contradiction = self._compare(first, second, topic)
                    if contradiction is None:
                        continue
                    contradiction.id = generate_contradiction_id(index)
                    index += 1
                    seen.add(frozenset(contradiction.pair))
                    found.append(contradiction)

        logger.info(f"Detected {len(found)} new contradictions")
        return found

    def _compare(self, first: Statement, second: Statement, topic: Topic) -> Contradiction | None:
        opposite = _opposite(first.text, second.text)
        if opposite:
            shared = (content_words(first.text) & content_words(second.text)) - set(opposite)
            if shared:
                return Contradiction(
                    id="",
                    topic_id=topic.id,
                    first_id=first.id,
                    second_id=second.id,
                    type=ContradictionType.OPPOSITE_VALUES,
                    attribute=self._attribute(*opposite),
                    values=list(opposite),
                )

        first_numbers, second_numbers = numbers(first.text), numbers(second.text)
        if first_numbers and second_numbers and first_numbers != second_numbers:
            shared = content_words(first.text) & content_words(second.text)
            if len(shared) >= NUMERIC_MIN_SHARED_WORDS:
                values = [", ".join(sorted(first_numbers)), ", ".join(sorted(second_numbers))]
                return Contradiction(
                    id="",
                    topic_id=topic.id,
                    first_id=first.id,
                    second_id=second.id,
                    type=ContradictionType.NUMERIC_CONFLICT,
                    attribute="/".join(values),
                    values=values,
                )
        return None

    @staticmethod
    def _attribute(x: str, y: str) -> str:
        """Attribute label in antonym-table order, e.g. left/right."""
        for a, b in ANTONYM_PAIRS:
            if {a, b} == {x, y}:
                return f"{a}/{b}"
        return f"{x}/{y}"


class ContradictionResolver:
    """Scores and resolves detected contradictions."""

    def __init__(self, config: ResolutionConfig | None = None):
        self.config = config or ResolutionConfig()

    def score(
        self, first: Statement, second: Statement, topic: Topic | None = None
    ) -> tuple[float, list[str], bool]:
        """
        Resolution confidence for a pair.

        Returns:
            (confidence, signals, additive)
        """
        additive = ADDITIVE_RULES.matching_labels(second.text)
        if additive:
            return 0.0, [f"additive:{label}" for label in additive], True

        confidence = 0.0
        signals: list[str] = []
        correction = CORRECTION_RULES.matching_labels(second.text)
        if correction:
            confidence += CORRECTION_WEIGHT
            signals.append(f"correction:{correction[0]}")
        # unattributed text is treated as a single author
        if first.speaker == second.speaker:
            confidence += SAME_SPEAKER_WEIGHT
            signals.append("same_speaker")
        if second.position - first.position >= self.config.distance_threshold:
            confidence += DISTANCE_WEIGHT
            signals.append("distance")
        if topic is not None and self._rementions(second.text, topic):
            confidence += REMENTION_WEIGHT
            signals.append("re_mention")
        return round(min(confidence, 1.0), 2), signals, False

    @staticmethod
    def _rementions(text: str, topic: Topic) -> bool:
        terms = set(topic.entities) | {
            w for w in words(topic.title) if w not in STOPWORDS and len(w) > 2
        }
        return any(contains_term(text, term) for term in terms)

    def resolve(
        self,
        contradiction: Contradiction,
        first: Statement,
        second: Statement,
        topic: Topic | None = None,
    ) -> Contradiction:
        """
        Resolve in place: auto-resolve, dismiss, or escalate.

        Auto-resolution makes the later statement authoritative. A statement
        holds at most one supersede link, so a pair whose later statement
        already supersedes something else is escalated instead.
        """
        confidence, signals, additive = self.score(first, second, topic)
        contradiction.confidence = confidence
        contradiction.signals = signals

        if additive:
            contradiction.state = ContradictionState.NOT_CONTRADICTION
        elif (
            confidence >= self.config.auto_resolve_threshold
            and second.supersedes is None
            and not first.superseded
        ):
            supersede(loser=first, winner=second)
            contradiction.state = ContradictionState.AUTO_RESOLVED
            contradiction.resolution = ResolutionChoice.KEEP_SECOND
            contradiction.winner_id = second.id
        else:
            contradiction.state = ContradictionState.CLARIFICATION_NEEDED

        logger.debug(
            f"{contradiction.id} {contradiction.attribute}: {contradiction.state.value} "
            f"(confidence {confidence}, signals {signals})"
        )
        return contradiction


def supersede(
    loser: Statement, winner: Statement, statements: list[Statement] | None = None
) -> None:
    previous = loser.superseded_by
    if previous is not None and previous != winner.id:
        # The old winner no longer supersedes the loser
        for statement in statements or []:
            if statement.id == previous and statement.supersedes == loser.id:
                statement.supersedes = None
    loser.superseded = True
    loser.superseded_by = winner.id
    if winner.supersedes is None:
        winner.supersedes = loser.id


def _clear_link(first: Statement, second: Statement) -> None:
    for a, b in ((first, second), (second, first)):
        if a.superseded_by == b.id:
            a.superseded = False
            a.superseded_by = None
        if a.supersedes == b.id:
            a.supersedes = None


def parse_resolution_choice(answer: str, contradiction: Contradiction) -> ResolutionChoice | None:
    """
    Map a free-text answer to keep_first / keep_second / keep_both.

    Accepts option numbers, "first"/"second", "both", or one of the values.
    """
    text = answer.strip().lower()
    if not text:
        return None
    if re.search(r"\b(both|all of them|keep both|either)\b", text) or re.match(r"^3\b", text):
        return ResolutionChoice.KEEP_BOTH
    if re.match(r"^(1|a)\b", text) or re.search(r"\b(first|earlier|original|former)\b", text):
        return ResolutionChoice.KEEP_FIRST
    if re.match(r"^(2|b)\b", text) or re.search(r"\b(second|later|latest|latter|new(er)?)\b", text):
        return ResolutionChoice.KEEP_SECOND
    if len(contradiction.values) == 2:
        first_value, second_value = contradiction.values
        has_first = contains_term(text, first_value.lower())
        has_second = contains_term(text, second_value.lower())
        if has_first and not has_second:
            return ResolutionChoice.KEEP_FIRST
        if has_second and not has_first:
            return ResolutionChoice.KEEP_SECOND
    return None


def apply_contradiction_answer(
    contradiction: Contradiction,
    choice: ResolutionChoice,
    first: Statement,
    second: Statement,
    statements: list[Statement] | None = None,
) -> Contradiction:
    """
    Apply the user's decision; only keep_both leaves both statements active.

    statements is the full statement list, used to unlink a loser from a
    statement that superseded it in an earlier resolution.
    """
    _clear_link(first, second)
    if choice == ResolutionChoice.KEEP_FIRST:
        supersede(loser=second, winner=first, statements=statements)
        contradiction.winner_id = first.id
    elif choice == ResolutionChoice.KEEP_SECOND:
        supersede(loser=first, winner=second, statements=statements)
        contradiction.winner_id = second.id
    else:
        contradiction.winner_id = None
    contradiction.resolution = choice
    contradiction.state = ContradictionState.USER_RESOLVED
    logger.info(f"{contradiction.id} resolved by user: {choice.value}")
    return contradiction
