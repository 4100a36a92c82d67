"""
Orphan resolution (pass 3).

Three sub-passes over meaningful statements without a topic:
1. Semantic expansion: re-score with synonym groups; accept a clear
   winner, mark near-ties ambiguous.
2. Clustering: group remaining orphans sharing enough significant words
   into new needs-review topics.
3. Catch-all: everything left goes to the persistent catch-all topic.

Coverage is recomputed after each sub-pass.
"""

from pydantic import BaseModel, Field

from storydigest.config import ResolutionConfig
from storydigest.core.extraction.association import rank_topics, score_topic
from storydigest.core.extraction.topics import extract_subject
from storydigest.core.extraction.vocabulary import synonyms_of
from storydigest.models.statement import (
    AssociationKind,
    CoverageReport,
    Statement,
    StatementSource,
    compute_coverage,
)
from storydigest.models.topic import Topic, TopicSource
from storydigest.utils.id_generator import generate_topic_id, next_index
from storydigest.utils.logger import get_logger
from storydigest.utils.text import contains_term, normalize_title, significant_words, words

logger = get_logger(__name__)

EXPANSION_SCORE = 0.7
CLUSTER_CONFIDENCE = 0.5


class CoverageStep(BaseModel):
    """Coverage snapshot after one sub-pass."""

    step: str
    coverage: CoverageReport


class OrphanReport(BaseModel):
    """Outcome of one orphan-resolution run."""

    initial_orphans: int = 0
    resolved_by_expansion: list[str] = Field(default_factory=list)
    ambiguous: list[str] = Field(default_factory=list)
    clustered: list[str] = Field(default_factory=list)
    catch_all: list[str] = Field(default_factory=list)
    new_topic_ids: list[str] = Field(default_factory=list)
    history: list[CoverageStep] = Field(default_factory=list)
    coverage: float = 100.0


def expansion_score(text: str, topic: Topic) -> float:
    """EXPANSION_SCORE when a synonym of any topic term appears in text."""
    terms = set(topic.entities) | set(topic.keywords) | set(words(topic.title))
    for term in terms:
        if any(contains_term(text, synonym) for synonym in synonyms_of(term)):
            return EXPANSION_SCORE
    return 0.0


def expanded_score(text: str, topic: Topic) -> float:
    return max(score_topic(text, topic), expansion_score(text, topic))


class OrphanResolver:
    """Three-pass fallback association for orphan statements."""

    def __init__(self, config: ResolutionConfig | None = None):
        """
        Initialize orphan resolver.

        Args:
            config: Resolution thresholds (defaults if omitted)
        """
        self.config = config or ResolutionConfig()

    def _snapshot(self, report: OrphanReport, step: str, statements: list[Statement]) -> None:
        coverage = compute_coverage(statements)
        report.history.append(CoverageStep(step=step, coverage=coverage))
        report.coverage = coverage.coverage_percentage
        logger.debug(f"Coverage after {step}: {coverage.coverage_percentage}%")

    def _expand(self, orphans: list[Statement], topics: list[Topic], report: OrphanReport) -> None:
        for statement in orphans:
            ranked = rank_topics(statement.text, topics, scorer=expanded_score)
            if not ranked:
                continue
            best_topic, best = ranked[0]
            runner_up = ranked[1][1] if len(ranked) > 1 else 0.0
            margin = round(best - runner_up, 2)

            if best >= self.config.accept_threshold and margin > self.config.clear_winner_margin:
                kind = (
                    AssociationKind.DIRECT
                    if score_topic(statement.text, best_topic) >= best
                    else AssociationKind.SEMANTIC_EXPANSION
                )
                statement.assign(best_topic.id, best, kind)
                report.resolved_by_expansion.append(statement.id)
            elif len(ranked) > 1 and margin < self.config.ambiguous_margin:
                statement.ambiguous = True
                statement.candidate_topic_ids = [
                    topic.id
                    for topic, score in ranked
                    if round(best - score, 2) < self.config.ambiguous_margin
                ]
                report.ambiguous.append(statement.id)

    def _cluster(
        self, orphans: list[Statement], topics: list[Topic], report: OrphanReport
    ) -> None:
        candidates = [s for s in orphans if s.is_orphan and not s.ambiguous]
        if len(candidates) < self.config.cluster_min_size:
            return
        vocab = {
            s.id: significant_words(s.text, self.config.cluster_min_word_length) for s in candidates
        }

        # single-linkage grouping via union-find
        parent = {s.id: s.id for s in candidates}

        def find(node: str) -> str:
            while parent[node] != node:
                parent[node] = parent[parent[node]]
                node = parent[node]
            return node

        for i, first in enumerate(candidates):
            for second in candidates[i + 1 :]:
                shared = vocab[first.id] & vocab[second.id]
                if len(shared) >= self.config.cluster_min_shared_words:
                    parent[find(second.id)] = find(first.id)

        groups: dict[str, list[Statement]] = {}
        for statement in candidates:
            groups.setdefault(find(statement.id), []).append(statement)

        index = next_index(topic.id for topic in topics)
        for members in groups.values():
            if len(members) < self.config.cluster_min_size:
                continue
            lead = members[0]
            phrase = extract_subject(lead.text) or " ".join(
                w for w in words(lead.text) if w in vocab[lead.id]
            )[:60]
            title = phrase[:1].upper() + phrase[1:] if phrase else f"Cluster {index}"

            topic = next((t for t in topics if t.normalized_title == normalize_title(title)), None)
            if topic is None:
                topic = Topic(
                    id=generate_topic_id(index),
                    title=title,
                    source=TopicSource.ORPHAN_RESOLUTION,
                    needs_review=True,
                )
                index += 1
                topics.append(topic)
                report.new_topic_ids.append(topic.id)

            counts: dict[str, int] = {}
            for member in members:
                for word in vocab[member.id]:
                    counts[word] = counts.get(word, 0) + 1
            topic.add_keywords(sorted(w for w, n in counts.items() if n > 1))

            for member in members:
                member.assign(topic.id, CLUSTER_CONFIDENCE, AssociationKind.CLUSTER)
                report.clustered.append(member.id)
            logger.debug(f"Clustered {len(members)} orphans into {topic.id} '{topic.title}'")

    def _catch_all(
        self, statements: list[Statement], topics: list[Topic], report: OrphanReport
    ) -> None:
        leftovers = [
            s
            for s in statements
            if s.is_orphan
            or (
                s.meaningful
                and s.source == StatementSource.TRANSCRIPT
                and s.topic_id is not None
                and s.association != AssociationKind.CATCH_ALL
                and s.confidence < self.config.catch_all_threshold
            )
        ]
        if not leftovers:
            return

        topic = next((t for t in topics if t.source == TopicSource.CATCH_ALL), None)
        if topic is None:
            topic = Topic(
                id=generate_topic_id(next_index(t.id for t in topics)),
                title=self.config.catch_all_title,
                source=TopicSource.CATCH_ALL,
            )
            topics.append(topic)
            report.new_topic_ids.append(topic.id)

        for statement in leftovers:
            statement.assign(topic.id, self.config.catch_all_threshold, AssociationKind.CATCH_ALL)
            report.catch_all.append(statement.id)

    def resolve(self, statements: list[Statement], topics: list[Topic]) -> OrphanReport:
        """
        Resolve orphans in place.

        Args:
            statements: All statements of the session
            topics: Topic list; new topics are appended

        Returns:
            OrphanReport with per-step coverage history
        """
        orphans = [s for s in statements if s.is_orphan]
        report = OrphanReport(initial_orphans=len(orphans))
        self._snapshot(report, "initial", statements)
        if not orphans:
            return report

        self._expand(orphans, topics, report)
        self._snapshot(report, "semantic_expansion", statements)

        self._cluster(orphans, topics, report)
        self._snapshot(report, "clustering", statements)

        self._catch_all(statements, topics, report)
        self._snapshot(report, "catch_all", statements)

        logger.info(
            f"Pass 3 resolved {len(report.resolved_by_expansion)} by expansion, "
            f"{len(report.clustered)} clustered, {len(report.catch_all)} to catch-all "
            f"({len(report.ambiguous)} ambiguous); coverage {report.coverage}%"
        )
        return report
