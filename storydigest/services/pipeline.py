"""
Digestion passes - ingestion, extraction, association, orphan and
contradiction resolution.

Each pass runs inside the session phase state machine and commits its
documents before the phase is marked completed.
"""

from storydigest.config import Config
from storydigest.core.chunking import ChunkExtraction, ChunkPlanner, merge_chunk_results
from storydigest.core.clarification import QuestionIds, contradiction_question
from storydigest.core.extraction import (
    StatementAssociator,
    TopicExtractor,
    split_chunk_statements,
    split_statements,
)
from storydigest.core.normalizer import InputNormalizer
from storydigest.core.resolution import (
    ContradictionDetector,
    ContradictionResolver,
    OrphanReport,
    OrphanResolver,
)
from storydigest.core.store import DocumentStore
from storydigest.core.store.base import (
    CHUNKING,
    CLARIFICATIONS,
    CONTRADICTIONS,
    INPUT,
    STATEMENTS,
    TOPICS,
)
from storydigest.core.tokenizer.tokenizer import Tokenizer
from storydigest.models.chunk import ChunkPlan
from storydigest.models.clarification import ClarificationSet
from storydigest.models.contradiction import ContradictionSet, ContradictionState
from storydigest.models.input import NormalizedInput
from storydigest.models.session import Phase, Session
from storydigest.models.statement import CoverageReport, StatementMap, compute_coverage
from storydigest.models.topic import TopicSet
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.utils.exceptions import PrerequisiteError, ValidationError
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

# phase -> (phase that must have completed, command that runs it)
PREREQUISITES: dict[Phase, tuple[Phase, str]] = {
    Phase.ASSOCIATION: (Phase.EXTRACTION, "new <input>"),
    Phase.ORPHAN_RESOLUTION: (Phase.ASSOCIATION, "pass2"),
    Phase.CONTRADICTION_RESOLUTION: (Phase.ORPHAN_RESOLUTION, "pass3"),
    Phase.CLARIFICATION: (Phase.CONTRADICTION_RESOLUTION, "pass4"),
    Phase.STORY_GENERATION: (Phase.CONTRADICTION_RESOLUTION, "pass4"),
    Phase.REVIEW: (Phase.STORY_GENERATION, "generate-stories"),
    Phase.FINALIZED: (Phase.STORY_GENERATION, "generate-stories"),
}


def require_phase(session: Session, phase: Phase) -> None:
    """
    Fail fast when the prerequisite of a phase has not completed.

    Raises:
        PrerequisiteError: Names the command that must run first
    """
    prerequisite = PREREQUISITES.get(phase)
    if prerequisite is None:
        return
    required, command = prerequisite
    if not session.is_completed(required):
        raise PrerequisiteError(phase.value.replace("_", " "), command)


class DigestPipeline:
    """Runs the digestion passes against explicit session handles."""

    def __init__(self, store: DocumentStore, sessions: SessionManager, config: Config):
        """
        Initialize pipeline.

        Args:
            store: Document store
            sessions: Session manager for phase bookkeeping
            config: Configuration
        """
        self.store = store
        self.sessions = sessions
        self.config = config

        self.tokenizer = Tokenizer(config.tokenizer)
        self.normalizer = InputNormalizer(config, self.tokenizer)
        self.planner = ChunkPlanner(config.chunking, self.tokenizer)
        self.extractor = TopicExtractor()
        self.associator = StatementAssociator(config.extraction)
        self.orphan_resolver = OrphanResolver(config.resolution)
        self.detector = ContradictionDetector()
        self.resolver = ContradictionResolver(config.resolution)

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT ACCESS
    # ═══════════════════════════════════════════════════════════

    def topics(self, handle: SessionHandle) -> TopicSet:
        return self.store.load_or_default(TOPICS, TopicSet, session_id=handle.session_id)

    def statements(self, handle: SessionHandle) -> StatementMap:
        return self.store.load_or_default(STATEMENTS, StatementMap, session_id=handle.session_id)

    def contradictions(self, handle: SessionHandle) -> ContradictionSet:
        return self.store.load_or_default(
            CONTRADICTIONS, ContradictionSet, session_id=handle.session_id
        )

    def coverage(self, handle: SessionHandle) -> CoverageReport:
        return self.statements(handle).coverage()

    # ═══════════════════════════════════════════════════════════
    # INGESTION + PASS 1
    # ═══════════════════════════════════════════════════════════

    def ingest(self, handle: SessionHandle, raw: str) -> NormalizedInput:
        """Normalize input and plan chunks."""
        if not raw or not raw.strip():
            raise ValidationError("Input is empty", context={"session_id": handle.session_id})

        with self.sessions.phase(handle, Phase.INGESTION) as session:
            normalized = self.normalizer.normalize(raw)
            plan = (
                self.planner.plan(normalized.text)
                if self.planner.needs_chunking(normalized.text)
                else ChunkPlan(
                    total_words=normalized.word_count,
                    total_tokens=normalized.token_count,
                    total_chars=normalized.char_count,
                )
            )
            self.store.save(INPUT, normalized, handle.session_id)
            self.store.save(CHUNKING, plan, handle.session_id)

            session.input.source_format = normalized.format
            session.input.content_type = normalized.content_type
            session.input.language = normalized.language.language
            session.input.language_confidence = normalized.language.confidence
            session.input.word_count = normalized.word_count
            session.input.token_count = normalized.token_count
            session.input.char_count = normalized.char_count
            session.input.chunked = plan.chunked
            session.phases[Phase.INGESTION].summary = {
                "format": normalized.format.value,
                "language": normalized.language.language,
                "chunks": len(plan.chunks),
            }
        return normalized

    def extract(self, handle: SessionHandle) -> tuple[TopicSet, StatementMap]:
        """Pass 1: statements and topics, chunk by chunk when the input is large."""
        normalized = self.store.load(INPUT, NormalizedInput, handle.session_id)
        if normalized is None:
            raise PrerequisiteError("extraction", "new <input>")
        plan = self.store.load_or_default(CHUNKING, ChunkPlan, session_id=handle.session_id)
        min_words = self.config.extraction.min_statement_words

        with self.sessions.phase(handle, Phase.EXTRACTION) as session:
            if plan.chunked:
                results = []
                per_chunk = split_chunk_statements(normalized, plan.chunks, min_words)
                for chunk, (owned, context) in zip(plan.chunks, per_chunk):
                    # Overlap statements inform topics only; the previous chunk owns them
                    results.append(
                        ChunkExtraction(
                            chunk_id=chunk.id,
                            topics=self.extractor.extract(context + owned),
                            statements=owned,
                        )
                    )
                merged = merge_chunk_results(results)
                topics, statements = merged.topics, merged.statements
                plan.merge_summary = merged.summary
                self.store.save(CHUNKING, plan, handle.session_id)
            else:
                statements = split_statements(normalized, min_words)
                topics = self.extractor.extract(statements)

            topic_set = TopicSet(topics=topics)
            statement_map = StatementMap(statements=statements)
            self._commit(handle, topic_set, statement_map)
            session.phases[Phase.EXTRACTION].summary = {
                "topics": len(topics),
                "statements": len(statements),
                "meaningful": len(statement_map.meaningful()),
            }
        return topic_set, statement_map

    # ═══════════════════════════════════════════════════════════
    # PASS 2-4
    # ═══════════════════════════════════════════════════════════

    def associate(self, handle: SessionHandle) -> CoverageReport:
        """Pass 2: statement-to-topic association."""
        require_phase(self.sessions.load(handle), Phase.ASSOCIATION)
        topic_set, statement_map = self.topics(handle), self.statements(handle)

        with self.sessions.phase(handle, Phase.ASSOCIATION) as session:
            self.associator.associate(statement_map.statements, topic_set.active())
            self._commit(handle, topic_set, statement_map)
            coverage = statement_map.coverage()
            session.phases[Phase.ASSOCIATION].summary = coverage.model_dump()
        return coverage

    def resolve_orphans(self, handle: SessionHandle) -> OrphanReport:
        """Pass 3: semantic expansion, clustering, catch-all."""
        require_phase(self.sessions.load(handle), Phase.ORPHAN_RESOLUTION)
        topic_set, statement_map = self.topics(handle), self.statements(handle)

        with self.sessions.phase(handle, Phase.ORPHAN_RESOLUTION) as session:
            report = self.orphan_resolver.resolve(statement_map.statements, topic_set.topics)
            self._commit(handle, topic_set, statement_map)
            session.phases[Phase.ORPHAN_RESOLUTION].summary = {
                "initial_orphans": report.initial_orphans,
                "new_topics": len(report.new_topic_ids),
                "ambiguous": len(report.ambiguous),
                "coverage": report.coverage,
            }
        return report

    def resolve_contradictions(self, handle: SessionHandle) -> ContradictionSet:
        """
        Pass 4: detect and resolve contradictions.

        Contradictions that cannot be auto-resolved get a contradiction
        question in the clarification set.
        """
        require_phase(self.sessions.load(handle), Phase.CONTRADICTION_RESOLUTION)
        topic_set, statement_map = self.topics(handle), self.statements(handle)
        contradiction_set = self.contradictions(handle)
        clarifications = self.store.load_or_default(
            CLARIFICATIONS, ClarificationSet, session_id=handle.session_id
        )
        language = self.sessions.load(handle).input.language

        with self.sessions.phase(handle, Phase.CONTRADICTION_RESOLUTION) as session:
            found = self.detector.detect(
                statement_map.statements, topic_set.active(), contradiction_set.contradictions
            )
            ids = QuestionIds(clarifications)
            for contradiction in found:
                first = statement_map.get(contradiction.first_id)
                second = statement_map.get(contradiction.second_id)
                topic = topic_set.get(contradiction.topic_id)
                self.resolver.resolve(contradiction, first, second, topic)
                if contradiction.state == ContradictionState.CLARIFICATION_NEEDED:
                    question = contradiction_question(
                        contradiction,
                        first,
                        second,
                        topic,
                        ids.take(),
                        language=language,
                        default_language=self.config.clarification.default_language,
                    )
                    contradiction.question_id = question.id
                    clarifications.questions.append(question)
                contradiction_set.contradictions.append(contradiction)

            self.store.save(CONTRADICTIONS, contradiction_set, handle.session_id)
            self.store.save(CLARIFICATIONS, clarifications, handle.session_id)
            self._commit(handle, topic_set, statement_map)
            states: dict[str, int] = {}
            for contradiction in found:
                states[contradiction.state.value] = states.get(contradiction.state.value, 0) + 1
            session.phases[Phase.CONTRADICTION_RESOLUTION].summary = {
                "detected": len(found),
                **states,
            }
        return contradiction_set

    def _commit(self, handle: SessionHandle, topic_set: TopicSet, statement_map: StatementMap) -> None:
        self.store.save(TOPICS, topic_set, handle.session_id)
        self.store.save(STATEMENTS, statement_map, handle.session_id)
        coverage = compute_coverage(statement_map.statements)
        logger.debug(
            f"[{handle.session_id}] {coverage.mapped}/{coverage.meaningful} mapped "
            f"({coverage.coverage_percentage}%)"
        )
