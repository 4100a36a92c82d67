"""
Data models for StoryDigest.

One tagged record per persisted document, validated at the read boundary:
- Session, SessionRegistry, ActiveSessionPointer: lifecycle and registry
- NormalizedInput: format/language-tagged transcript entries
- ChunkPlan, Chunk: large-input planning
- TopicSet, Topic: requirement clusters
- StatementMap, Statement: atomic sentences, the unit of traceability
- ContradictionSet, Contradiction: opposite statement pairs
- ClarificationSet, ClarificationQuestion: gap/vagueness questions
- StorySet, Story: acceptance criteria with traceability
- ConversationLog: interactions and checkpoints
- PresentationQueue, ReadyQueue: approval and hand-off queues
"""

from storydigest.models.chunk import BoundaryType, Chunk, ChunkPlan
from storydigest.models.clarification import (
    ClarificationQuestion,
    ClarificationSet,
    PreAnsweredDetail,
    Priority,
    QuestionStatus,
    QuestionType,
)
from storydigest.models.contradiction import (
    Contradiction,
    ContradictionSet,
    ContradictionState,
    ContradictionType,
    ResolutionChoice,
)
from storydigest.models.conversation import (
    Checkpoint,
    ConversationLog,
    Interaction,
    InteractionType,
    RecoverySummary,
)
from storydigest.models.input import (
    ContentType,
    LanguageResult,
    NormalizedEntry,
    NormalizedInput,
    SourceFormat,
)
from storydigest.models.queue import (
    PresentationItem,
    PresentationQueue,
    PresentationStatus,
    ReadyQueue,
    ReadyTask,
)
from storydigest.models.session import (
    ActiveSessionPointer,
    InputMetadata,
    Phase,
    PhaseRecord,
    PhaseState,
    RegistryEntry,
    Session,
    SessionRegistry,
    SessionStatus,
)
from storydigest.models.statement import (
    AssociationKind,
    CoverageReport,
    Statement,
    StatementMap,
    StatementSource,
    compute_coverage,
)
from storydigest.models.story import (
    AcceptanceCriterion,
    Clause,
    Complexity,
    CriterionEdit,
    SourceType,
    Story,
    StoryEdit,
    StorySet,
    StoryValidation,
    TaggedValue,
    TraceabilityEntry,
    UserStoryTriple,
)
from storydigest.models.topic import Topic, TopicSet, TopicSource, TopicStatus

__all__ = [
    # Input models
    "SourceFormat",
    "ContentType",
    "LanguageResult",
    "NormalizedEntry",
    "NormalizedInput",
    # Session models
    "Session",
    "SessionStatus",
    "Phase",
    "PhaseState",
    "PhaseRecord",
    "InputMetadata",
    "SessionRegistry",
    "RegistryEntry",
    "ActiveSessionPointer",
    # Chunk models
    "BoundaryType",
    "Chunk",
    "ChunkPlan",
    # Topic / statement models
    "Topic",
    "TopicSet",
    "TopicSource",
    "TopicStatus",
    "Statement",
    "StatementMap",
    "StatementSource",
    "AssociationKind",
    "CoverageReport",
    "compute_coverage",
    # Contradiction models
    "Contradiction",
    "ContradictionSet",
    "ContradictionState",
    "ContradictionType",
    "ResolutionChoice",
    # Clarification models
    "ClarificationQuestion",
    "ClarificationSet",
    "PreAnsweredDetail",
    "Priority",
    "QuestionStatus",
    "QuestionType",
    # Story models
    "Story",
    "StorySet",
    "StoryEdit",
    "CriterionEdit",
    "StoryValidation",
    "AcceptanceCriterion",
    "Clause",
    "Complexity",
    "SourceType",
    "TaggedValue",
    "TraceabilityEntry",
    "UserStoryTriple",
    # Conversation models
    "ConversationLog",
    "Interaction",
    "InteractionType",
    "Checkpoint",
    "RecoverySummary",
    # Queue models
    "PresentationQueue",
    "PresentationItem",
    "PresentationStatus",
    "ReadyQueue",
    "ReadyTask",
]
