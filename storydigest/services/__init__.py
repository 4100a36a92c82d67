"""
Services for StoryDigest.

High-level services over the core heuristics:
- DigestOrchestrator: Unified command surface
- SessionManager: Registry, phase state machine, conversation log
- DigestPipeline: Ingestion and passes 1-4
- ClarificationLoop: Question / answer cycle
- StoryService: Story generation and edit sessions
- ApprovalQueue: Review queue and finalize
"""

from storydigest.services.approval import ApprovalQueue, FinalizeResult
from storydigest.services.clarification_loop import AnswerResult, ClarificationLoop
from storydigest.services.orchestrator import DigestOrchestrator, IngestResult, StatusReport
from storydigest.services.pipeline import DigestPipeline
from storydigest.services.sessions import SessionHandle, SessionManager
from storydigest.services.stories import StoryService

__all__ = [
    "DigestOrchestrator",
    "IngestResult",
    "StatusReport",
    "SessionManager",
    "SessionHandle",
    "DigestPipeline",
    "ClarificationLoop",
    "AnswerResult",
    "StoryService",
    "ApprovalQueue",
    "FinalizeResult",
]
