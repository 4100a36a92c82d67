"""
Base interface for durable digest state.

State is a set of named documents, one per concern. Global documents
(registry, active-session pointer, ready queue) live outside any session;
everything else is scoped to a session id. Every save fully rewrites the
document, and a missing document is absent state, never an error.
"""

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

# Global documents
REGISTRY = "registry"
ACTIVE_SESSION = "active_session"
READY_QUEUE = "ready"

# Per-session documents
SESSION = "session"
INPUT = "input"
CHUNKING = "chunking"
TOPICS = "topics"
STATEMENTS = "statements"
CONTRADICTIONS = "contradictions"
CLARIFICATIONS = "clarifications"
CONVERSATION = "conversation"
STORIES = "stories"
PRESENTATION = "presentation"

GLOBAL_DOCUMENTS = frozenset({REGISTRY, ACTIVE_SESSION, READY_QUEUE})
SESSION_DOCUMENTS = (
    SESSION,
    INPUT,
    CHUNKING,
    TOPICS,
    STATEMENTS,
    CONTRADICTIONS,
    CLARIFICATIONS,
    CONVERSATION,
    STORIES,
    PRESENTATION,
)


class DocumentStore(ABC):
    """Abstract base class for document storage implementations."""

    @abstractmethod
    def load(self, name: str, model: type[T], session_id: str | None = None) -> T | None:
        """
        Read and validate a document.

        Args:
            name: Document name
            model: Record type the document is validated against
            session_id: Owning session (None for global documents)

        Returns:
            Validated record, or None when the document does not exist

        Raises:
            StoreError: Document exists but cannot be parsed or validated
        """
        pass

    @abstractmethod
    def save(self, name: str, document: BaseModel, session_id: str | None = None) -> None:
        """
        Fully rewrite a document.

        Args:
            name: Document name
            document: Record to persist
            session_id: Owning session (None for global documents)
        """
        pass

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Remove every document of a session."""
        pass

    @abstractmethod
    def session_ids(self) -> list[str]:
        """Ids of sessions that have at least one stored document."""
        pass

    def load_or_default(
        self,
        name: str,
        model: type[T],
        default: T | None = None,
        session_id: str | None = None,
    ) -> T:
        """
        Read a document, falling back to a default when it is absent.

        Args:
            name: Document name
            model: Record type
            default: Value returned when absent (model() when None)
            session_id: Owning session

        Returns:
            Stored record or the default
        """
        document = self.load(name, model, session_id)
        if document is not None:
            return document
        return default if default is not None else model()

    @abstractmethod
    def exists(self, name: str, session_id: str | None = None) -> bool:
        """Whether a document is stored."""
        pass

    @staticmethod
    def _check_scope(name: str, session_id: str | None) -> None:
        if name in GLOBAL_DOCUMENTS and session_id is not None:
            raise ValueError(f"{name} is a global document")
        if name not in GLOBAL_DOCUMENTS and session_id is None:
            raise ValueError(f"{name} requires a session id")
