"""In-memory document store."""

from typing import TypeVar

from pydantic import BaseModel

from storydigest.core.store.base import DocumentStore
from storydigest.utils.exceptions import StoreError

T = TypeVar("T", bound=BaseModel)


class InMemoryStore(DocumentStore):
    """
    Keeps serialized documents in a dict.

    Documents are stored as JSON-mode dumps and validated on load, so
    callers never share mutable records with the store.
    """

    def __init__(self):
        self.documents: dict[tuple[str | None, str], dict] = {}

    def load(self, name: str, model: type[T], session_id: str | None = None) -> T | None:
        self._check_scope(name, session_id)
        data = self.documents.get((session_id, name))
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise StoreError(
                f"Cannot read {name} document",
                context={"session_id": session_id, "error": str(e)},
            ) from e

    def save(self, name: str, document: BaseModel, session_id: str | None = None) -> None:
        self._check_scope(name, session_id)
        self.documents[(session_id, name)] = document.model_dump(mode="json", by_alias=True)

    def exists(self, name: str, session_id: str | None = None) -> bool:
        self._check_scope(name, session_id)
        return (session_id, name) in self.documents

    def delete_session(self, session_id: str) -> None:
        for key in [key for key in self.documents if key[0] == session_id]:
            del self.documents[key]

    def session_ids(self) -> list[str]:
        return sorted({sid for sid, _ in self.documents if sid is not None})
