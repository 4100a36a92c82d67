"""
JSON file document store.

Layout under the state directory:

    registry.json, active_session.json, ready.json
    sessions/<session_id>/<document>.json

Writes go to a temporary file in the target directory followed by
os.replace, so a reader never observes a half-written document.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from storydigest.core.store.base import DocumentStore
from storydigest.utils.exceptions import StoreError
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

SESSIONS_DIR = "sessions"


class JsonFileStore(DocumentStore):
    """One JSON file per document, rewritten atomically on every save."""

    def __init__(self, state_dir: str | Path = ".storydigest"):
        """
        Initialize JSON file store.

        Args:
            state_dir: Root directory for all documents
        """
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str, session_id: str | None = None) -> Path:
        self._check_scope(name, session_id)
        if session_id is None:
            return self.state_dir / f"{name}.json"
        return self.state_dir / SESSIONS_DIR / session_id / f"{name}.json"

    def load(self, name: str, model: type[T], session_id: str | None = None) -> T | None:
        path = self.path_for(name, session_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return model.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Unreadable document {path}: {e}")
            raise StoreError(
                f"Cannot read {name} document",
                context={"path": str(path), "session_id": session_id, "error": str(e)},
            ) from e

    def save(self, name: str, document: BaseModel, session_id: str | None = None) -> None:
        path = self.path_for(name, session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = document.model_dump(mode="json", by_alias=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreError(
                f"Cannot write {name} document",
                context={"path": str(path), "session_id": session_id, "error": str(e)},
            ) from e
        logger.debug(f"Saved {path}")

    def exists(self, name: str, session_id: str | None = None) -> bool:
        return self.path_for(name, session_id).exists()

    def delete_session(self, session_id: str) -> None:
        session_dir = self.state_dir / SESSIONS_DIR / session_id
        if session_dir.exists():
            shutil.rmtree(session_dir)
            logger.info(f"Deleted session documents: {session_id}")

    def session_ids(self) -> list[str]:
        sessions_dir = self.state_dir / SESSIONS_DIR
        if not sessions_dir.exists():
            return []
        return sorted(p.name for p in sessions_dir.iterdir() if p.is_dir())
