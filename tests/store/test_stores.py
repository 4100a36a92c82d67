"""
Tests for document stores.

Tests cover:
1. Round trips for global and session documents (both backends)
2. Missing documents read as absent state
3. Corrupt documents raise StoreError
4. Global/session scope checks
5. Session deletion and listing
6. The store factory
"""

import json

import pytest

from storydigest.config import StorageConfig
from storydigest.core.store import DocumentStore, InMemoryStore, JsonFileStore, create_store
from storydigest.core.store.base import ACTIVE_SESSION, READY_QUEUE, REGISTRY, SESSION, STATEMENTS
from storydigest.models import ReadyQueue, ReadyTask, Session, SessionRegistry, Statement, StatementMap
from storydigest.models.session import ActiveSessionPointer
from storydigest.utils.exceptions import StoreError


@pytest.fixture(params=["memory_store", "json_store"])
def store(request) -> DocumentStore:
    """Run a test against both backends."""
    return request.getfixturevalue(request.param)


class TestRoundTrip:
    """Tests for save/load."""

    def test_session_document(self, store):
        statements = StatementMap(
            statements=[Statement(id="stmt_0001", text="Add a search bar.", topic_id="topic_001")]
        )

        store.save(STATEMENTS, statements, session_id="sess_a")
        loaded = store.load(STATEMENTS, StatementMap, session_id="sess_a")

        assert loaded == statements
        assert store.exists(STATEMENTS, session_id="sess_a")
        assert not store.exists(STATEMENTS, session_id="sess_b")

    def test_global_document(self, store):
        store.save(ACTIVE_SESSION, ActiveSessionPointer(session_id="sess_a"))

        assert store.load(ACTIVE_SESSION, ActiveSessionPointer).session_id == "sess_a"

    def test_ready_queue_keeps_aliases(self, store):
        task = ReadyTask(
            id="TASK-001",
            title="Dashboard",
            priority="P1",
            description="As a user...",
            source_story_id="story_001",
            source_session_id="sess_a",
        )
        store.save(READY_QUEUE, ReadyQueue(ready=[task]))

        assert store.load(READY_QUEUE, ReadyQueue).ready[0].id == "TASK-001"

    def test_loaded_records_are_copies(self, store):
        """Test mutating a loaded record does not change the stored document."""
        store.save(SESSION, Session(id="sess_a"), session_id="sess_a")

        first = store.load(SESSION, Session, session_id="sess_a")
        first.awaiting_response = True

        assert not store.load(SESSION, Session, session_id="sess_a").awaiting_response


class TestAbsentState:
    """Tests for missing documents."""

    def test_missing_is_none(self, store):
        assert store.load(REGISTRY, SessionRegistry) is None

    def test_load_or_default(self, store):
        assert store.load_or_default(REGISTRY, SessionRegistry) == SessionRegistry()

    def test_load_or_default_custom(self, store):
        default = StatementMap(statements=[Statement(id="stmt_0001", text="x")])

        loaded = store.load_or_default(STATEMENTS, StatementMap, default, session_id="sess_a")

        assert loaded is default


class TestScope:
    """Tests for global/session scoping."""

    def test_global_document_rejects_session(self, store):
        with pytest.raises(ValueError):
            store.save(REGISTRY, SessionRegistry(), session_id="sess_a")

    def test_session_document_requires_session(self, store):
        with pytest.raises(ValueError):
            store.load(STATEMENTS, StatementMap)


class TestSessions:
    """Tests for session listing and deletion."""

    def test_delete_session(self, store):
        store.save(SESSION, Session(id="sess_a"), session_id="sess_a")
        store.save(STATEMENTS, StatementMap(), session_id="sess_a")
        store.save(SESSION, Session(id="sess_b"), session_id="sess_b")
        store.save(REGISTRY, SessionRegistry())

        store.delete_session("sess_a")

        assert store.session_ids() == ["sess_b"]
        assert store.load(STATEMENTS, StatementMap, session_id="sess_a") is None
        assert store.exists(REGISTRY)

    def test_delete_unknown_session_is_noop(self, store):
        store.delete_session("sess_missing")
        assert store.session_ids() == []


class TestJsonFileStore:
    """Tests specific to the file layout."""

    def test_layout(self, json_store):
        json_store.save(REGISTRY, SessionRegistry())
        json_store.save(SESSION, Session(id="sess_a"), session_id="sess_a")

        assert (json_store.state_dir / "registry.json").exists()
        assert (json_store.state_dir / "sessions" / "sess_a" / "session.json").exists()

    def test_no_temp_files_left(self, json_store):
        json_store.save(SESSION, Session(id="sess_a"), session_id="sess_a")

        files = [p.name for p in (json_store.state_dir / "sessions" / "sess_a").iterdir()]
        assert files == ["session.json"]

    def test_corrupt_json_raises(self, json_store):
        path = json_store.path_for(SESSION, "sess_a")
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        with pytest.raises(StoreError) as exc_info:
            json_store.load(SESSION, Session, session_id="sess_a")

        assert exc_info.value.context["session_id"] == "sess_a"
        assert exc_info.value.context["path"] == str(path)

    def test_invalid_document_raises(self, json_store):
        path = json_store.path_for(SESSION, "sess_a")
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"status": "active"}))

        with pytest.raises(StoreError):
            json_store.load(SESSION, Session, session_id="sess_a")

    def test_persists_across_instances(self, tmp_path):
        JsonFileStore(tmp_path).save(ACTIVE_SESSION, ActiveSessionPointer(session_id="sess_a"))

        loaded = JsonFileStore(tmp_path).load(ACTIVE_SESSION, ActiveSessionPointer)

        assert loaded.session_id == "sess_a"


class TestInMemoryStore:
    def test_invalid_document_raises(self, memory_store):
        memory_store.documents[("sess_a", SESSION)] = {"status": "active"}

        with pytest.raises(StoreError):
            memory_store.load(SESSION, Session, session_id="sess_a")


class TestStoreFactory:
    """Test store creation from config."""

    def test_create_json_store(self, tmp_path):
        store = create_store(StorageConfig(backend="json", state_dir=str(tmp_path / "state")))

        assert isinstance(store, JsonFileStore)
        assert isinstance(store, DocumentStore)
        assert store.state_dir == tmp_path / "state"

    def test_create_memory_store(self):
        assert isinstance(create_store(StorageConfig(backend="memory")), InMemoryStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            create_store(StorageConfig(backend="sqlite"))
