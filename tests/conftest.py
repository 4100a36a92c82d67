"""Shared fixtures.

Every fixture uses the approximate tokenizer so tests never need the
tiktoken BPE download, and an in-memory store unless the test is about
files on disk.
"""

import pytest

from storydigest.config import Config, StorageConfig, TokenizerConfig
from storydigest.core.store import InMemoryStore, JsonFileStore
from storydigest.services.orchestrator import DigestOrchestrator

DASHBOARD_TRANSCRIPT = """The dashboard should show a table of recent orders.
Put the export button on the left side of the dashboard.
The table should be sortable by date.
Actually, put the export button on the right side of the dashboard.
"""

# Answers in presentation order: table.columns, button.action,
# export.format, table.actions, button.label
DASHBOARD_ANSWERS = (
    "1. Order number, date and total "
    "2. It opens the export dialog "
    "3. CSV and PDF "
    "4. View details "
    "5. Export"
)

MEETING_TRANSCRIPT = """[00:00:05] Alice: Hi everyone.
[00:00:09] Bob: The login page should support Google sign in.
[00:00:15] Alice: Okay.
[00:00:21] Bob: Users must be able to reset their password from the login page.
"""


def make_config(**storage) -> Config:
    return Config(
        tokenizer=TokenizerConfig(provider="approximate"),
        storage=StorageConfig(**(storage or {"backend": "memory"})),
    )


@pytest.fixture
def config() -> Config:
    """Configuration with offline token counting and in-memory storage."""
    return make_config()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def json_store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "state")


@pytest.fixture
def orchestrator(config, memory_store) -> DigestOrchestrator:
    return DigestOrchestrator(config, memory_store)


@pytest.fixture
def transcript_file(tmp_path):
    path = tmp_path / "meeting.txt"
    path.write_text(DASHBOARD_TRANSCRIPT, encoding="utf-8")
    return path


@pytest.fixture
def digested(orchestrator, transcript_file) -> DigestOrchestrator:
    """Orchestrator whose active session has completed passes 1-4."""
    orchestrator.new(str(transcript_file))
    orchestrator.pass2()
    orchestrator.pass3()
    orchestrator.pass4()
    return orchestrator


@pytest.fixture
def with_stories(digested) -> DigestOrchestrator:
    """Digested session with every question answered and stories generated."""
    digested.questions()
    digested.answer(DASHBOARD_ANSWERS)
    digested.generate_stories()
    return digested
