"""
Document store module.

Durable, fully-rewritten documents for sessions and global state.
"""

from storydigest.core.store.base import DocumentStore
from storydigest.core.store.factory import create_store
from storydigest.core.store.json_store import JsonFileStore
from storydigest.core.store.memory_store import InMemoryStore

__all__ = ["DocumentStore", "JsonFileStore", "InMemoryStore", "create_store"]
