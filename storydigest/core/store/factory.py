"""Factory for creating document stores."""

from storydigest.config import StorageConfig
from storydigest.core.store.base import DocumentStore
from storydigest.core.store.json_store import JsonFileStore
from storydigest.core.store.memory_store import InMemoryStore


def create_store(config: StorageConfig | None = None) -> DocumentStore:
    """
    Factory function to create document stores.

    Args:
        config: Storage configuration (backend "json" or "memory")

    Returns:
        DocumentStore instance

    Raises:
        ValueError: If backend is not supported
    """
    config = config or StorageConfig()
    if config.backend == "json":
        return JsonFileStore(state_dir=config.state_dir)
    elif config.backend == "memory":
        return InMemoryStore()
    else:
        raise ValueError(f"Unknown backend: {config.backend}")
