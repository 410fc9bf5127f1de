"""
Storage abstraction layer for recipekit.

The recipe engine consumes narrow collaborator interfaces for each resource
kind. Two backends implement them:
- memory (tests, dry runs)
- file (local development, JSON files per project)

Example:
    from recipekit.storage import get_collaborators, StorageType

    stores = get_collaborators(StorageType.MEMORY)
    stores.reports.list("my-project")
"""

from recipekit.storage.base import (
    Collaborators,
    CreateResult,
    CreateStatus,
    PageStoreAbsent,
    PageStoreCapability,
    PageStorePresent,
    StorageType,
    get_backend,
    get_collaborators,
)
from recipekit.storage.file import FileBackend
from recipekit.storage.memory import MemoryBackend

__all__ = [
    "Collaborators",
    "CreateResult",
    "CreateStatus",
    "PageStoreAbsent",
    "PageStoreCapability",
    "PageStorePresent",
    "StorageType",
    "get_backend",
    "get_collaborators",
    "FileBackend",
    "MemoryBackend",
]
