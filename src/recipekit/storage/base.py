"""
Collaborator interfaces and backend factory.

Defines the narrow store interfaces the recipe engine consumes, the tagged
``CreateResult`` every ``create`` returns, the optional custom-page
capability, and the registry that maps a ``StorageType`` to a backend.

Continuous-query and materialized-view stores complete asynchronously: their
``create`` and ``delete`` return ``concurrent.futures.Future`` objects that
callers must join.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, Type, runtime_checkable

from recipekit.models.resources import (
    ContinuousQuery,
    CustomPage,
    CustomReport,
    Dashboard,
    DashboardItem,
    MaterializedView,
    Report,
)
from recipekit.models.schema import SchemaField

logger = logging.getLogger(__name__)


class StorageType(str, Enum):
    """Available storage backend types."""
    MEMORY = "memory"
    FILE = "file"


class CreateStatus(str, Enum):
    """Outcome tag of a store ``create`` call."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass(frozen=True)
class CreateResult:
    """Tagged result of a ``create`` call.

    ``value`` carries whatever the store hands back on success (the new
    ``Dashboard`` for dashboard stores, otherwise None). ``error`` carries the
    store's own exception when ``status`` is FAILED.
    """
    status: CreateStatus
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def created(cls, value: Any = None) -> "CreateResult":
        return cls(CreateStatus.CREATED, value=value)

    @classmethod
    def already_exists(cls) -> "CreateResult":
        return cls(CreateStatus.ALREADY_EXISTS)

    @classmethod
    def failed(cls, error: BaseException) -> "CreateResult":
        return cls(CreateStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status == CreateStatus.CREATED


def completed_future(value: Any) -> Future:
    """A future that is already resolved with ``value``."""
    future: Future = Future()
    future.set_result(value)
    return future


# ---------------------------------------------------------------------------
# Store protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class CollectionStore(Protocol):
    """Project metadata store for collection schemas."""

    def get_collections(self, project: str) -> Dict[str, List[SchemaField]]:
        """All collections of a project with their fields."""
        ...

    def get_or_create_fields(
        self, project: str, collection: str, fields: List[SchemaField]
    ) -> List[SchemaField]:
        """Add absent fields and return the merged field list.

        Fields already present are never modified.
        """
        ...


@runtime_checkable
class ContinuousQueryStore(Protocol):
    def list(self, project: str) -> List[ContinuousQuery]:
        ...

    def create(self, project: str, query: ContinuousQuery) -> "Future[CreateResult]":
        ...

    def delete(self, project: str, table_name: str) -> "Future[bool]":
        ...


@runtime_checkable
class MaterializedViewStore(Protocol):
    def list(self, project: str) -> List[MaterializedView]:
        ...

    def create(self, project: str, view: MaterializedView) -> "Future[CreateResult]":
        ...

    def delete(self, project: str, table_name: str) -> "Future[bool]":
        ...


@runtime_checkable
class ReportStore(Protocol):
    def list(self, project: str) -> List[Report]:
        ...

    def create(self, project: str, report: Report) -> CreateResult:
        ...

    def delete(self, project: str, slug: str) -> bool:
        ...

    def update(self, project: str, report: Report) -> None:
        """Replace the stored report with the same slug in place."""
        ...


@runtime_checkable
class CustomReportStore(Protocol):
    def list(self, project: str) -> List[CustomReport]:
        ...

    def create(self, project: str, report: CustomReport) -> CreateResult:
        ...

    def delete(self, project: str, key: Tuple[str, str]) -> bool:
        ...


@runtime_checkable
class CustomPageStore(Protocol):
    def list(self, project: str) -> List[CustomPage]:
        """Pages of a project; ``files`` may be left empty by the listing."""
        ...

    def get_files(self, project: str, slug: str) -> Dict[str, str]:
        ...

    def create(self, project: str, page: CustomPage) -> CreateResult:
        ...

    def delete(self, project: str, slug: str) -> bool:
        ...


@runtime_checkable
class DashboardStore(Protocol):
    def list(self, project: str) -> List[Dashboard]:
        """Dashboards of a project; ``items`` may be left empty by the listing."""
        ...

    def get_items(self, project: str, dashboard_id: int) -> List[DashboardItem]:
        ...

    def create(self, project: str, name: str, options: Dict[str, Any]) -> CreateResult:
        """Create an empty dashboard; ``CreateResult.value`` is the new Dashboard."""
        ...

    def delete(self, project: str, dashboard_id: int) -> bool:
        ...

    def add_item(
        self,
        project: str,
        dashboard_id: int,
        name: str,
        directive: str,
        data: Dict[str, Any],
    ) -> None:
        ...


# ---------------------------------------------------------------------------
# Optional custom-page capability
# ---------------------------------------------------------------------------


class PageStoreCapability:
    """Either ``PageStorePresent(store)`` or ``PageStoreAbsent()``."""

    is_present: bool = False


@dataclass(frozen=True)
class PageStorePresent(PageStoreCapability):
    store: CustomPageStore
    is_present: bool = field(default=True, init=False)


@dataclass(frozen=True)
class PageStoreAbsent(PageStoreCapability):
    is_present: bool = field(default=False, init=False)


@dataclass
class Collaborators:
    """Every store the recipe engine talks to, for one backend."""
    collections: CollectionStore
    continuous_queries: ContinuousQueryStore
    materialized_views: MaterializedViewStore
    reports: ReportStore
    custom_reports: CustomReportStore
    dashboards: DashboardStore
    pages: PageStoreCapability = field(default_factory=PageStoreAbsent)


# ---------------------------------------------------------------------------
# Backend registry
# ---------------------------------------------------------------------------


class BaseBackend(ABC):
    """A storage backend able to hand out a full set of collaborators."""

    def __init__(self, namespace: str = "default", custom_pages: bool = True):
        self.namespace = namespace
        self.custom_pages = custom_pages

    @abstractmethod
    def collaborators(self) -> Collaborators:
        """Build the collaborator bundle for this backend."""
        pass

    def close(self) -> None:
        """Release resources held by the backend."""


_BACKENDS: Dict[StorageType, Type[BaseBackend]] = {}


def register_backend(storage_type: StorageType):
    """Decorator to register a storage backend."""
    def decorator(cls: Type[BaseBackend]) -> Type[BaseBackend]:
        _BACKENDS[storage_type] = cls
        return cls
    return decorator


def get_backend(
    storage_type: Optional[StorageType] = None,
    namespace: Optional[str] = None,
    **kwargs: Any,
) -> BaseBackend:
    """
    Get a storage backend instance.

    Args:
        storage_type: Explicit storage type; taken from configuration if None
        namespace: Namespace/directory for storage; taken from configuration if None
        **kwargs: Additional backend-specific options

    Returns:
        Backend instance; call ``close()`` when done with it
    """
    # Import backends to register them
    from recipekit.storage import file, memory  # noqa: F401

    if storage_type is None:
        storage_type = _detect_storage_type()
    if namespace is None:
        from recipekit.config import get_config

        namespace = get_config().storage_namespace

    if storage_type not in _BACKENDS:
        raise ValueError(f"Unknown storage type: {storage_type}")

    backend_class = _BACKENDS[storage_type]
    return backend_class(namespace=namespace, **kwargs)


def get_collaborators(
    storage_type: Optional[StorageType] = None,
    namespace: Optional[str] = None,
    **kwargs: Any,
) -> Collaborators:
    """Get the collaborator bundle of a storage backend; see ``get_backend``."""
    return get_backend(storage_type, namespace, **kwargs).collaborators()


def _detect_storage_type() -> StorageType:
    """Resolve the configured storage type; ``auto`` means file storage."""
    from recipekit.config import get_config

    configured = get_config().storage_type
    if configured == "auto":
        logger.info("Storage type 'auto', using file storage")
        return StorageType.FILE
    return StorageType(configured)
