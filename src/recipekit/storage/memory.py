"""
In-memory storage backend.

Ideal for:
- Testing
- Dry runs of a recipe against an empty project

Continuous-query and materialized-view creation completes on a small thread
pool, so callers see real unresolved futures and must join them.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from recipekit.models.resources import (
    ContinuousQuery,
    CustomPage,
    CustomReport,
    Dashboard,
    DashboardItem,
    MaterializedView,
    Report,
)
from recipekit.models.schema import SchemaField, merge_fields
from recipekit.storage.base import (
    BaseBackend,
    Collaborators,
    CreateResult,
    PageStoreAbsent,
    PageStorePresent,
    StorageType,
    register_backend,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyedTable(Generic[T]):
    """Thread-safe ``project -> key -> resource`` table preserving insertion order."""

    def __init__(self, key: Callable[[T], Hashable]):
        self._key = key
        self._rows: Dict[str, Dict[Hashable, T]] = {}
        self._lock = threading.Lock()

    def values(self, project: str) -> List[T]:
        with self._lock:
            return list(self._rows.get(project, {}).values())

    def get(self, project: str, key: Hashable) -> Optional[T]:
        with self._lock:
            return self._rows.get(project, {}).get(key)

    def insert(self, project: str, row: T) -> bool:
        """Insert unless the key is taken; returns False if it was."""
        key = self._key(row)
        with self._lock:
            rows = self._rows.setdefault(project, {})
            if key in rows:
                return False
            rows[key] = row
            return True

    def put(self, project: str, row: T) -> None:
        with self._lock:
            self._rows.setdefault(project, {})[self._key(row)] = row

    def remove(self, project: str, key: Hashable) -> bool:
        with self._lock:
            return self._rows.get(project, {}).pop(key, None) is not None


class MemoryCollectionStore:
    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, List[SchemaField]]] = {}
        self._lock = threading.Lock()

    def get_collections(self, project: str) -> Dict[str, List[SchemaField]]:
        with self._lock:
            return {name: list(fields) for name, fields in self._collections.get(project, {}).items()}

    def get_or_create_fields(
        self, project: str, collection: str, fields: List[SchemaField]
    ) -> List[SchemaField]:
        with self._lock:
            collections = self._collections.setdefault(project, {})
            merged = merge_fields(collections.get(collection, []), fields)
            collections[collection] = merged
            return list(merged)


class _AsyncTableStore(Generic[T]):
    """Store whose create/delete resolve on an executor."""

    def __init__(self, executor: ThreadPoolExecutor):
        self._executor = executor
        self._table: KeyedTable[T] = KeyedTable(lambda r: r.table_name)

    def list(self, project: str) -> List[T]:
        return self._table.values(project)

    def get(self, project: str, table_name: str) -> Optional[T]:
        return self._table.get(project, table_name)

    def create(self, project: str, resource: T) -> "Future[CreateResult]":
        return self._executor.submit(self._create, project, resource)

    def delete(self, project: str, table_name: str) -> "Future[bool]":
        return self._executor.submit(self._table.remove, project, table_name)

    def _create(self, project: str, resource: T) -> CreateResult:
        if not self._table.insert(project, resource):
            return CreateResult.already_exists()
        return CreateResult.created()


class MemoryContinuousQueryStore(_AsyncTableStore[ContinuousQuery]):
    pass


class MemoryMaterializedViewStore(_AsyncTableStore[MaterializedView]):
    pass


class MemoryReportStore:
    def __init__(self) -> None:
        self._table: KeyedTable[Report] = KeyedTable(lambda r: r.slug)

    def list(self, project: str) -> List[Report]:
        return self._table.values(project)

    def get(self, project: str, slug: str) -> Optional[Report]:
        return self._table.get(project, slug)

    def create(self, project: str, report: Report) -> CreateResult:
        if not self._table.insert(project, report):
            return CreateResult.already_exists()
        return CreateResult.created()

    def delete(self, project: str, slug: str) -> bool:
        return self._table.remove(project, slug)

    def update(self, project: str, report: Report) -> None:
        if self._table.get(project, report.slug) is None:
            raise LookupError(f"Report '{report.slug}' does not exist in project '{project}'")
        self._table.put(project, report)


class MemoryCustomReportStore:
    def __init__(self) -> None:
        self._table: KeyedTable[CustomReport] = KeyedTable(lambda r: r.key)

    def list(self, project: str) -> List[CustomReport]:
        return self._table.values(project)

    def get(self, project: str, key: Tuple[str, str]) -> Optional[CustomReport]:
        return self._table.get(project, tuple(key))

    def create(self, project: str, report: CustomReport) -> CreateResult:
        if not self._table.insert(project, report):
            return CreateResult.already_exists()
        return CreateResult.created()

    def delete(self, project: str, key: Tuple[str, str]) -> bool:
        return self._table.remove(project, tuple(key))


class MemoryCustomPageStore:
    def __init__(self) -> None:
        self._table: KeyedTable[CustomPage] = KeyedTable(lambda p: p.slug)

    def list(self, project: str) -> List[CustomPage]:
        return self._table.values(project)

    def get_files(self, project: str, slug: str) -> Dict[str, str]:
        page = self._table.get(project, slug)
        if page is None:
            raise LookupError(f"Custom page '{slug}' does not exist in project '{project}'")
        return dict(page.files)

    def create(self, project: str, page: CustomPage) -> CreateResult:
        if not self._table.insert(project, page):
            return CreateResult.already_exists()
        return CreateResult.created()

    def delete(self, project: str, slug: str) -> bool:
        return self._table.remove(project, slug)


class MemoryDashboardStore:
    def __init__(self) -> None:
        self._table: KeyedTable[Dashboard] = KeyedTable(lambda d: d.id)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list(self, project: str) -> List[Dashboard]:
        return [d.model_copy(update={"items": []}) for d in self._table.values(project)]

    def get_items(self, project: str, dashboard_id: int) -> List[DashboardItem]:
        return list(self._require(project, dashboard_id).items)

    def create(self, project: str, name: str, options: Dict[str, Any]) -> CreateResult:
        with self._lock:
            if any(d.name == name for d in self._table.values(project)):
                return CreateResult.already_exists()
            dashboard = Dashboard(project=project, id=next(self._ids), name=name, options=dict(options))
            self._table.put(project, dashboard)
        return CreateResult.created(dashboard.model_copy())

    def delete(self, project: str, dashboard_id: int) -> bool:
        return self._table.remove(project, dashboard_id)

    def add_item(
        self,
        project: str,
        dashboard_id: int,
        name: str,
        directive: str,
        data: Dict[str, Any],
    ) -> None:
        with self._lock:
            dashboard = self._require(project, dashboard_id)
            item = DashboardItem(name=name, directive=directive, data=dict(data))
            self._table.put(project, dashboard.model_copy(update={"items": [*dashboard.items, item]}))

    def _require(self, project: str, dashboard_id: int) -> Dashboard:
        dashboard = self._table.get(project, dashboard_id)
        if dashboard is None:
            raise LookupError(f"Dashboard {dashboard_id} does not exist in project '{project}'")
        return dashboard


@register_backend(StorageType.MEMORY)
class MemoryBackend(BaseBackend):
    """
    In-memory backend.

    Each ``collaborators()`` call builds independent stores. ``custom_pages=False`` builds a
    bundle without the custom-page capability.
    """

    def __init__(
        self,
        namespace: str = "default",
        custom_pages: bool = True,
        max_workers: int = 2,
    ):
        super().__init__(namespace=namespace, custom_pages=custom_pages)
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=f"recipekit-{namespace}"
        )

    def collaborators(self) -> Collaborators:
        pages = PageStorePresent(MemoryCustomPageStore()) if self.custom_pages else PageStoreAbsent()
        logger.debug(f"MemoryBackend collaborators built (custom pages: {pages.is_present})")
        return Collaborators(
            collections=MemoryCollectionStore(),
            continuous_queries=MemoryContinuousQueryStore(self.executor),
            materialized_views=MemoryMaterializedViewStore(self.executor),
            reports=MemoryReportStore(),
            custom_reports=MemoryCustomReportStore(),
            dashboards=MemoryDashboardStore(),
            pages=pages,
        )

    def close(self) -> None:
        self.executor.shutdown(wait=True)
