"""
File-based storage backend for local development.

Stores each project's resources as JSON documents under
~/.recipekit/storage/<namespace>/<project>/
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

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
    completed_future,
    register_backend,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class JsonTable(Generic[M]):
    """
    A list of models persisted as ``<project>/<name>.json``.

    Rows are identified by ``key(row)``; order on disk is insertion order.
    """

    def __init__(
        self,
        root: Path,
        name: str,
        model: Type[M],
        key: Callable[[M], Hashable],
    ):
        self.root = root
        self.name = name
        self.model = model
        self.key = key

    def _path(self, project: str) -> Path:
        project_dir = self.root / project
        project_dir.mkdir(parents=True, exist_ok=True)
        return project_dir / f"{self.name}.json"

    def load(self, project: str) -> List[M]:
        path = self._path(project)
        if not path.exists():
            return []
        with open(path) as f:
            data = json.load(f)
        return [self.model.model_validate(row) for row in data]

    def save(self, project: str, rows: List[M]) -> None:
        path = self._path(project)
        with open(path, "w") as f:
            json.dump([row.model_dump(mode="json") for row in rows], f, indent=2)
        logger.debug(f"Saved {len(rows)} {self.name} to {path}")

    def find(self, project: str, key: Hashable) -> Optional[M]:
        for row in self.load(project):
            if self.key(row) == key:
                return row
        return None

    def insert(self, project: str, row: M) -> bool:
        rows = self.load(project)
        if any(self.key(r) == self.key(row) for r in rows):
            return False
        rows.append(row)
        self.save(project, rows)
        return True

    def replace(self, project: str, row: M) -> bool:
        rows = self.load(project)
        for i, existing in enumerate(rows):
            if self.key(existing) == self.key(row):
                rows[i] = row
                self.save(project, rows)
                return True
        return False

    def remove(self, project: str, key: Hashable) -> bool:
        rows = self.load(project)
        kept = [r for r in rows if self.key(r) != key]
        if len(kept) == len(rows):
            return False
        self.save(project, kept)
        return True


class _TableStore(Generic[M]):
    """Synchronous create/list/delete over one JsonTable."""

    def __init__(self, table: JsonTable[M]):
        self._table = table

    def list(self, project: str) -> List[M]:
        return self._table.load(project)

    def create(self, project: str, resource: M) -> CreateResult:
        if not self._table.insert(project, resource):
            return CreateResult.already_exists()
        return CreateResult.created()

    def delete(self, project: str, key: Hashable) -> bool:
        return self._table.remove(project, key)


class FileCollectionStore:
    def __init__(self, root: Path):
        self.root = root

    def _path(self, project: str) -> Path:
        project_dir = self.root / project
        project_dir.mkdir(parents=True, exist_ok=True)
        return project_dir / "collections.json"

    def get_collections(self, project: str) -> Dict[str, List[SchemaField]]:
        path = self._path(project)
        if not path.exists():
            return {}
        with open(path) as f:
            data = json.load(f)
        return {
            name: [SchemaField.model_validate(field) for field in fields]
            for name, fields in data.items()
        }

    def get_or_create_fields(
        self, project: str, collection: str, fields: List[SchemaField]
    ) -> List[SchemaField]:
        collections = self.get_collections(project)
        merged = merge_fields(collections.get(collection, []), fields)
        collections[collection] = merged
        with open(self._path(project), "w") as f:
            json.dump(
                {
                    name: [field.model_dump(mode="json") for field in entries]
                    for name, entries in collections.items()
                },
                f,
                indent=2,
            )
        return merged


class FileContinuousQueryStore(_TableStore[ContinuousQuery]):
    """Completes synchronously; futures are returned already resolved."""

    def create(self, project: str, query: ContinuousQuery):
        return completed_future(super().create(project, query))

    def delete(self, project: str, table_name: str):
        return completed_future(super().delete(project, table_name))


class FileMaterializedViewStore(_TableStore[MaterializedView]):
    """Completes synchronously; futures are returned already resolved."""

    def create(self, project: str, view: MaterializedView):
        return completed_future(super().create(project, view))

    def delete(self, project: str, table_name: str):
        return completed_future(super().delete(project, table_name))


class FileReportStore(_TableStore[Report]):
    def update(self, project: str, report: Report) -> None:
        if not self._table.replace(project, report):
            raise LookupError(f"Report '{report.slug}' does not exist in project '{project}'")


class FileCustomReportStore(_TableStore[CustomReport]):
    def delete(self, project: str, key: Tuple[str, str]) -> bool:
        return self._table.remove(project, tuple(key))


class FileCustomPageStore(_TableStore[CustomPage]):
    def get_files(self, project: str, slug: str) -> Dict[str, str]:
        page = self._table.find(project, slug)
        if page is None:
            raise LookupError(f"Custom page '{slug}' does not exist in project '{project}'")
        return dict(page.files)


class FileDashboardStore:
    def __init__(self, table: JsonTable[Dashboard]):
        self._table = table

    def list(self, project: str) -> List[Dashboard]:
        return [d.model_copy(update={"items": []}) for d in self._table.load(project)]

    def get_items(self, project: str, dashboard_id: int) -> List[DashboardItem]:
        return list(self._require(project, dashboard_id).items)

    def create(self, project: str, name: str, options: Dict[str, Any]) -> CreateResult:
        dashboards = self._table.load(project)
        if any(d.name == name for d in dashboards):
            return CreateResult.already_exists()
        next_id = max((d.id for d in dashboards), default=0) + 1
        dashboard = Dashboard(project=project, id=next_id, name=name, options=dict(options))
        self._table.insert(project, dashboard)
        return CreateResult.created(dashboard)

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
        dashboard = self._require(project, dashboard_id)
        item = DashboardItem(name=name, directive=directive, data=dict(data))
        self._table.replace(project, dashboard.model_copy(update={"items": [*dashboard.items, item]}))

    def _require(self, project: str, dashboard_id: int) -> Dashboard:
        dashboard = self._table.find(project, dashboard_id)
        if dashboard is None:
            raise LookupError(f"Dashboard {dashboard_id} does not exist in project '{project}'")
        return dashboard


@register_backend(StorageType.FILE)
class FileBackend(BaseBackend):
    """
    File-based backend.

    Data layout:
        ~/.recipekit/storage/<namespace>/
        ├── <project>/
        │   ├── collections.json
        │   ├── continuous_queries.json
        │   ├── materialized_views.json
        │   ├── reports.json
        │   ├── custom_reports.json
        │   ├── custom_pages.json
        │   └── dashboards.json
    """

    def __init__(
        self,
        namespace: str = "default",
        custom_pages: bool = True,
        base_dir: Optional[str] = None,
    ):
        super().__init__(namespace=namespace, custom_pages=custom_pages)
        if base_dir is None:
            from recipekit.config import get_config

            self.namespace_dir = get_config().get_storage_path(namespace)
        else:
            self.namespace_dir = Path(os.path.expanduser(base_dir)) / namespace
        self.base_dir = self.namespace_dir.parent
        self.namespace_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"FileBackend initialized at {self.namespace_dir}")

    def collaborators(self) -> Collaborators:
        root = self.namespace_dir
        pages = (
            PageStorePresent(FileCustomPageStore(JsonTable(root, "custom_pages", CustomPage, lambda p: p.slug)))
            if self.custom_pages
            else PageStoreAbsent()
        )
        return Collaborators(
            collections=FileCollectionStore(root),
            continuous_queries=FileContinuousQueryStore(
                JsonTable(root, "continuous_queries", ContinuousQuery, lambda r: r.table_name)
            ),
            materialized_views=FileMaterializedViewStore(
                JsonTable(root, "materialized_views", MaterializedView, lambda r: r.table_name)
            ),
            reports=FileReportStore(JsonTable(root, "reports", Report, lambda r: r.slug)),
            custom_reports=FileCustomReportStore(
                JsonTable(root, "custom_reports", CustomReport, lambda r: r.key)
            ),
            dashboards=FileDashboardStore(JsonTable(root, "dashboards", Dashboard, lambda d: d.id)),
            pages=pages,
        )
