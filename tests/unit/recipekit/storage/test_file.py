"""Tests for the file-based storage backend."""

import json

import pytest

from recipekit.models.resources import CustomPage, MaterializedView, Report
from recipekit.models.schema import FieldType, SchemaField
from recipekit.storage.base import CreateStatus, StorageType, get_collaborators
from recipekit.storage.file import FileBackend


@pytest.fixture
def backend(tmp_path):
    return FileBackend(namespace="ns", base_dir=str(tmp_path))


@pytest.fixture
def file_stores(backend):
    return backend.collaborators()


class TestFileBackend:
    def test_creates_namespace_dir(self, backend, tmp_path):
        assert backend.namespace_dir == tmp_path / "ns"
        assert backend.namespace_dir.is_dir()

    def test_defaults_to_configured_storage_dir(self, tmp_path):
        # RECIPEKIT_STORAGE_DIR points into tmp_path in the test environment
        backend = FileBackend(namespace="ns")
        assert backend.namespace_dir == tmp_path / "storage" / "ns"
        assert backend.base_dir == tmp_path / "storage"

    def test_registered_in_backend_registry(self, tmp_path):
        collaborators = get_collaborators(StorageType.FILE, base_dir=str(tmp_path))
        assert type(collaborators.reports).__name__ == "FileReportStore"

    def test_without_custom_pages(self, tmp_path):
        stores = FileBackend(base_dir=str(tmp_path), custom_pages=False).collaborators()
        assert not stores.pages.is_present


class TestFilePersistence:
    def test_reports_survive_new_bundle(self, backend, file_stores):
        file_stores.reports.create("p", Report(project="p", slug="r", name="n", query="q"))
        assert [r.slug for r in backend.collaborators().reports.list("p")] == ["r"]

    def test_layout_on_disk(self, backend, file_stores):
        file_stores.reports.create("p", Report(project="p", slug="r", name="n", query="q"))
        data = json.loads((backend.namespace_dir / "p" / "reports.json").read_text())
        assert data[0]["slug"] == "r"

    def test_collections_are_additive(self, file_stores):
        file_stores.collections.get_or_create_fields("p", "c", [SchemaField(name="x", type=FieldType.INTEGER)])
        merged = file_stores.collections.get_or_create_fields(
            "p", "c", [SchemaField(name="x", type=FieldType.STRING)]
        )
        assert merged[0].type == FieldType.INTEGER
        assert file_stores.collections.get_collections("p")["c"][0].type == FieldType.INTEGER


class TestFileStores:
    def test_async_kinds_return_resolved_futures(self, file_stores):
        view = MaterializedView(project="p", name="v", table_name="v", query="q")
        assert file_stores.materialized_views.create("p", view).result(timeout=0).status == CreateStatus.CREATED
        assert file_stores.materialized_views.create("p", view).result(timeout=0).status == CreateStatus.ALREADY_EXISTS
        assert file_stores.materialized_views.delete("p", "v").result(timeout=0) is True

    def test_report_update(self, file_stores):
        file_stores.reports.create("p", Report(project="p", slug="r", name="old", query="q"))
        file_stores.reports.update("p", Report(project="p", slug="r", name="new", query="q"))
        assert file_stores.reports.list("p")[0].name == "new"

    def test_report_update_missing_raises(self, file_stores):
        with pytest.raises(LookupError):
            file_stores.reports.update("p", Report(project="p", slug="r", name="n", query="q"))

    def test_page_files(self, file_stores):
        pages = file_stores.pages.store
        pages.create("p", CustomPage(project="p", slug="s", name="S", files={"a.html": "<p/>"}))
        assert pages.get_files("p", "s") == {"a.html": "<p/>"}

    def test_dashboard_items_persist(self, backend, file_stores):
        dashboard = file_stores.dashboards.create("p", "Main", {}).value
        file_stores.dashboards.add_item("p", dashboard.id, "w", "chart", {"k": 1})
        items = backend.collaborators().dashboards.get_items("p", dashboard.id)
        assert [(i.name, i.data) for i in items] == [("w", {"k": 1})]

    def test_dashboard_ids_increase(self, file_stores):
        a = file_stores.dashboards.create("p", "A", {}).value
        b = file_stores.dashboards.create("p", "B", {}).value
        assert b.id == a.id + 1
