"""Tests for the per-kind resource installers."""

from unittest.mock import MagicMock

import pytest

from recipekit.errors import (
    AlreadyExistsError,
    CollaboratorError,
    InconsistencyError,
    UnsupportedFeatureError,
)
from recipekit.models.recipe import DashboardBuilder
from recipekit.models.resources import (
    ContinuousQuery,
    CustomPage,
    CustomReport,
    Dashboard,
    DashboardItem,
    Report,
)
from recipekit.recipe.installers import (
    CONTINUOUS_QUERY,
    CUSTOM_REPORT,
    REPORT,
    CustomPageInstaller,
    DashboardInstaller,
    ResourceInstaller,
    join,
)
from recipekit.storage.base import CreateResult, PageStoreAbsent, completed_future


def cq(table_name, query="select 1"):
    return ContinuousQuery(project="p", name=table_name, table_name=table_name, query=query)


def report(slug, name="Report"):
    return Report(project="p", slug=slug, name=name, query="select 1")


# ---------------------------------------------------------------------------
# join
# ---------------------------------------------------------------------------


class TestJoin:
    def test_plain_value_passes_through(self):
        assert join(3) == 3

    def test_future_is_resolved(self):
        assert join(completed_future("x"), timeout=1) == "x"


# ---------------------------------------------------------------------------
# ResourceInstaller
# ---------------------------------------------------------------------------


class TestResourceInstallerReplace:
    def test_creates_all(self, stores):
        installer = ResourceInstaller(CONTINUOUS_QUERY, stores.continuous_queries, timeout=5)
        counts = installer.install("p", [cq("a"), cq("b")], override_existing=False)
        assert (counts.created, counts.replaced) == (2, 0)
        assert [q.table_name for q in stores.continuous_queries.list("p")] == ["a", "b"]

    def test_existing_without_override_fails(self, stores):
        stores.continuous_queries.create("p", cq("a", "old")).result(timeout=5)
        installer = ResourceInstaller(CONTINUOUS_QUERY, stores.continuous_queries, timeout=5)
        with pytest.raises(AlreadyExistsError) as exc:
            installer.install("p", [cq("a", "new")], override_existing=False)
        assert exc.value.key == "a"
        assert stores.continuous_queries.get("p", "a").query == "old"

    def test_existing_with_override_is_replaced(self, stores):
        stores.continuous_queries.create("p", cq("a", "old")).result(timeout=5)
        installer = ResourceInstaller(CONTINUOUS_QUERY, stores.continuous_queries, timeout=5)
        counts = installer.install("p", [cq("a", "new")], override_existing=True)
        assert (counts.created, counts.replaced) == (0, 1)
        assert stores.continuous_queries.get("p", "a").query == "new"

    def test_earlier_resources_stay_on_failure(self, stores):
        stores.continuous_queries.create("p", cq("b")).result(timeout=5)
        installer = ResourceInstaller(CONTINUOUS_QUERY, stores.continuous_queries, timeout=5)
        with pytest.raises(AlreadyExistsError):
            installer.install("p", [cq("a"), cq("b"), cq("c")], override_existing=False)
        assert stores.continuous_queries.get("p", "a") is not None
        assert stores.continuous_queries.get("p", "c") is None

    def test_failed_result_raises_collaborator_error(self):
        store = MagicMock()
        cause = RuntimeError("disk full")
        store.create.return_value = CreateResult.failed(cause)
        installer = ResourceInstaller(CONTINUOUS_QUERY, store)
        with pytest.raises(CollaboratorError) as exc:
            installer.install("p", [cq("a")], override_existing=True)
        assert exc.value.__cause__ is cause
        assert "disk full" in str(exc.value)

    def test_raised_store_exception_propagates(self):
        store = MagicMock()
        store.create.side_effect = ConnectionError("down")
        with pytest.raises(ConnectionError):
            ResourceInstaller(CONTINUOUS_QUERY, store).install("p", [cq("a")], override_existing=False)

    def test_still_exists_after_delete_is_inconsistency(self):
        store = MagicMock()
        store.create.return_value = CreateResult.already_exists()
        store.delete.return_value = True
        installer = ResourceInstaller(CONTINUOUS_QUERY, store)
        with pytest.raises(InconsistencyError):
            installer.install("p", [cq("a")], override_existing=True)
        assert store.create.call_count == 2

    def test_replace_deletes_by_key(self):
        store = MagicMock()
        store.create.side_effect = [CreateResult.already_exists(), CreateResult.created()]
        ResourceInstaller(CUSTOM_REPORT, store).install(
            "p", [CustomReport(project="p", report_type="funnel", name="n")], override_existing=True
        )
        store.delete.assert_called_once_with("p", ("funnel", "n"))

    def test_replace_logs_event(self):
        store = MagicMock()
        store.create.side_effect = [CreateResult.already_exists(), CreateResult.created()]
        events = MagicMock()
        ResourceInstaller(CONTINUOUS_QUERY, store, events=events).install("p", [cq("a")], True)
        events.log_resource_replaced.assert_called_once_with("continuous query", "a", "replace")


class TestResourceInstallerUpdate:
    def test_report_override_updates_in_place(self, stores):
        stores.reports.create("p", report("r", "old"))
        counts = ResourceInstaller(REPORT, stores.reports).install("p", [report("r", "new")], True)
        assert counts.replaced == 1
        assert stores.reports.get("p", "r").name == "new"

    def test_update_does_not_delete(self):
        store = MagicMock()
        store.create.return_value = CreateResult.already_exists()
        ResourceInstaller(REPORT, store).install("p", [report("r")], True)
        store.update.assert_called_once()
        store.delete.assert_not_called()

    def test_duplicate_slugs_last_wins_with_override(self, stores):
        counts = ResourceInstaller(REPORT, stores.reports).install(
            "p", [report("r", "first"), report("r", "second")], True
        )
        assert (counts.created, counts.replaced) == (1, 1)
        assert stores.reports.get("p", "r").name == "second"

    def test_duplicate_slugs_fail_without_override(self, stores):
        with pytest.raises(AlreadyExistsError):
            ResourceInstaller(REPORT, stores.reports).install(
                "p", [report("r", "first"), report("r", "second")], False
            )
        assert stores.reports.get("p", "r").name == "first"


# ---------------------------------------------------------------------------
# DashboardInstaller
# ---------------------------------------------------------------------------


class TestDashboardInstaller:
    def test_creates_with_items_in_order(self, stores):
        desired = DashboardBuilder(
            name="Main",
            items=[DashboardItem(name="a", directive="chart"), DashboardItem(name="b", directive="table")],
        )
        counts = DashboardInstaller(stores.dashboards).install("p", [desired])
        assert counts.created == 1
        [dashboard] = stores.dashboards.list("p")
        assert [i.name for i in stores.dashboards.get_items("p", dashboard.id)] == ["a", "b"]

    def test_existing_dashboard_is_fully_replaced(self, stores):
        old = stores.dashboards.create("p", "Main", {}).value
        stores.dashboards.add_item("p", old.id, "stale", "chart", {})
        desired = DashboardBuilder(name="Main", items=[DashboardItem(name="fresh", directive="chart")])

        counts = DashboardInstaller(stores.dashboards).install("p", [desired])

        assert counts.replaced == 1
        [dashboard] = stores.dashboards.list("p")
        assert dashboard.id != old.id
        assert [i.name for i in stores.dashboards.get_items("p", dashboard.id)] == ["fresh"]

    def test_duplicate_items_are_kept(self, stores):
        item = DashboardItem(name="a", directive="chart")
        DashboardInstaller(stores.dashboards).install("p", [DashboardBuilder(name="M", items=[item, item])])
        [dashboard] = stores.dashboards.list("p")
        assert len(stores.dashboards.get_items("p", dashboard.id)) == 2

    def test_existing_but_not_listed_is_inconsistency(self):
        store = MagicMock()
        store.create.return_value = CreateResult.already_exists()
        store.list.return_value = [Dashboard(project="p", id=1, name="Other")]
        with pytest.raises(InconsistencyError):
            DashboardInstaller(store).install("p", [DashboardBuilder(name="Main")])
        store.delete.assert_not_called()

    def test_failing_item_aborts_remaining_items(self):
        store = MagicMock()
        store.create.side_effect = [
            CreateResult.created(Dashboard(project="p", id=1, name="A")),
            CreateResult.created(Dashboard(project="p", id=2, name="B")),
        ]
        store.add_item.side_effect = [None, None, LookupError("gone")]
        dashboards = [
            DashboardBuilder(name="A", items=[DashboardItem(name="a1", directive="chart")]),
            DashboardBuilder(
                name="B",
                items=[
                    DashboardItem(name="b1", directive="chart"),
                    DashboardItem(name="b2", directive="chart"),
                    DashboardItem(name="b3", directive="chart"),
                ],
            ),
        ]
        with pytest.raises(LookupError):
            DashboardInstaller(store).install("p", dashboards)
        assert [c.args[2] for c in store.add_item.call_args_list] == ["a1", "b1", "b2"]

    def test_failed_create_raises(self):
        store = MagicMock()
        store.create.return_value = CreateResult.failed(RuntimeError("boom"))
        with pytest.raises(CollaboratorError):
            DashboardInstaller(store).install("p", [DashboardBuilder(name="Main")])


# ---------------------------------------------------------------------------
# CustomPageInstaller
# ---------------------------------------------------------------------------


class TestCustomPageInstaller:
    def test_absent_capability_with_pages_fails(self):
        page = CustomPage(project="p", slug="s", name="S")
        with pytest.raises(UnsupportedFeatureError, match="Custom page feature is not supported"):
            CustomPageInstaller(PageStoreAbsent()).install("p", [page], False)

    def test_absent_capability_without_pages_is_noop(self):
        counts = CustomPageInstaller(PageStoreAbsent()).install("p", [], False)
        assert (counts.created, counts.replaced) == (0, 0)

    def test_present_capability_installs(self, stores):
        page = CustomPage(project="p", slug="s", name="S", files={"index.html": "x"})
        counts = CustomPageInstaller(stores.pages, timeout=5).install("p", [page], False)
        assert counts.created == 1
        assert stores.pages.store.get_files("p", "s") == {"index.html": "x"}
