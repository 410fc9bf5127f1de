"""
Per-kind resource installers.

All builder kinds except dashboards share one protocol, implemented once by
``ResourceInstaller`` and parameterized by a ``ResourceKind``:

1. create the resource (joining the future for asynchronous stores);
2. if the store reports ALREADY_EXISTS, either fail (no override) or apply
   the kind's override strategy: REPLACE deletes by key then creates again,
   UPDATE rewrites the stored resource in place;
3. any other failure aborts the loop; resources installed before it stay.

Dashboards are always fully rebuilt when they exist, and their items are
replayed in order. Custom pages go through the generic installer only when
the page store capability is present.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from recipekit.errors import (
    AlreadyExistsError,
    CollaboratorError,
    InconsistencyError,
    UnsupportedFeatureError,
)
from recipekit.logger import RecipeLogger
from recipekit.models.recipe import DashboardBuilder
from recipekit.models.resources import Dashboard
from recipekit.storage.base import (
    CreateResult,
    CreateStatus,
    DashboardStore,
    PageStoreCapability,
)

logger = logging.getLogger(__name__)


class OverrideStrategy(str, Enum):
    """How an existing resource is overridden."""
    REPLACE = "replace"  # delete by key, then create
    UPDATE = "update"    # update in place, keeping store-assigned metadata


@dataclass(frozen=True)
class ResourceKind:
    """Descriptor of one installable resource kind."""
    name: str
    override: OverrideStrategy = OverrideStrategy.REPLACE


CONTINUOUS_QUERY = ResourceKind("continuous query")
MATERIALIZED_VIEW = ResourceKind("materialized view")
REPORT = ResourceKind("report", OverrideStrategy.UPDATE)
CUSTOM_REPORT = ResourceKind("custom report")
CUSTOM_PAGE = ResourceKind("custom page")
DASHBOARD = ResourceKind("dashboard")


@dataclass
class StepCounts:
    """Resources created and replaced by one install step."""
    created: int = 0
    replaced: int = 0


def join(outcome: Any, timeout: Optional[float] = None) -> Any:
    """Block on ``outcome`` if it is a future, otherwise return it as is."""
    if isinstance(outcome, Future):
        return outcome.result(timeout=timeout)
    return outcome


class ResourceInstaller:
    """
    Create-or-override installer for one resource kind.

    ``store`` must provide ``create(project, resource)`` and
    ``delete(project, key)``; stores for UPDATE kinds also provide
    ``update(project, resource)``. Futures returned by the store are joined
    before the next resource is touched.
    """

    def __init__(
        self,
        kind: ResourceKind,
        store: Any,
        timeout: Optional[float] = None,
        events: Optional[RecipeLogger] = None,
    ):
        self.kind = kind
        self._store = store
        self._timeout = timeout
        self._events = events

    def install(self, project: str, resources: Sequence[Any], override_existing: bool) -> StepCounts:
        counts = StepCounts()

        for resource in resources:
            result = self._create(project, resource)

            if result.ok:
                logger.debug(f"Created {self.kind.name} {resource.key!r} in '{project}'")
                counts.created += 1
                continue

            if result.status == CreateStatus.FAILED:
                raise self._failure(resource, "create", result)

            if not override_existing:
                raise AlreadyExistsError(self.kind.name, resource.key)

            self._override(project, resource)
            counts.replaced += 1

        return counts

    def _create(self, project: str, resource: Any) -> CreateResult:
        return join(self._store.create(project, resource), self._timeout)

    def _override(self, project: str, resource: Any) -> None:
        logger.info(
            f"Overriding existing {self.kind.name} {resource.key!r} in '{project}' "
            f"({self.kind.override.value})"
        )
        if self._events is not None:
            self._events.log_resource_replaced(self.kind.name, resource.key, self.kind.override.value)

        if self.kind.override == OverrideStrategy.UPDATE:
            self._store.update(project, resource)
            return

        # Not atomic: a failure between delete and create leaves the resource absent.
        join(self._store.delete(project, resource.key), self._timeout)
        result = self._create(project, resource)
        if result.status == CreateStatus.ALREADY_EXISTS:
            raise InconsistencyError(self.kind.name, resource.key, "still exists after delete")
        if result.status == CreateStatus.FAILED:
            raise self._failure(resource, "re-create", result)

    def _failure(self, resource: Any, operation: str, result: CreateResult) -> CollaboratorError:
        error = CollaboratorError(
            self.kind.name, resource.key, operation, str(result.error or "")
        )
        error.__cause__ = result.error
        return error


class DashboardInstaller:
    """
    Installs dashboards by full replacement.

    A dashboard that already exists is looked up by exact name, deleted and
    created again empty, whatever the override flag says; desired items are
    then added one by one in order, duplicates included.
    """

    def __init__(self, store: DashboardStore, events: Optional[RecipeLogger] = None):
        self._store = store
        self._events = events

    def install(self, project: str, dashboards: Sequence[DashboardBuilder]) -> StepCounts:
        counts = StepCounts()

        for desired in dashboards:
            dashboard, replaced = self._create_fresh(project, desired.name)
            if replaced:
                counts.replaced += 1
            else:
                counts.created += 1

            for item in desired.items:
                self._store.add_item(project, dashboard.id, item.name, item.directive, item.data)
            logger.debug(
                f"Dashboard '{desired.name}' (id {dashboard.id}) populated with {len(desired.items)} item(s)"
            )

        return counts

    def _create_fresh(self, project: str, name: str) -> Tuple[Dashboard, bool]:
        result = self._store.create(project, name, {})
        if result.ok:
            return result.value, False
        if result.status == CreateStatus.FAILED:
            raise self._failure(name, "create", result)

        matches = [d for d in self._store.list(project) if d.name == name]
        if not matches:
            raise InconsistencyError(
                DASHBOARD.name, name, "reported as existing but not found by name"
            )
        existing = matches[0]

        logger.info(f"Rebuilding existing dashboard '{name}' (id {existing.id}) in '{project}'")
        if self._events is not None:
            self._events.log_resource_replaced(DASHBOARD.name, name, OverrideStrategy.REPLACE.value)

        self._store.delete(project, existing.id)
        result = self._store.create(project, name, {})
        if result.status == CreateStatus.ALREADY_EXISTS:
            raise InconsistencyError(DASHBOARD.name, name, "still exists after delete")
        if result.status == CreateStatus.FAILED:
            raise self._failure(name, "re-create", result)
        return result.value, True

    @staticmethod
    def _failure(name: str, operation: str, result: CreateResult) -> CollaboratorError:
        error = CollaboratorError(DASHBOARD.name, name, operation, str(result.error or ""))
        error.__cause__ = result.error
        return error


class CustomPageInstaller:
    """Installs custom pages when the page store capability is present."""

    def __init__(
        self,
        capability: PageStoreCapability,
        timeout: Optional[float] = None,
        events: Optional[RecipeLogger] = None,
    ):
        self._capability = capability
        self._timeout = timeout
        self._events = events

    def install(self, project: str, pages: List[Any], override_existing: bool) -> StepCounts:
        if not self._capability.is_present:
            if pages:
                raise UnsupportedFeatureError(
                    "Custom page", f"recipe contains {len(pages)} custom page(s)"
                )
            return StepCounts()

        installer = ResourceInstaller(
            CUSTOM_PAGE, self._capability.store, timeout=self._timeout, events=self._events
        )
        return installer.install(project, pages, override_existing)
