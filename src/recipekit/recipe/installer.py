"""
Recipe installation.

``RecipeInstaller.install`` applies a recipe to a project in a fixed order:

    schema -> continuous queries -> materialized views -> reports
           -> dashboards -> custom reports -> custom pages

Schema comes first because other resources may reference collections. Each
step runs to completion before the next starts. A failing step stops the
install and is raised as ``RecipeInstallError``; the effects of the steps
before it (and of the resources processed earlier inside the failing step)
are kept. There is no rollback.

Custom pages come last, so a recipe that needs the missing custom-page
capability fails only after the other kinds have been applied.

Concurrent installs into the same project are not coordinated; callers must
serialize them.

Usage::

    from recipekit.recipe.installer import RecipeInstaller
    from recipekit.storage import get_collaborators, StorageType

    installer = RecipeInstaller(get_collaborators(StorageType.FILE))
    summary = installer.install(recipe, "analytics", override_existing=True)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from recipekit.config import get_async_timeout, get_config
from recipekit.errors import RecipeInstallError, SchemaCollisionError
from recipekit.logger import RecipeLogger
from recipekit.models.recipe import Recipe, Strategy
from recipekit.otel import emit_install_failed, emit_schema_collision, emit_step_completed
from recipekit.recipe.installers import (
    CONTINUOUS_QUERY,
    CUSTOM_REPORT,
    MATERIALIZED_VIEW,
    REPORT,
    CustomPageInstaller,
    DashboardInstaller,
    ResourceInstaller,
    StepCounts,
)
from recipekit.recipe.schema import SchemaReconciler
from recipekit.storage.base import Collaborators

logger = logging.getLogger(__name__)


class InstallState(str, Enum):
    """Progress of one install call."""
    NOT_STARTED = "not_started"
    SCHEMA_VALIDATED = "schema_validated"
    CONTINUOUS_QUERIES_APPLIED = "continuous_queries_applied"
    MATERIALIZED_VIEWS_APPLIED = "materialized_views_applied"
    REPORTS_APPLIED = "reports_applied"
    DASHBOARDS_APPLIED = "dashboards_applied"
    CUSTOM_REPORTS_APPLIED = "custom_reports_applied"
    CUSTOM_PAGES_APPLIED = "custom_pages_applied"
    DONE = "done"
    FAILED = "failed"


class InstallStep(str, Enum):
    """Install steps in execution order."""
    SCHEMA = "schema"
    CONTINUOUS_QUERIES = "continuous_queries"
    MATERIALIZED_VIEWS = "materialized_views"
    REPORTS = "reports"
    DASHBOARDS = "dashboards"
    CUSTOM_REPORTS = "custom_reports"
    CUSTOM_PAGES = "custom_pages"

    @property
    def reaches(self) -> InstallState:
        """State reached when this step succeeds."""
        return _STEP_STATES[self]


_STEP_STATES: Dict[InstallStep, InstallState] = {
    InstallStep.SCHEMA: InstallState.SCHEMA_VALIDATED,
    InstallStep.CONTINUOUS_QUERIES: InstallState.CONTINUOUS_QUERIES_APPLIED,
    InstallStep.MATERIALIZED_VIEWS: InstallState.MATERIALIZED_VIEWS_APPLIED,
    InstallStep.REPORTS: InstallState.REPORTS_APPLIED,
    InstallStep.DASHBOARDS: InstallState.DASHBOARDS_APPLIED,
    InstallStep.CUSTOM_REPORTS: InstallState.CUSTOM_REPORTS_APPLIED,
    InstallStep.CUSTOM_PAGES: InstallState.CUSTOM_PAGES_APPLIED,
}

INSTALL_ORDER: Tuple[InstallStep, ...] = tuple(InstallStep)


@dataclass
class InstallRun:
    """State of one install call."""
    project: str
    override_existing: bool
    state: InstallState = InstallState.NOT_STARTED
    completed: List[InstallStep] = field(default_factory=list)
    counts: Dict[InstallStep, StepCounts] = field(default_factory=dict)

    def advance(self, step: InstallStep, counts: StepCounts) -> None:
        self.completed.append(step)
        self.counts[step] = counts
        self.state = step.reaches


@dataclass(frozen=True)
class InstallSummary:
    """Result of a fully successful install."""
    project: str
    override_existing: bool
    counts: Dict[InstallStep, StepCounts]
    state: InstallState = InstallState.DONE

    @property
    def created(self) -> int:
        return sum(c.created for c in self.counts.values())

    @property
    def replaced(self) -> int:
        return sum(c.replaced for c in self.counts.values())


class RecipeInstaller:
    """Applies recipes to projects through a set of collaborators."""

    def __init__(
        self,
        collaborators: Collaborators,
        timeout: Optional[float] = None,
        service_name: Optional[str] = None,
    ):
        self.collaborators = collaborators
        self.timeout = timeout if timeout is not None else get_async_timeout()
        self.service_name = service_name or get_config().service_name

    def install(
        self,
        recipe: Recipe,
        project: Optional[str] = None,
        override_existing: bool = False,
    ) -> InstallSummary:
        """
        Install ``recipe`` into ``project``.

        Args:
            recipe: Desired-state recipe
            project: Target project; defaults to ``recipe.project``
            override_existing: Replace resources that already exist instead
                of failing. Never applies to schema collisions; dashboards are
                always rebuilt.

        Returns:
            InstallSummary with per-step counts

        Raises:
            ValueError: If no target project is known
            RecipeInstallError: On the first failing step
        """
        target = project or recipe.project
        if target is None:
            raise ValueError("project is null")
        if recipe.strategy == Strategy.SPECIFIC and recipe.project and recipe.project != target:
            logger.info(f"Installing recipe exported from '{recipe.project}' into '{target}'")

        events = RecipeLogger(project=target, service_name=self.service_name)
        run = InstallRun(project=target, override_existing=override_existing)
        events.log_install_started(override_existing, _resource_count(recipe))

        for step, apply in self._steps(recipe, target, override_existing, events):
            try:
                counts = apply()
            except Exception as e:
                run.state = InstallState.FAILED
                completed = [s.value for s in run.completed]
                if isinstance(e, SchemaCollisionError):
                    emit_schema_collision(target, e)
                emit_install_failed(target, step.value, e)
                events.log_install_failed(step.value, e, completed)
                raise RecipeInstallError(target, step, e, run.completed) from e

            run.advance(step, counts)
            emit_step_completed(target, step.value, counts.created, counts.replaced)
            events.log_step_completed(step.value, counts.created, counts.replaced)

        run.state = InstallState.DONE
        summary = InstallSummary(project=target, override_existing=override_existing, counts=run.counts)
        events.log_install_completed(summary.created, summary.replaced)
        return summary

    def _steps(
        self,
        recipe: Recipe,
        project: str,
        override: bool,
        events: RecipeLogger,
    ) -> List[Tuple[InstallStep, Callable[[], StepCounts]]]:
        stores = self.collaborators

        def kind(resource_kind, store, builders):
            installer = ResourceInstaller(resource_kind, store, timeout=self.timeout, events=events)
            return lambda: installer.install(project, [b.build(project) for b in builders], override)

        def schema() -> StepCounts:
            SchemaReconciler(stores.collections).reconcile(project, recipe.collections, override)
            return StepCounts()

        dashboards = DashboardInstaller(stores.dashboards, events=events)
        pages = CustomPageInstaller(stores.pages, timeout=self.timeout, events=events)

        return [
            (InstallStep.SCHEMA, schema),
            (InstallStep.CONTINUOUS_QUERIES,
             kind(CONTINUOUS_QUERY, stores.continuous_queries, recipe.continuous_queries)),
            (InstallStep.MATERIALIZED_VIEWS,
             kind(MATERIALIZED_VIEW, stores.materialized_views, recipe.materialized_views)),
            (InstallStep.REPORTS, kind(REPORT, stores.reports, recipe.reports)),
            (InstallStep.DASHBOARDS, lambda: dashboards.install(project, recipe.dashboards)),
            (InstallStep.CUSTOM_REPORTS,
             kind(CUSTOM_REPORT, stores.custom_reports, recipe.custom_reports)),
            (InstallStep.CUSTOM_PAGES,
             lambda: pages.install(project, [b.build(project) for b in recipe.custom_pages], override)),
        ]


def _resource_count(recipe: Recipe) -> int:
    return (
        len(recipe.continuous_queries)
        + len(recipe.materialized_views)
        + len(recipe.reports)
        + len(recipe.dashboards)
        + len(recipe.custom_reports)
        + len(recipe.custom_pages)
    )
