"""
Recipe export.

Reads the current state of a project through the collaborators and
assembles a ``Recipe`` bound to that project. Export is read-only; store
failures propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional

from recipekit.config import get_config
from recipekit.logger import RecipeLogger
from recipekit.models.recipe import (
    ContinuousQueryBuilder,
    CustomPageBuilder,
    CustomReportBuilder,
    DashboardBuilder,
    MaterializedViewBuilder,
    Recipe,
    ReportBuilder,
    Strategy,
)
from recipekit.storage.base import Collaborators

logger = logging.getLogger(__name__)


class RecipeExporter:
    """Serializes a project's configuration into a recipe."""

    def __init__(self, collaborators: Collaborators, service_name: Optional[str] = None):
        self.collaborators = collaborators
        self.service_name = service_name or get_config().service_name

    def export(self, project: str) -> Recipe:
        stores = self.collaborators

        collections = stores.collections.get_collections(project)
        materialized_views = [
            MaterializedViewBuilder.from_resource(v) for v in stores.materialized_views.list(project)
        ]
        continuous_queries = [
            ContinuousQueryBuilder.from_resource(q) for q in stores.continuous_queries.list(project)
        ]
        reports = [ReportBuilder.from_resource(r) for r in stores.reports.list(project)]
        custom_reports = [
            CustomReportBuilder.from_resource(r) for r in stores.custom_reports.list(project)
        ]

        custom_pages = []
        if stores.pages.is_present:
            page_store = stores.pages.store
            for page in page_store.list(project):
                files = page_store.get_files(project, page.slug)
                custom_pages.append(
                    CustomPageBuilder.from_resource(page.model_copy(update={"files": files}))
                )
        else:
            logger.debug(f"Custom page store absent, exporting '{project}' without pages")

        dashboards = []
        for dashboard in stores.dashboards.list(project):
            items = stores.dashboards.get_items(project, dashboard.id)
            dashboards.append(DashboardBuilder(name=dashboard.name, items=items))

        recipe = Recipe(
            strategy=Strategy.SPECIFIC,
            project=project,
            collections=collections,
            continuous_queries=continuous_queries,
            materialized_views=materialized_views,
            reports=reports,
            custom_reports=custom_reports,
            custom_pages=custom_pages,
            dashboards=dashboards,
        )

        RecipeLogger(project=project, service_name=self.service_name).log_exported(
            {
                "collections": len(collections),
                "continuous_queries": len(continuous_queries),
                "materialized_views": len(materialized_views),
                "reports": len(reports),
                "custom_reports": len(custom_reports),
                "custom_pages": len(custom_pages),
                "dashboards": len(dashboards),
            }
        )
        return recipe
