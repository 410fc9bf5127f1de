"""
recipekit models package.

Re-exports the schema, store-side resource, and recipe document models.
"""

from __future__ import annotations

from recipekit.models.schema import (
    FieldCategory,
    FieldType,
    SchemaField,
    find_field,
    merge_fields,
)
from recipekit.models.resources import (
    ContinuousQuery,
    CustomPage,
    CustomReport,
    Dashboard,
    DashboardItem,
    MaterializedView,
    Report,
)
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

__all__ = [
    "FieldCategory",
    "FieldType",
    "SchemaField",
    "find_field",
    "merge_fields",
    "ContinuousQuery",
    "CustomPage",
    "CustomReport",
    "Dashboard",
    "DashboardItem",
    "MaterializedView",
    "Report",
    "ContinuousQueryBuilder",
    "CustomPageBuilder",
    "CustomReportBuilder",
    "DashboardBuilder",
    "MaterializedViewBuilder",
    "Recipe",
    "ReportBuilder",
    "Strategy",
]
