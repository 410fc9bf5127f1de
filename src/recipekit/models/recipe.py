"""
Pydantic models for the recipe document.

A recipe is the desired-state bundle for one analytics project: collection
schemas plus per-kind resource lists. Resource entries are *builders*: they
carry everything about a resource except the project, and ``build(project)``
materializes the store-side resource against a target project.

Wire format uses camelCase keys (``tableName``, ``continuousQueries``);
snake_case is accepted on input. All list fields default to empty.

Usage::

    from recipekit.models.recipe import Recipe
    import yaml

    with open("recipe.yaml") as fh:
        recipe = Recipe.model_validate(yaml.safe_load(fh))
    for builder in recipe.continuous_queries:
        cq = builder.build("target-project")
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

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


class Strategy(str, Enum):
    """Whether a recipe is bound to a specific project."""
    SPECIFIC = "SPECIFIC"
    DEFAULT = "DEFAULT"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


class ContinuousQueryBuilder(_WireModel):
    name: str
    table_name: str = Field(..., min_length=1)
    query: str
    partition_keys: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.table_name

    def build(self, project: str) -> ContinuousQuery:
        return ContinuousQuery(project=project, **self.model_dump())

    @classmethod
    def from_resource(cls, cq: ContinuousQuery) -> "ContinuousQueryBuilder":
        return cls.model_validate(cq.model_dump(exclude={"project"}))


class MaterializedViewBuilder(_WireModel):
    name: str
    table_name: str = Field(..., min_length=1)
    query: str
    update_interval: Optional[int] = Field(None, ge=0)
    incremental: bool = False
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.table_name

    def build(self, project: str) -> MaterializedView:
        return MaterializedView(project=project, **self.model_dump())

    @classmethod
    def from_resource(cls, view: MaterializedView) -> "MaterializedViewBuilder":
        return cls.model_validate(view.model_dump(exclude={"project"}))


class ReportBuilder(_WireModel):
    slug: str = Field(..., min_length=1)
    name: str
    category: Optional[str] = None
    query: str
    options: Dict[str, Any] = Field(default_factory=dict)
    shared: bool = False

    @property
    def key(self) -> str:
        return self.slug

    def build(self, project: str) -> Report:
        return Report(project=project, **self.model_dump())

    @classmethod
    def from_resource(cls, report: Report) -> "ReportBuilder":
        return cls.model_validate(report.model_dump(exclude={"project"}))


class CustomReportBuilder(_WireModel):
    report_type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> tuple:
        return (self.report_type, self.name)

    def build(self, project: str) -> CustomReport:
        return CustomReport(project=project, **self.model_dump())

    @classmethod
    def from_resource(cls, report: CustomReport) -> "CustomReportBuilder":
        return cls.model_validate(report.model_dump(exclude={"project"}))


class CustomPageBuilder(_WireModel):
    slug: str = Field(..., min_length=1)
    name: str
    category: Optional[str] = None
    files: Dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.slug

    def build(self, project: str) -> CustomPage:
        return CustomPage(project=project, **self.model_dump())

    @classmethod
    def from_resource(cls, page: CustomPage) -> "CustomPageBuilder":
        return cls.model_validate(page.model_dump(exclude={"project"}))


class DashboardBuilder(_WireModel):
    name: str = Field(..., min_length=1)
    items: List[DashboardItem] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name

    @classmethod
    def from_resource(cls, dashboard: Dashboard) -> "DashboardBuilder":
        return cls(name=dashboard.name, items=list(dashboard.items))


# ---------------------------------------------------------------------------
# Recipe
# ---------------------------------------------------------------------------


class Recipe(_WireModel):
    """Root model of a recipe document."""

    strategy: Strategy = Strategy.DEFAULT
    project: Optional[str] = None
    collections: Dict[str, List[SchemaField]] = Field(default_factory=dict)
    continuous_queries: List[ContinuousQueryBuilder] = Field(default_factory=list)
    materialized_views: List[MaterializedViewBuilder] = Field(default_factory=list)
    reports: List[ReportBuilder] = Field(default_factory=list)
    custom_reports: List[CustomReportBuilder] = Field(default_factory=list)
    custom_pages: List[CustomPageBuilder] = Field(default_factory=list)
    dashboards: List[DashboardBuilder] = Field(default_factory=list)

    @field_validator(
        "continuous_queries",
        "materialized_views",
        "reports",
        "custom_reports",
        "custom_pages",
        "dashboards",
        mode="before",
    )
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("collections", mode="before")
    @classmethod
    def _normalize_collections(cls, v: Any) -> Any:
        """Accept ``[{name, type, category}]`` and the keyed form ``[{fieldName: {type, category}}]``."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        normalized = {}
        for collection, fields in v.items():
            entries = []
            for entry in fields or []:
                if isinstance(entry, dict) and len(entry) == 1:
                    field_name, info = next(iter(entry.items()))
                    if isinstance(info, dict):
                        entry = {**info, "name": field_name}
                entries.append(entry)
            normalized[collection] = entries
        return normalized

    @field_validator("collections")
    @classmethod
    def _unique_field_names(cls, v: Dict[str, List[SchemaField]]) -> Dict[str, List[SchemaField]]:
        for collection, fields in v.items():
            counts = Counter(f.name for f in fields)
            dupes = sorted(name for name, n in counts.items() if n > 1)
            if dupes:
                raise ValueError(
                    f"Collection '{collection}' declares duplicate fields: {', '.join(dupes)}"
                )
        return v

    def duplicate_keys(self) -> Dict[str, List[Any]]:
        """Identifying keys that appear more than once within one resource list.

        Duplicates are legal (the installer applies them in list order), but
        usually a mistake worth reporting.
        """
        lists = {
            "continuous_queries": self.continuous_queries,
            "materialized_views": self.materialized_views,
            "reports": self.reports,
            "custom_reports": self.custom_reports,
            "custom_pages": self.custom_pages,
            "dashboards": self.dashboards,
        }
        result = {}
        for kind, builders in lists.items():
            counts = Counter(b.key for b in builders)
            dupes = [key for key, n in counts.items() if n > 1]
            if dupes:
                result[kind] = dupes
        return result

    def is_empty(self) -> bool:
        return not (
            self.collections
            or self.continuous_queries
            or self.materialized_views
            or self.reports
            or self.custom_reports
            or self.custom_pages
            or self.dashboards
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire document."""
        return self.model_dump(mode="json", by_alias=True)
