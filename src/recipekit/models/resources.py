"""
Store-side resource models.

These are the objects the collaborator stores persist for a project. Recipe
builders (``recipekit.models.recipe``) materialize into these against a
target project.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class ContinuousQuery(BaseModel):
    """A standing query incrementally maintained into ``table_name``."""
    project: str
    name: str
    table_name: str = Field(..., min_length=1)
    query: str
    partition_keys: List[str] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.table_name


class MaterializedView(BaseModel):
    """A query whose result set is cached and refreshed on a schedule."""
    project: str
    name: str
    table_name: str = Field(..., min_length=1)
    query: str
    update_interval: Optional[int] = Field(None, ge=0, description="Refresh interval in seconds")
    incremental: bool = False
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.table_name


class Report(BaseModel):
    """A saved report, addressed by slug."""
    project: str
    slug: str = Field(..., min_length=1)
    name: str
    category: Optional[str] = None
    query: str
    options: Dict[str, Any] = Field(default_factory=dict)
    shared: bool = False

    @property
    def key(self) -> str:
        return self.slug


class CustomReport(BaseModel):
    """A custom report, addressed by ``(report_type, name)``."""
    project: str
    report_type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.report_type, self.name)


class CustomPage(BaseModel):
    """A custom page made of named files, addressed by slug."""
    project: str
    slug: str = Field(..., min_length=1)
    name: str
    category: Optional[str] = None
    files: Dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.slug


class DashboardItem(BaseModel):
    """One positional widget on a dashboard."""
    name: str
    directive: str
    data: Dict[str, Any] = Field(default_factory=dict)


class Dashboard(BaseModel):
    """A dashboard as stored; ``id`` is assigned by the store."""
    project: str
    id: int
    name: str
    options: Dict[str, Any] = Field(default_factory=dict)
    items: List[DashboardItem] = Field(default_factory=list)
