"""
Collection schema models.

A collection is a named, schema-typed stream of ingested events. Its schema
is an ordered list of ``SchemaField`` entries whose names are unique within
the collection. Field types are primitive tags; once a field exists in a
project's collection store its type never changes through recipekit.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Primitive type tags for collection fields."""
    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    ARRAY_STRING = "array_string"
    ARRAY_INTEGER = "array_integer"
    ARRAY_LONG = "array_long"
    ARRAY_DOUBLE = "array_double"
    ARRAY_BOOLEAN = "array_boolean"
    ARRAY_TIMESTAMP = "array_timestamp"
    MAP_STRING = "map_string"
    MAP_INTEGER = "map_integer"
    MAP_LONG = "map_long"
    MAP_DOUBLE = "map_double"
    MAP_BOOLEAN = "map_boolean"


class FieldCategory(str, Enum):
    """How a field is used in analysis."""
    DIMENSION = "dimension"
    MEASURE = "measure"
    TIME = "time"
    USER = "user"


class SchemaField(BaseModel):
    """One field of a collection schema."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Field name, unique within a collection")
    type: FieldType = Field(..., description="Primitive type tag")
    category: Optional[FieldCategory] = Field(None, description="Analysis category")

    def describe(self) -> str:
        return f"{self.name}:{self.type.value}"


def find_field(fields: List[SchemaField], name: str) -> Optional[SchemaField]:
    """Return the field called ``name`` or None."""
    for field in fields:
        if field.name == name:
            return field
    return None


def merge_fields(existing: List[SchemaField], desired: List[SchemaField]) -> List[SchemaField]:
    """Additive union of two field lists.

    Existing fields are kept untouched and in order; desired fields whose
    name is not yet present are appended in the order given.
    """
    merged = list(existing)
    names = {f.name for f in existing}
    for field in desired:
        if field.name not in names:
            merged.append(field)
            names.add(field.name)
    return merged
