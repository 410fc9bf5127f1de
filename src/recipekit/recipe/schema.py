"""
Collection schema reconciliation.

Schema changes are additive only: fields missing from a collection are
added, fields already stored are never retyped. A desired field whose type
differs from the stored one is a collision; collisions from every collection
are gathered and raised together, whatever the override flag says.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from recipekit.errors import FieldCollision, SchemaCollisionError
from recipekit.models.schema import SchemaField, find_field
from recipekit.storage.base import CollectionStore

logger = logging.getLogger(__name__)


class SchemaReconciler:
    """Extends collection schemas and detects type collisions."""

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    def reconcile(
        self,
        project: str,
        collections: Dict[str, List[SchemaField]],
        override_requested: bool = False,
    ) -> None:
        """Get-or-create every desired collection schema.

        Raises:
            SchemaCollisionError: If any desired field clashes with a stored
                field of the same name but another type.
        """
        collisions: List[FieldCollision] = []

        for name, desired in collections.items():
            actual = self._store.get_or_create_fields(project, name, list(desired))
            found = find_collisions(name, desired, actual)
            if found:
                logger.debug(
                    f"Collection '{name}' has type collisions on "
                    f"{', '.join(c.existing.describe() for c in found)}"
                )
            else:
                logger.debug(f"Collection '{name}' reconciled ({len(actual)} fields)")
            collisions.extend(found)

        if collisions:
            raise SchemaCollisionError(collisions, override_requested=override_requested)


def find_collisions(
    collection: str,
    desired: List[SchemaField],
    actual: List[SchemaField],
) -> List[FieldCollision]:
    """Desired fields whose stored counterpart has a different type."""
    collisions = []
    for field in desired:
        existing = find_field(actual, field.name)
        if existing is not None and existing.type != field.type:
            collisions.append(FieldCollision(collection=collection, desired=field, existing=existing))
    return collisions
