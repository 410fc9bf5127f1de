"""
Error taxonomy for recipe export and installation.

- ``SchemaCollisionError``: a desired field's type conflicts with a stored
  field of the same name. Fatal and aggregated across all collections.
- ``AlreadyExistsError``: a resource with the same identifying key exists and
  override was not requested.
- ``UnsupportedFeatureError``: the recipe needs a capability the target
  project does not provide (custom pages).
- ``InconsistencyError``: a store reported a resource as existing but it
  could not be found afterwards.
- ``CollaboratorError``: a store reported a failed operation without raising.
- ``RecipeInstallError``: wraps any of the above (or a raw collaborator
  exception) with the install step that failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from recipekit.models.schema import SchemaField
    from recipekit.recipe.installer import InstallStep


class RecipeError(Exception):
    """Base class for recipekit errors."""


class RecipeLoadError(RecipeError):
    """Raised when a recipe document cannot be read or validated."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load recipe from {source}: {reason}")


@dataclass(frozen=True)
class FieldCollision:
    """A desired field whose type differs from the stored field of the same name."""
    collection: str
    desired: "SchemaField"
    existing: "SchemaField"

    def describe(self) -> str:
        return (
            f"Recipe: [{self.desired.name} : {self.desired.type.value}], "
            f"Collection: [{self.existing.name}, {self.existing.type.value}]"
        )


class SchemaCollisionError(RecipeError):
    """Raised when recipe fields would retype fields already in the store."""

    def __init__(self, collisions: Sequence[FieldCollision], override_requested: bool = False):
        self.collisions = list(collisions)
        self.override_requested = override_requested
        prefix = (
            "Overriding collection fields is not possible."
            if override_requested
            else "Collision in collection fields."
        )
        details = ", ".join(c.describe() for c in self.collisions)
        super().__init__(f"{prefix} {details}")

    @property
    def collections(self) -> List[str]:
        seen: List[str] = []
        for c in self.collisions:
            if c.collection not in seen:
                seen.append(c.collection)
        return seen


class AlreadyExistsError(RecipeError):
    """Raised when a resource exists and override was not requested."""

    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key!r} already exists")


class UnsupportedFeatureError(RecipeError):
    """Raised when the target project lacks a capability the recipe needs."""

    def __init__(self, feature: str, detail: str = ""):
        self.feature = feature
        message = f"{feature} feature is not supported"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InconsistencyError(RecipeError):
    """Raised when a store contradicts its own earlier answer."""

    def __init__(self, kind: str, key: Any, detail: str):
        self.kind = kind
        self.key = key
        self.detail = detail
        super().__init__(f"Inconsistent {kind} state for {key!r}: {detail}")


class CollaboratorError(RecipeError):
    """Raised when a store reports a failed operation as a result value."""

    def __init__(self, kind: str, key: Any, operation: str, detail: str = ""):
        self.kind = kind
        self.key = key
        self.operation = operation
        message = f"{operation} {kind} {key!r} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RecipeInstallError(RecipeError):
    """
    Terminal failure of one install call.

    ``step`` is the install step that failed; ``completed`` lists the steps
    whose effects were applied and are retained. ``cause`` is the underlying
    error, also chained as ``__cause__``.
    """

    def __init__(
        self,
        project: str,
        step: "InstallStep",
        cause: BaseException,
        completed: Optional[Sequence["InstallStep"]] = None,
    ):
        self.project = project
        self.step = step
        self.cause = cause
        self.completed = list(completed or [])
        super().__init__(
            f"Recipe install into '{project}' failed at {step.value}: "
            f"{type(cause).__name__}: {cause}"
        )

    @property
    def kind(self) -> str:
        """Name of the underlying error class."""
        return type(self.cause).__name__
