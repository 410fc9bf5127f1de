"""
Recipe export and installation engine.

- ``RecipeExporter``: reads a project's configuration into a recipe
- ``RecipeInstaller``: applies a recipe to a project, schema first
- ``RecipeLoader`` / ``dump_recipe``: recipe documents on disk
"""

from recipekit.recipe.exporter import RecipeExporter
from recipekit.recipe.installer import (
    INSTALL_ORDER,
    InstallState,
    InstallStep,
    InstallSummary,
    RecipeInstaller,
)
from recipekit.recipe.installers import OverrideStrategy, ResourceKind, StepCounts
from recipekit.recipe.loader import RecipeLoader, dump_recipe, load_recipe
from recipekit.recipe.schema import SchemaReconciler

__all__ = [
    "RecipeExporter",
    "INSTALL_ORDER",
    "InstallState",
    "InstallStep",
    "InstallSummary",
    "RecipeInstaller",
    "OverrideStrategy",
    "ResourceKind",
    "StepCounts",
    "RecipeLoader",
    "dump_recipe",
    "load_recipe",
    "SchemaReconciler",
]
