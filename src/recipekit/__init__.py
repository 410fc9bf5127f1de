"""
recipekit - Export and install analytics project configuration as recipes.

A recipe captures a project's collection schemas, continuous queries,
materialized views, reports, custom reports, custom pages and dashboards as
one declarative document that can be re-applied to the same or another
project.

Example usage:
    from recipekit import RecipeExporter, RecipeInstaller
    from recipekit.storage import get_collaborators, StorageType

    stores = get_collaborators(StorageType.FILE)
    recipe = RecipeExporter(stores).export("source-project")

    # Schema collisions always abort; existing resources are replaced
    # only when override_existing is set
    RecipeInstaller(stores).install(recipe, "target-project", override_existing=True)
"""

__version__ = "0.1.0"
__all__ = [
    "Recipe",
    "RecipeExporter",
    "RecipeInstaller",
    "load_recipe",
    "__version__",
]


# Lazy imports so the CLI starts without loading the whole engine
def __getattr__(name: str):
    if name == "Recipe":
        from recipekit.models.recipe import Recipe
        return Recipe
    if name == "RecipeExporter":
        from recipekit.recipe.exporter import RecipeExporter
        return RecipeExporter
    if name == "RecipeInstaller":
        from recipekit.recipe.installer import RecipeInstaller
        return RecipeInstaller
    if name == "load_recipe":
        from recipekit.recipe.loader import load_recipe
        return load_recipe
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
