"""recipekit CLI - Recipe export, install and validation commands."""

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

import click

from recipekit.errors import RecipeError, RecipeInstallError

if TYPE_CHECKING:
    from recipekit.storage.base import Collaborators

_STORAGE_CHOICES = ["auto", "file", "memory"]


def _storage_options(func):
    """Shared ``--storage``/``--storage-dir`` options."""
    func = click.option(
        "--storage-dir",
        envvar="RECIPEKIT_STORAGE_DIR",
        type=click.Path(file_okay=False),
        help="Directory for file storage",
    )(func)
    func = click.option(
        "--storage",
        "storage",
        type=click.Choice(_STORAGE_CHOICES),
        default=None,
        help="Storage backend (default: RECIPEKIT_STORAGE_TYPE or auto)",
    )(func)
    return func


@contextmanager
def _open_collaborators(storage: Optional[str], storage_dir: Optional[str]) -> Iterator["Collaborators"]:
    from recipekit.config import get_config
    from recipekit.storage import StorageType, get_backend

    storage = storage or get_config().storage_type
    storage_type = StorageType.FILE if storage == "auto" else StorageType(storage)
    kwargs = {}
    if storage_dir and storage_type == StorageType.FILE:
        kwargs["base_dir"] = storage_dir
    backend = get_backend(storage_type, **kwargs)
    try:
        yield backend.collaborators()
    finally:
        backend.close()


def _load(recipe_file: str):
    from recipekit.recipe.loader import RecipeLoader

    try:
        return RecipeLoader().load(Path(recipe_file))
    except RecipeError as e:
        raise click.ClickException(str(e))


@click.command()
@click.option("--project", "-p", envvar="RECIPEKIT_DEFAULT_PROJECT", required=True, help="Project to export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the recipe to a file instead of stdout")
@click.option("--format", "output_format", type=click.Choice(["yaml", "json"]), default="yaml")
@_storage_options
def export(project: str, output: Optional[str], output_format: str, storage: Optional[str], storage_dir: Optional[str]):
    """Export a project's configuration as a recipe."""
    from recipekit.recipe.exporter import RecipeExporter
    from recipekit.recipe.loader import dump_recipe

    with _open_collaborators(storage, storage_dir) as collaborators:
        try:
            recipe = RecipeExporter(collaborators).export(project)
        except RecipeError as e:
            raise click.ClickException(str(e))

    document = dump_recipe(recipe, fmt=output_format)
    if output:
        Path(output).write_text(document, encoding="utf-8")
        click.echo(f"Exported project '{project}' to {output}", err=True)
    else:
        click.echo(document, nl=False)


@click.command()
@click.argument("recipe_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", help="Target project (default: the recipe's project)")
@click.option(
    "--override/--no-override",
    "override_existing",
    default=False,
    help="Replace resources that already exist instead of failing",
)
@_storage_options
def install(recipe_file: str, project: Optional[str], override_existing: bool,
            storage: Optional[str], storage_dir: Optional[str]):
    """Install a recipe into a project."""
    from recipekit.config import get_config
    from recipekit.recipe.installer import RecipeInstaller

    recipe = _load(recipe_file)
    target = project or recipe.project or get_config().default_project
    if target is None:
        raise click.ClickException("No target project: pass --project or set 'project' in the recipe")

    with _open_collaborators(storage, storage_dir) as collaborators:
        try:
            summary = RecipeInstaller(collaborators).install(recipe, target, override_existing=override_existing)
        except RecipeInstallError as e:
            if e.completed:
                done = ", ".join(step.value for step in e.completed)
                click.echo(click.style(f"Applied before failure: {done}", fg="yellow"), err=True)
            raise click.ClickException(str(e))

    click.echo(click.style(f"Installed recipe into '{summary.project}'", fg="green"))
    for step, counts in summary.counts.items():
        click.echo(f"  {step.value:<20} created={counts.created} replaced={counts.replaced}")


@click.command()
@click.argument("recipe_file", type=click.Path(exists=True, dir_okay=False))
def validate(recipe_file: str):
    """Check a recipe document without installing it."""
    recipe = _load(recipe_file)

    click.echo(f"Recipe: {recipe_file}")
    click.echo(f"  Strategy: {recipe.strategy.value}")
    click.echo(f"  Project: {recipe.project or '-'}")
    click.echo(f"  Collections: {len(recipe.collections)}")
    click.echo(f"  Continuous queries: {len(recipe.continuous_queries)}")
    click.echo(f"  Materialized views: {len(recipe.materialized_views)}")
    click.echo(f"  Reports: {len(recipe.reports)}")
    click.echo(f"  Dashboards: {len(recipe.dashboards)}")
    click.echo(f"  Custom reports: {len(recipe.custom_reports)}")
    click.echo(f"  Custom pages: {len(recipe.custom_pages)}")

    for kind, keys in recipe.duplicate_keys().items():
        click.echo(
            click.style(f"Warning: duplicate {kind} keys: {', '.join(map(str, keys))}", fg="yellow"),
            err=True,
        )

    click.echo(click.style("Recipe is valid", fg="green"))
