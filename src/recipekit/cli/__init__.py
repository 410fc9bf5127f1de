"""
recipekit CLI - Export and install analytics project recipes.

Commands:
    recipekit export    Export a project's configuration as a recipe
    recipekit install   Install a recipe into a project
    recipekit validate  Check a recipe document without installing it
"""

import click

from recipekit.config import get_config
from recipekit.logger import configure_logging

from .recipe import export, install, validate


@click.group()
@click.version_option(package_name="recipekit")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Logging level (default: RECIPEKIT_LOG_LEVEL or info)",
)
def main(log_level):
    """recipekit - Export and install analytics project recipes."""
    config = get_config()
    configure_logging(level=log_level or config.log_level, fmt=config.log_format)


main.add_command(export)
main.add_command(install)
main.add_command(validate)


if __name__ == "__main__":
    main()
