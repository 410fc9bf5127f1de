"""Allow ``python -m recipekit``."""

from recipekit.cli import main

main()
