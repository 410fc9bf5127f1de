"""
Recipe document loading and dumping.

Recipes are stored as YAML or JSON. ``RecipeLoader`` centralises:

- Per-path caching keyed on the file's modification time
- YAML/JSON parsing with mapping-type validation
- Pydantic ``model_validate`` dispatch

Every failure (missing file, bad syntax, wrong root type, schema mismatch)
is raised as ``RecipeLoadError`` so callers handle a single error type.

Usage::

    from recipekit.recipe.loader import RecipeLoader, dump_recipe

    recipe = RecipeLoader().load(Path("analytics.recipe.yaml"))
    print(dump_recipe(recipe, fmt="json"))
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, ClassVar, Dict, Tuple

import yaml
from pydantic import ValidationError

from recipekit.errors import RecipeLoadError
from recipekit.models.recipe import Recipe

logger = logging.getLogger(__name__)

FORMATS = ("yaml", "json")


class RecipeLoader:
    """Loads and validates recipe documents with per-path caching.

    Callers get their own copy of a cached recipe and may modify it.
    """

    _cache: ClassVar[Dict[Tuple[str, int], Recipe]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the recipe cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Path) -> Recipe:
        """Load a recipe from a YAML or JSON file.

        Files ending in ``.json`` are parsed as JSON, everything else as YAML.

        Raises:
            RecipeLoadError: If the file is missing or does not hold a valid recipe.
        """
        path = Path(path)
        if not path.exists():
            raise RecipeLoadError(str(path), "file not found")

        key = (str(path.resolve()), path.stat().st_mtime_ns)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("RecipeLoader cache hit: %s", key[0])
            return cached.model_copy(deep=True)

        text = path.read_text(encoding="utf-8")
        fmt = "json" if path.suffix.lower() == ".json" else "yaml"
        recipe = self._validate(self._parse(text, fmt, str(path)), str(path))
        self._cache[key] = recipe
        self._log_loaded(recipe, key[0])
        return recipe.model_copy(deep=True)

    def load_from_string(self, text: str, fmt: str = "yaml") -> Recipe:
        """Load a recipe from a string (convenience for testing)."""
        return self._validate(self._parse(text, fmt, "<string>"), "<string>")

    def _parse(self, text: str, fmt: str, source: str) -> Any:
        try:
            if fmt == "json":
                raw = json.loads(text)
            else:
                raw = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise RecipeLoadError(source, f"invalid {fmt.upper()}: {e}") from e

        if not isinstance(raw, dict):
            raise RecipeLoadError(source, f"expected a mapping at the root, got {type(raw).__name__}")
        return raw

    def _validate(self, raw: Dict[str, Any], source: str) -> Recipe:
        try:
            return Recipe.model_validate(raw)
        except ValidationError as e:
            raise RecipeLoadError(source, str(e)) from e

    def _log_loaded(self, recipe: Recipe, key: str) -> None:
        logger.debug(
            "Loaded recipe from %s: strategy=%s, project=%s, collections=%d",
            key,
            recipe.strategy.value,
            recipe.project,
            len(recipe.collections),
        )


def load_recipe(path: Path) -> Recipe:
    """Load a recipe file with the shared loader."""
    return RecipeLoader().load(path)


def dump_recipe(recipe: Recipe, fmt: str = "yaml") -> str:
    """Serialize a recipe to its camelCase wire document.

    Raises:
        ValueError: If ``fmt`` is not ``yaml`` or ``json``.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown recipe format: {fmt}")
    document = recipe.to_document()
    if fmt == "json":
        return json.dumps(document, indent=2) + "\n"
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
