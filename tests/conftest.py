"""
Pytest configuration and fixtures for recipekit tests.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator

import pytest

from recipekit.config import reset_config
from recipekit.recipe.loader import RecipeLoader
from recipekit.storage.memory import MemoryBackend


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_env() -> Dict[str, str]:
    """Test environment variables."""
    return {
        "RECIPEKIT_STORAGE_TYPE": "memory",
        "RECIPEKIT_ASYNC_TIMEOUT_SECONDS": "10",
        "RECIPEKIT_SERVICE_NAME": "recipekit-test",
    }


@pytest.fixture(autouse=True)
def set_test_env(test_env: Dict[str, str], tmp_path) -> Generator[None, None, None]:
    """Set test environment variables and a fresh config for each test."""
    env = dict(test_env, RECIPEKIT_STORAGE_DIR=str(tmp_path / "storage"))
    original = {}
    for key, value in env.items():
        original[key] = os.environ.get(key)
        os.environ[key] = value
    reset_config()
    RecipeLoader.clear_cache()

    yield

    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    reset_config()


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def memory_backend() -> Generator[MemoryBackend, None, None]:
    backend = MemoryBackend(namespace="test")
    yield backend
    backend.close()


@pytest.fixture
def stores(memory_backend):
    """In-memory collaborators with the custom-page capability."""
    return memory_backend.collaborators()


@pytest.fixture
def stores_without_pages() -> Generator[Any, None, None]:
    """In-memory collaborators lacking the custom-page capability."""
    backend = MemoryBackend(namespace="test", custom_pages=False)
    yield backend.collaborators()
    backend.close()


# ============================================================================
# Recipe Fixtures
# ============================================================================


@pytest.fixture
def sample_recipe_document() -> Dict[str, Any]:
    """A recipe document touching every resource kind, in wire format."""
    return {
        "strategy": "SPECIFIC",
        "project": "shop",
        "collections": {
            "pageview": [
                {"name": "url", "type": "string", "category": "dimension"},
                {"name": "duration", "type": "long", "category": "measure"},
            ],
            "purchase": [
                {"name": "amount", "type": "double"},
            ],
        },
        "continuousQueries": [
            {
                "name": "Daily pageviews",
                "tableName": "daily_pageviews",
                "query": "select date_trunc('day', _time), count(*) from pageview group by 1",
                "partitionKeys": ["day"],
            }
        ],
        "materializedViews": [
            {
                "name": "Revenue",
                "tableName": "revenue",
                "query": "select sum(amount) from purchase",
                "updateInterval": 3600,
                "incremental": True,
            }
        ],
        "reports": [
            {"slug": "top-pages", "name": "Top pages", "category": "traffic", "query": "select url from pageview"},
        ],
        "customReports": [
            {"reportType": "funnel", "name": "Checkout", "data": {"steps": ["cart", "pay"]}},
        ],
        "customPages": [
            {"slug": "welcome", "name": "Welcome", "files": {"index.html": "<h1>hi</h1>"}},
        ],
        "dashboards": [
            {
                "name": "Overview",
                "items": [
                    {"name": "Visits", "directive": "chart", "data": {"report": "top-pages"}},
                    {"name": "Revenue", "directive": "number", "data": {"view": "revenue"}},
                ],
            }
        ],
    }
