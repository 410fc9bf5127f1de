"""
Centralized configuration for recipekit.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (RECIPEKIT_*)
3. .env file
4. Default values

Example:
    from recipekit.config import get_config

    config = get_config()
    print(config.storage_dir)  # From RECIPEKIT_STORAGE_DIR or default

    # Override at runtime
    config = get_config(storage_type="memory")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecipeKitConfig(BaseSettings):
    """
    Central configuration for recipekit.

    All settings can be overridden via environment variables
    prefixed with RECIPEKIT_.

    Example:
        export RECIPEKIT_STORAGE_TYPE=file
        export RECIPEKIT_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="RECIPEKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    service_name: str = Field(
        default="recipekit",
        description="Service name for log and telemetry attribution",
    )

    default_project: Optional[str] = Field(
        default=None,
        description="Project used when neither the command line nor the recipe names one",
    )

    # Storage backend
    storage_type: Literal["auto", "file", "memory"] = Field(
        default="auto",
        description="Storage backend type (auto resolves to file)",
    )
    storage_dir: str = Field(
        default="~/.recipekit/storage",
        description="Directory for the file-based storage backend",
    )
    storage_namespace: str = Field(
        default="default",
        description="Namespace under the storage directory",
    )

    # Installation
    async_timeout_seconds: float = Field(
        default=300.0,
        ge=1,
        description="How long to wait for an asynchronous create/delete to complete",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for recipekit",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for log shippers, text for console)",
    )

    @field_validator("storage_dir")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    def get_storage_path(self, namespace: Optional[str] = None) -> Path:
        """Get storage directory path for a namespace."""
        return Path(self.storage_dir) / (namespace or self.storage_namespace)


# Global singleton
_config: Optional[RecipeKitConfig] = None


def get_config(**overrides) -> RecipeKitConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = RecipeKitConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_async_timeout() -> float:
    """Get the configured join timeout for asynchronous store calls."""
    return get_config().async_timeout_seconds
