"""
Structured logging for recipe lifecycle events.

Outputs one JSON object per event on the ``recipekit.events`` logger so
installs can be audited by a log shipper. Only lifecycle boundaries are
logged here; per-resource detail goes to the module loggers at debug level.

Logged events:
- recipe.install.started
- recipe.step.completed
- recipe.resource.replaced
- recipe.install.completed
- recipe.install.failed
- recipe.exported

Usage:
    from recipekit.logger import RecipeLogger

    log = RecipeLogger(project="analytics")
    log.log_install_started(override_existing=True, resource_count=12)
    log.log_step_completed(step="continuous_queries", created=3, replaced=1)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_install_logger = logging.getLogger("recipekit.events")
_install_logger.setLevel(logging.INFO)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_console_handler: Optional[logging.Handler] = None


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """
    Configure root logging for command-line use.

    Args:
        level: debug, info, warning or error
        fmt: ``text`` for console output, ``json`` to emit bare messages
            (the install event lines are already JSON)
    """
    global _console_handler

    root = logging.getLogger()
    if _console_handler is not None:
        root.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setFormatter(logging.Formatter("%(message)s" if fmt == "json" else _TEXT_FORMAT))
    root.addHandler(_console_handler)
    root.setLevel(level.upper())


class RecipeLogger:
    """
    Structured logger for recipe install and export events.

    Each entry carries the project and service so entries from many
    installs can be filtered apart.
    """

    def __init__(
        self,
        project: str,
        service_name: str = "recipekit",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        self.project = project
        self.service_name = service_name
        self.extra_labels = extra_labels or {}
        self._logger = _install_logger

    def _emit(self, event: str, level: str = "info", **extra_fields: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "project_id": self.project,
        }
        entry.update({k: v for k, v in extra_fields.items() if v is not None})
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_install_started(self, override_existing: bool, resource_count: int) -> None:
        self._emit(
            "recipe.install.started",
            override_existing=override_existing,
            resource_count=resource_count,
        )

    def log_step_completed(self, step: str, created: int = 0, replaced: int = 0) -> None:
        self._emit("recipe.step.completed", step=step, created=created, replaced=replaced)

    def log_resource_replaced(self, kind: str, key: Any, strategy: str) -> None:
        """Log a resource that existed and was overridden."""
        self._emit(
            "recipe.resource.replaced",
            level="warn",
            kind=kind,
            key=str(key),
            strategy=strategy,
        )

    def log_install_completed(self, created: int, replaced: int) -> None:
        self._emit("recipe.install.completed", created=created, replaced=replaced)

    def log_install_failed(self, step: str, error: BaseException, completed: list) -> None:
        self._emit(
            "recipe.install.failed",
            level="error",
            step=step,
            error_type=type(error).__name__,
            error=str(error),
            completed_steps=completed,
        )

    def log_exported(self, counts: Dict[str, int]) -> None:
        self._emit("recipe.exported", **counts)
