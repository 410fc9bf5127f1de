"""
OTel span event emission for recipe installs.

Events are added to whatever span is current when the installer runs (for
example a request span in a service embedding recipekit). Nothing is
recorded when no span is active.

Usage::

    from recipekit.otel import emit_step_completed

    emit_step_completed("analytics", "reports_applied", created=2, replaced=0)
"""

from __future__ import annotations

import logging

from opentelemetry import trace as otel_trace

from recipekit.errors import SchemaCollisionError

logger = logging.getLogger(__name__)


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_step_completed(project: str, step: str, created: int, replaced: int) -> None:
    """Event name: ``recipe.install.step``"""
    add_span_event(
        "recipe.install.step",
        {
            "recipe.project": project,
            "recipe.step": step,
            "recipe.created": created,
            "recipe.replaced": replaced,
        },
    )


def emit_schema_collision(project: str, error: SchemaCollisionError) -> None:
    """Event name: ``recipe.schema.collision``"""
    logger.warning(
        "Schema collision in project=%s collections=%s pairs=%d",
        project,
        ",".join(error.collections),
        len(error.collisions),
    )
    add_span_event(
        "recipe.schema.collision",
        {
            "recipe.project": project,
            "recipe.collision_count": len(error.collisions),
            "recipe.collections": ",".join(error.collections),
            "recipe.override_requested": error.override_requested,
        },
    )


def emit_install_failed(project: str, step: str, error: BaseException) -> None:
    """Event name: ``recipe.install.failed``"""
    add_span_event(
        "recipe.install.failed",
        {
            "recipe.project": project,
            "recipe.step": step,
            "recipe.error_type": type(error).__name__,
            "recipe.error": str(error),
        },
    )
