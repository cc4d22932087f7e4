"""Metric definitions for the workflow engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

TRANSITIONS_TOTAL = "workflow_transitions_total"
TRANSITION_DURATION_SECONDS = "workflow_transition_duration_seconds"
NOTIFICATION_FAILURES_TOTAL = "workflow_notification_failures_total"


@dataclass(frozen=True)
class MetricDefinition:
    """Describe a metric that should exist in the registry."""

    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


DEFAULT_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=TRANSITIONS_TOTAL,
        metric_type="counter",
        description="Workflow commands executed, by command and outcome.",
        label_names=("command", "outcome"),
    ),
    MetricDefinition(
        name=TRANSITION_DURATION_SECONDS,
        metric_type="distribution",
        description="Wall time of workflow commands in seconds, notifications included.",
        label_names=("command",),
    ),
    MetricDefinition(
        name=NOTIFICATION_FAILURES_TOTAL,
        metric_type="counter",
        description="Post-commit notifications that raised and were dropped.",
        label_names=("command",),
    ),
)
