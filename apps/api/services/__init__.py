"""Service layer exports."""

from .health import DatabaseHealthCheck
from .workflow import WorkflowEngine, WorkflowService

__all__ = [
    "DatabaseHealthCheck",
    "WorkflowEngine",
    "WorkflowService",
]
