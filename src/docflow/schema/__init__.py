"""Structural schema of resolved workflow documents."""

from .documents import WorkflowDocument, step_name, step_names

__all__ = (
    'WorkflowDocument',
    'step_name',
    'step_names',
)
