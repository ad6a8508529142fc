"""Minimal structural model of a workflow document.

Workflow documents are free-form: steps use human-friendly,
domain-specific keys. Only the few top-level fields the execution
component relies on are constrained here; everything else is accepted
as is.
"""

from typing import Any

from pydantic import ConfigDict, Field

from docflow.models import SchemaModel

#: Default step name prefix for steps without an explicit name.
STEP_NAME_PREFIX = 'step'


class WorkflowDocument(SchemaModel):
    """Resolved workflow document shape.

    The model validates the top-level container only. Unknown top-level
    keys are allowed and kept.
    """

    model_config = ConfigDict(extra='allow')

    steps: list[Any] | None = Field(
        default=None,
        strict=True,
        title='Workflow steps',
        description='Ordered sequence of workflow steps.',
    )

    variables: dict[Any, Any] | None = Field(
        default=None,
        strict=True,
        title='Workflow variables',
        description='Variables declared by the workflow itself.',
    )


def step_name(step: Any, position: int) -> str:  # noqa: ANN401
    """Name a workflow step.

    Steps are identified by their `Step` key, then their `name` key,
    then by their one-based position.

    Args:
        step: Step node of a resolved document.
        position: Zero-based position of the step.

    Returns:
        Display name of the step.
    """
    if isinstance(step, dict):
        for key in ('Step', 'name'):
            if isinstance(value := step.get(key), str) and value:
                return value

    return f'{STEP_NAME_PREFIX}-{position + 1}'


def step_names(document: dict[str, Any]) -> tuple[str, ...]:
    """Name every step of a resolved document.

    Args:
        document: Resolved document mapping.

    Returns:
        Step names in order. Empty if the document has no steps.
    """
    return tuple(
        step_name(step, position)
        for position, step in enumerate(document.get('steps') or ())
    )
