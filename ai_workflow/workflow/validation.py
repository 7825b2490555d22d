"""Cross-field workflow validation run before any step executes."""

from typing import List

from ..exceptions import ValidationError, WorkflowValidationError
from ..exec.retry import Retry, parse_failure_action, resolve_target
from .types import AgentType, Step, StepType, Workflow

STEP_TYPES = {t.value for t in StepType}
AGENT_TYPES = {t.value for t in AgentType}


def collect_errors(workflow: Workflow) -> List[ValidationError]:
    """Return every definition error in a workflow."""
    errors: List[ValidationError] = []

    if not workflow.steps:
        errors.append(ValidationError(f"Workflow '{workflow.name}' has no steps", path="steps"))
        return errors

    for i, step in enumerate(workflow.steps):
        errors.extend(_step_errors(step, i, workflow))

    return errors


def validate_workflow(workflow: Workflow) -> None:
    """
    Validate a workflow definition.

    Raises:
        WorkflowValidationError: If any definition error is found
    """
    errors = collect_errors(workflow)
    if errors:
        raise WorkflowValidationError(errors)


def _step_errors(step: Step, index: int, workflow: Workflow) -> List[ValidationError]:
    errors = []
    path = f"steps[{index}]"
    name = step.name or f"<step_{index}>"

    if not step.name:
        errors.append(ValidationError(f"Step {index} missing required 'name' field", path=path))

    if not isinstance(step.type, str) or step.type not in STEP_TYPES:
        errors.append(ValidationError(
            f"Step '{name}': unknown step type '{step.type}'. Expected one of {sorted(STEP_TYPES)}",
            path=f"{path}.type",
        ))
        return errors

    # Type determines which execution fields may be present
    if step.type == StepType.AGENT:
        if step.command is not None:
            errors.append(ValidationError(f"Step '{name}': agent steps cannot declare 'command'", path=path))
    elif step.type == StepType.COMMAND:
        if step.agent is not None:
            errors.append(ValidationError(f"Step '{name}': command steps cannot declare 'agent'", path=path))
        if step.prompt is not None:
            errors.append(ValidationError(f"Step '{name}': command steps cannot declare 'prompt'", path=path))
    else:
        present = [f for f in ('agent', 'command', 'prompt') if getattr(step, f) is not None]
        if present:
            errors.append(ValidationError(
                f"Step '{name}': human_approval steps cannot declare {present}", path=path
            ))

    if step.agent is not None and step.agent.type not in AGENT_TYPES:
        errors.append(ValidationError(
            f"Step '{name}': unknown agent type '{step.agent.type}'. Expected one of {sorted(AGENT_TYPES)}",
            path=f"{path}.agent.type",
        ))

    try:
        action = parse_failure_action(step.on_failure, index)
    except ValueError as e:
        errors.append(ValidationError(f"Step '{name}': {e}", path=f"{path}.on_failure"))
        return errors

    if isinstance(action, Retry):
        try:
            resolve_target(action.target, workflow.steps)
        except ValueError as e:
            errors.append(ValidationError(f"Step '{name}': {e}", path=f"{path}.on_failure"))

    return errors
