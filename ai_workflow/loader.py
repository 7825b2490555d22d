"""Workflow loader and schema validation for workflow YAML files."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ValidationError, WorkflowValidationError
from .workflow.types import AgentConfig, ContextConfig, Step, Workflow
from .workflow.validation import collect_errors

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_FILE = 'workflow.yml'


class WorkflowLoader:
    """
    Loads workflow YAML into immutable Workflow values.

    The document holds a ``workflows`` mapping of named workflows:

        workflows:
          review:
            description: Review the latest change
            steps:
              - name: diff
                type: command
                command: git diff HEAD~1
              - name: review
                type: agent
                prompt: "Review this diff: $previous_output"
    """

    WORKFLOW_FIELDS = {'description', 'steps'}
    STEP_FIELDS = {
        'name', 'type', 'agent', 'command', 'context', 'prompt',
        'on_success', 'on_failure', 'timeout_sec',
    }
    AGENT_FIELDS = {'type', 'model', 'temperature'}
    CONTEXT_FIELDS = {'files', 'commands', 'variables'}

    def __init__(self, workspace: Optional[Path] = None):
        """Initialize loader with workspace root (default: cwd)."""
        self.workspace = (Path(workspace) if workspace else Path.cwd()).resolve()
        self.errors: List[ValidationError] = []

    def resolve_path(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Workflow file path, relative paths taken from the workspace."""
        path = Path(path) if path else Path(DEFAULT_WORKFLOW_FILE)
        return path if path.is_absolute() else self.workspace / path

    def load(self, path: Optional[Union[str, Path]] = None) -> Dict[str, Workflow]:
        """
        Load and validate every workflow in a file.

        Args:
            path: Workflow file (default: workflow.yml in the workspace)

        Returns:
            Mapping of workflow name to Workflow, in document order

        Raises:
            WorkflowValidationError: If the file cannot be read or any
                workflow is invalid
        """
        self.errors = []
        workflow_path = self.resolve_path(path)

        try:
            with open(workflow_path, 'r', encoding='utf-8') as f:
                document = yaml.safe_load(f)
        except FileNotFoundError:
            self._add_error(f"Workflow file not found: {workflow_path}")
            self._raise_validation_errors()
        except (OSError, yaml.YAMLError) as e:
            self._add_error(f"Failed to load workflow file: {e}")
            self._raise_validation_errors()

        if not isinstance(document, dict):
            self._add_error("Workflow file must be a YAML object/dictionary")
            self._raise_validation_errors()

        workflows_data = document.get('workflows')
        if not isinstance(workflows_data, dict) or not workflows_data:
            self._add_error("'workflows' field is required and must be a non-empty mapping", path='workflows')
            self._raise_validation_errors()

        workflows: Dict[str, Workflow] = {}
        for name, data in workflows_data.items():
            workflow = self._parse_workflow(str(name), data)
            if workflow is not None:
                for error in collect_errors(workflow):
                    self._add_error(error.message, path=f"workflows.{name}.{error.path}".rstrip('.'))
                workflows[workflow.name] = workflow

        if self.errors:
            self._raise_validation_errors()

        logger.debug(f"Loaded {len(workflows)} workflow(s) from {workflow_path}")
        return workflows

    def get_workflow(self, path: Optional[Union[str, Path]], name: str) -> Workflow:
        """
        Load a single named workflow.

        Raises:
            WorkflowValidationError: If the file is invalid or has no such workflow
        """
        workflows = self.load(path)
        if name not in workflows:
            available = ", ".join(workflows) or "none"
            raise WorkflowValidationError([
                ValidationError(f"Workflow '{name}' not found. Available: {available}", path='workflows')
            ])
        return workflows[name]

    def list_workflows(self, path: Optional[Union[str, Path]] = None) -> List[Workflow]:
        """All workflows in a file, in document order."""
        return list(self.load(path).values())

    def _parse_workflow(self, name: str, data: Any) -> Optional[Workflow]:
        path = f"workflows.{name}"
        if not isinstance(data, dict):
            self._add_error(f"Workflow '{name}' must be a dictionary", path=path)
            return None

        for key in data:
            if key not in self.WORKFLOW_FIELDS:
                self._add_error(f"Workflow '{name}': unknown field '{key}'", path=path)

        description = data.get('description')
        if description is not None and not isinstance(description, str):
            self._add_error(f"Workflow '{name}': description must be a string", path=f"{path}.description")
            description = None

        steps_data = data.get('steps')
        if not isinstance(steps_data, list):
            self._add_error(f"Workflow '{name}': 'steps' must be a list", path=f"{path}.steps")
            return None

        steps = []
        for i, step_data in enumerate(steps_data):
            step = self._parse_step(step_data, f"{path}.steps[{i}]", i)
            if step is not None:
                steps.append(step)

        if len(steps) != len(steps_data):
            return None

        return Workflow(name=name, steps=tuple(steps), description=description)

    def _parse_step(self, data: Any, path: str, index: int) -> Optional[Step]:
        if not isinstance(data, dict):
            self._add_error(f"Step {index} must be a dictionary", path=path)
            return None

        name = data.get('name')
        if name is not None and not isinstance(name, str):
            self._add_error(f"Step {index} name must be a string, got {type(name).__name__}", path=path)
            return None
        label = name or f"<step_{index}>"

        for key in data:
            if key not in self.STEP_FIELDS:
                self._add_error(f"Step '{label}': unknown field '{key}'", path=path)

        step_type = data.get('type')
        if step_type is not None and not isinstance(step_type, str):
            self._add_error(f"Step '{label}': type must be a string, got {type(step_type).__name__}",
                            path=f"{path}.type")
            return None

        for field_name in ('command', 'prompt', 'on_success'):
            value = data.get(field_name)
            if value is not None and not isinstance(value, str):
                self._add_error(f"Step '{label}': {field_name} must be a string", path=f"{path}.{field_name}")

        timeout_sec = data.get('timeout_sec')
        if timeout_sec is not None and (
            isinstance(timeout_sec, bool) or not isinstance(timeout_sec, (int, float)) or timeout_sec <= 0
        ):
            self._add_error(f"Step '{label}': timeout_sec must be a positive number", path=f"{path}.timeout_sec")

        return Step(
            name=name or "",
            type=data.get('type'),
            agent=self._parse_agent(data.get('agent'), f"{path}.agent", label),
            command=data.get('command'),
            context=self._parse_context(data.get('context'), f"{path}.context", label),
            prompt=data.get('prompt'),
            on_success=data.get('on_success'),
            on_failure=data.get('on_failure'),
            timeout_sec=timeout_sec,
        )

    def _parse_agent(self, data: Any, path: str, label: str) -> Optional[AgentConfig]:
        if data is None:
            return None
        if not isinstance(data, dict):
            self._add_error(f"Step '{label}': agent must be a dictionary", path=path)
            return None

        for key in data:
            if key not in self.AGENT_FIELDS:
                self._add_error(f"Step '{label}': unknown agent field '{key}'", path=path)

        if not data.get('type'):
            self._add_error(f"Step '{label}': agent missing required 'type' field", path=path)

        temperature = data.get('temperature')
        if temperature is not None:
            if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
                self._add_error(f"Step '{label}': agent temperature must be a number", path=f"{path}.temperature")
                temperature = None
            elif not 0 <= temperature <= 1:
                self._add_error(f"Step '{label}': agent temperature must be between 0 and 1",
                                path=f"{path}.temperature")

        model = data.get('model')
        return AgentConfig(
            type=str(data.get('type') or ''),
            model=str(model) if model is not None else None,
            temperature=float(temperature) if temperature is not None else None,
        )

    def _parse_context(self, data: Any, path: str, label: str) -> Optional[ContextConfig]:
        if data is None:
            return None
        if not isinstance(data, dict):
            self._add_error(f"Step '{label}': context must be a dictionary", path=path)
            return None

        for key in data:
            if key not in self.CONTEXT_FIELDS:
                self._add_error(f"Step '{label}': unknown context field '{key}'", path=path)

        lists = {}
        for field_name in ('files', 'commands'):
            value = data.get(field_name) or []
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                self._add_error(f"Step '{label}': context.{field_name} must be a list of strings",
                                path=f"{path}.{field_name}")
                value = []
            lists[field_name] = tuple(value)

        variables = data.get('variables') or {}
        if not isinstance(variables, dict):
            self._add_error(f"Step '{label}': context.variables must be a dictionary", path=f"{path}.variables")
            variables = {}

        return ContextConfig(
            files=lists['files'],
            commands=lists['commands'],
            variables={str(k): v for k, v in variables.items()},
        )

    def _add_error(self, message: str, path: str = "", exit_code: int = 2):
        """Add validation error."""
        self.errors.append(ValidationError(message, path, exit_code))

    def _raise_validation_errors(self):
        """Raise WorkflowValidationError with accumulated errors."""
        raise WorkflowValidationError(self.errors)
