"""ai-workflow exceptions."""

from typing import List
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class WorkflowValidationError(Exception):
    """Raised when a workflow definition is invalid.

    Raised by the loader and by the executor before any step runs, so the CLI
    can catch it and map it to the validation exit code.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at {error.path}: {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))


class WorkflowDefinitionError(Exception):
    """Raised when a step cannot be dispatched because its definition is malformed."""


class WorkflowExecutionError(Exception):
    """Raised when an unexpected exception escapes a workflow run."""


class AgentError(Exception):
    """Raised by agent implementations when generation fails."""


class AgentNotImplementedError(AgentError):
    """Raised when an agent type is unknown or has no implementation."""


class ConfigError(Exception):
    """Raised when the global configuration file is malformed."""
