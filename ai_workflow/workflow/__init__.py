"""Workflow model and execution module."""

from .types import (
    AgentConfig,
    AgentType,
    ContextConfig,
    ExecutionCallbacks,
    ExecutionContext,
    ExecutionReport,
    Step,
    StepResult,
    StepType,
    Workflow,
)
from .validation import validate_workflow
from .executor import WorkflowExecutor

__all__ = [
    'AgentConfig',
    'AgentType',
    'ContextConfig',
    'ExecutionCallbacks',
    'ExecutionContext',
    'ExecutionReport',
    'Step',
    'StepResult',
    'StepType',
    'Workflow',
    'validate_workflow',
    'WorkflowExecutor',
]
