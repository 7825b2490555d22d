"""ai-workflow: run multi-step AI workflows defined in YAML."""

__version__ = "0.1.0"

from .workflow import (
    AgentConfig,
    ContextConfig,
    ExecutionCallbacks,
    ExecutionContext,
    ExecutionReport,
    Step,
    StepResult,
    StepType,
    Workflow,
    WorkflowExecutor,
    validate_workflow,
)
from .config import ConfigManager, GlobalConfig
from .loader import WorkflowLoader

__all__ = [
    'AgentConfig',
    'ConfigManager',
    'ContextConfig',
    'ExecutionCallbacks',
    'ExecutionContext',
    'ExecutionReport',
    'GlobalConfig',
    'Step',
    'StepResult',
    'StepType',
    'Workflow',
    'WorkflowExecutor',
    'WorkflowLoader',
    'validate_workflow',
]
