"""CLI command handlers."""

from .init import init_workspace
from .list_workflows import list_workflows
from .logs import show_logs
from .run import run_workflow

__all__ = ['init_workspace', 'list_workflows', 'run_workflow', 'show_logs']
