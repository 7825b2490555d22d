"""
Execution module for ai-workflow.
Handles process execution and failure policy; step dispatch lives in
``ai_workflow.exec.step_executor``.
"""

from .process import CommandResult, ProcessRunner
from .retry import Continue, FailureAction, FailurePolicyEvaluator, Retry, Stop, parse_failure_action

__all__ = [
    "CommandResult",
    "ProcessRunner",
    "Continue",
    "FailureAction",
    "FailurePolicyEvaluator",
    "Retry",
    "Stop",
    "parse_failure_action",
]
