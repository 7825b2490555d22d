"""
Workflow executor.
Runs steps in declaration order, records every attempt, and applies each
step's failure policy (continue, stop, or bounded retry).
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..agents.factory import AgentFactory
from ..config import GlobalConfig
from ..exceptions import WorkflowDefinitionError, WorkflowExecutionError
from ..exec.process import ProcessRunner
from ..exec.retry import Continue, FailurePolicyEvaluator, Retry, resolve_target
from ..exec.step_executor import StepExecutor
from .types import ExecutionCallbacks, ExecutionContext, ExecutionReport, Step, StepResult, Workflow
from .validation import validate_workflow

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """
    Main workflow execution engine.

    Step-level failures never raise: they are recorded as failed results and
    resolved by the step's failure policy. Only an invalid workflow or an
    unexpected exception escaping the run raises.
    """

    def __init__(
        self,
        workflow: Workflow,
        config: Optional[GlobalConfig] = None,
        callbacks: Optional[ExecutionCallbacks] = None,
        workspace: Optional[Path] = None,
        agent_factory: Optional[AgentFactory] = None,
        process_runner: Optional[ProcessRunner] = None,
        step_executor: Optional[StepExecutor] = None,
    ):
        """
        Initialize workflow executor.

        Args:
            workflow: Workflow definition
            config: Global configuration (default agent, API keys)
            callbacks: Lifecycle observer
            workspace: Base workspace directory (default: cwd)
            agent_factory: Agent factory (default: built from config)
            process_runner: Process runner for command steps and context commands
            step_executor: Step executor (default: built from the collaborators above)

        Raises:
            WorkflowValidationError: If the workflow definition is invalid
        """
        validate_workflow(workflow)

        self.workflow = workflow
        self.config = config or GlobalConfig()
        self.callbacks = callbacks or ExecutionCallbacks()
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self.step_executor = step_executor or StepExecutor(
            agent_factory=agent_factory or AgentFactory(self.config),
            process_runner=process_runner or ProcessRunner(self.workspace),
            workspace=self.workspace,
        )
        self.failure_policy = FailurePolicyEvaluator()
        self.steps = workflow.steps

    def run(self, input: str = "", variables: Optional[Dict[str, Any]] = None) -> ExecutionReport:
        """
        Execute the workflow.

        Args:
            input: Run input substituted for {{input}}
            variables: Custom variables substituted for ${name}

        Returns:
            ExecutionReport with every recorded attempt

        Raises:
            WorkflowExecutionError: If an unexpected exception escapes the run
        """
        context = ExecutionContext(input=input, steps=[], variables=dict(variables or {}))
        logger.info(f"Running workflow '{self.workflow.name}' ({len(self.steps)} steps)")

        try:
            report = self._run_steps(context)
            self._notify('on_workflow_complete', context.steps)
        except (WorkflowExecutionError, WorkflowDefinitionError):
            raise
        except Exception as e:
            raise WorkflowExecutionError(f"Workflow execution failed: {e}") from e

        if report.completed:
            logger.info(f"Workflow '{self.workflow.name}' completed")
        else:
            logger.warning(f"Workflow '{self.workflow.name}' halted at step '{report.halted_step}'")
        return report

    def _run_steps(self, context: ExecutionContext) -> ExecutionReport:
        step_index = 0
        while step_index < len(self.steps):
            step = self.steps[step_index]
            result = self._attempt(step, step_index, context)

            if not result.success and not self._handle_failure(step, step_index, context):
                return ExecutionReport(
                    workflow_name=self.workflow.name,
                    status="halted",
                    results=list(context.steps),
                    halted_step=step.name,
                    halted_index=step_index,
                )

            step_index += 1

        return ExecutionReport(
            workflow_name=self.workflow.name,
            status="completed",
            results=list(context.steps),
        )

    def _attempt(self, step: Step, index: int, context: ExecutionContext, attempt: int = 1) -> StepResult:
        """Run one attempt of a step and record it."""
        step_type = getattr(step.type, "value", step.type)
        logger.info(f"Step {index + 1}/{len(self.steps)}: {step.name} ({step_type})"
                    + (f" attempt {attempt}" if attempt > 1 else ""))
        self._notify('on_step_start', step, index)

        result = self.step_executor.execute(step, index, context, attempt=attempt)
        context.steps.append(result)

        self._notify('on_step_complete', step, result)
        if not result.success:
            self._notify('on_error', step, result.error)
        else:
            logger.debug(f"Step '{step.name}' succeeded in {result.duration_ms}ms")

        return result

    def _handle_failure(self, step: Step, step_index: int, context: ExecutionContext) -> bool:
        """
        Apply the failed step's policy.

        Returns:
            True if the run continues past the failed step, False to halt
        """
        action = self.failure_policy.evaluate(step, step_index)

        if action is None:
            logger.error(f"Step '{step.name}' failed with no on_failure policy; stopping")
            return False

        if isinstance(action, Continue):
            logger.warning(f"Step '{step.name}' failed; continuing (on_failure=continue)")
            return True

        if isinstance(action, Retry):
            return self._retry(action, step, context)

        logger.error(f"Step '{step.name}' failed; stopping (on_failure=stop)")
        return False

    def _retry(self, action: Retry, failed_step: Step, context: ExecutionContext) -> bool:
        """
        Re-run the retry target until it succeeds or attempts run out.

        Returns:
            True if an attempt succeeded
        """
        try:
            target_index = resolve_target(action.target, self.steps)
        except ValueError as e:
            logger.error(f"Step '{failed_step.name}': {e}; stopping")
            return False

        target = self.steps[target_index]
        attempts_made = sum(1 for r in context.steps if r.step_index == target_index)

        for retry_number in range(1, action.max_retries + 1):
            logger.warning(f"Retrying step '{target.name}' after failure of '{failed_step.name}' "
                           f"(retry {retry_number}/{action.max_retries})")
            action.wait()

            attempts_made += 1
            result = self._attempt(target, target_index, context, attempt=attempts_made)
            if result.success:
                return True

        logger.error(f"Step '{target.name}' still failing after {action.max_retries} retries; stopping")
        return False

    def _notify(self, event: str, *args) -> None:
        callback = getattr(self.callbacks, event, None)
        if callback is not None:
            callback(*args)
