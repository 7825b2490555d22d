"""
Step executor module for running a single workflow step.
Dispatches on the step type and records the attempt as a StepResult.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..agents.base import AgentRequest
from ..agents.factory import AgentFactory
from ..context.builder import ContextBuilder
from ..exceptions import WorkflowDefinitionError
from ..variables.substitution import TemplateSubstitutor
from ..workflow.types import ExecutionContext, Step, StepResult, StepType
from .process import ProcessRunner

logger = logging.getLogger(__name__)

APPROVAL_OUTPUT = "Approved (auto)"


class StepFailure(Exception):
    """Step-level failure; converted into a failed StepResult."""

    def __init__(self, error_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error = {
            "type": error_type,
            "message": message,
            "context": context or {},
        }


class StepExecutor:
    """
    Executes workflow steps.
    Builds context, resolves templates, and calls the agent or process
    collaborators. Failures are reported in the result, never raised.
    """

    def __init__(
        self,
        agent_factory: Optional[AgentFactory] = None,
        context_builder: Optional[ContextBuilder] = None,
        substitutor: Optional[TemplateSubstitutor] = None,
        process_runner: Optional[ProcessRunner] = None,
        workspace: Optional[Path] = None,
    ):
        """
        Initialize step executor.

        Args:
            agent_factory: Creates agents for agent steps
            context_builder: Builds context for agent steps
            substitutor: Template substitution engine
            process_runner: Runs command steps
            workspace: Base workspace directory (default: cwd)
        """
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self.agent_factory = agent_factory or AgentFactory()
        self.process_runner = process_runner or ProcessRunner(self.workspace)
        self.substitutor = substitutor or TemplateSubstitutor()
        self.context_builder = context_builder or ContextBuilder(
            self.workspace,
            process_runner=self.process_runner,
            substitutor=self.substitutor,
        )

        self._handlers: Dict[StepType, Callable[[Step, ExecutionContext], str]] = {
            StepType.AGENT: self._execute_agent_step,
            StepType.COMMAND: self._execute_command_step,
            StepType.HUMAN_APPROVAL: self._execute_human_approval_step,
        }

    def execute(self, step: Step, index: int, context: ExecutionContext, attempt: int = 1) -> StepResult:
        """
        Execute one step attempt.

        Args:
            step: Step definition
            index: Declared position of the step
            context: Current execution context (read-only here)
            attempt: Attempt number (1 for the first execution)

        Returns:
            StepResult for this attempt

        Raises:
            WorkflowDefinitionError: If the step type is unknown
        """
        handler = self._handlers.get(step.type)
        if handler is None:
            raise WorkflowDefinitionError(f"Unknown step type '{step.type}' for step '{step.name}'")

        started_at = datetime.now(timezone.utc)
        output = ""
        error = None

        try:
            output = handler(step, context)
        except StepFailure as e:
            error = e.error
        except Exception as e:
            error = {
                "type": "execution_error",
                "message": str(e) or type(e).__name__,
                "context": {"exception": type(e).__name__},
            }

        ended_at = datetime.now(timezone.utc)
        duration_ms = int((ended_at - started_at).total_seconds() * 1000)

        if error:
            logger.error(f"Step '{step.name}' failed: {error['message']}")

        return StepResult(
            step_name=step.name,
            step_index=index,
            output=output,
            success=error is None,
            started_at=started_at,
            ended_at=ended_at,
            duration_ms=duration_ms,
            error=error,
            attempt=attempt,
        )

    def _execute_agent_step(self, step: Step, context: ExecutionContext) -> str:
        if not step.prompt:
            raise StepFailure("missing_prompt", f"Agent step '{step.name}' requires a prompt")

        try:
            agent = self.agent_factory.create(step.agent)
        except Exception as e:
            raise StepFailure("agent_error", str(e), {"agent": self._agent_type(step)}) from e

        step_context = self.context_builder.build(step.context, context)
        prompt = self.substitutor.resolve(step.prompt, context)

        logger.debug(f"Step '{step.name}': prompt {len(prompt)} chars, context {len(step_context)} chars")

        try:
            response = agent.generate(AgentRequest(prompt=prompt, context=step_context))
        except Exception as e:
            raise StepFailure("agent_error", str(e), {"agent": self._agent_type(step)}) from e

        if response.usage:
            logger.info(f"Step '{step.name}': {response.usage.input_tokens} input / "
                        f"{response.usage.output_tokens} output tokens")

        return response.content

    def _execute_command_step(self, step: Step, context: ExecutionContext) -> str:
        if not step.command:
            raise StepFailure("missing_command", f"Command step '{step.name}' requires a command")

        command = self.substitutor.resolve(step.command, context)
        result = self.process_runner.run(command, timeout_sec=step.timeout_sec)

        if result.exit_code != 0:
            raise StepFailure(
                "timeout" if result.timed_out else "command_failed",
                f"Command failed with exit code {result.exit_code}: {result.stderr}",
                {
                    "command": command,
                    "exit_code": result.exit_code,
                    "stderr": result.stderr,
                },
            )

        return result.stdout

    def _execute_human_approval_step(self, step: Step, context: ExecutionContext) -> str:
        # Auto-approves; an interactive approval would suspend here
        logger.info(f"Human approval required for step: {step.name}")
        return APPROVAL_OUTPUT

    def _agent_type(self, step: Step) -> str:
        agent_type = self.agent_factory.resolve_config(step.agent).type
        return getattr(agent_type, "value", agent_type)
