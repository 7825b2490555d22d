"""
Tests for the workflow executor.
Covers sequencing, failure policies, bounded retry, and lifecycle callbacks.
"""

import tempfile
from pathlib import Path
from typing import Dict, List
from unittest.mock import MagicMock, patch

import pytest

from ai_workflow.agents.base import AgentResponse
from ai_workflow.exceptions import WorkflowExecutionError, WorkflowValidationError
from ai_workflow.exec.process import CommandResult
from ai_workflow.workflow.executor import WorkflowExecutor
from ai_workflow.workflow.types import ExecutionCallbacks, Step, StepType, Workflow


class ScriptedRunner:
    """Process runner returning scripted results per command."""

    def __init__(self, script: Dict[str, List[CommandResult]]):
        self.script = {command: list(results) for command, results in script.items()}
        self.calls: List[str] = []

    def run(self, command, timeout_sec=None):
        self.calls.append(command)
        results = self.script.get(command)
        if not results:
            return CommandResult(stdout=f"{command} ok", stderr="", exit_code=0)
        # Last scripted result repeats
        return results.pop(0) if len(results) > 1 else results[0]


def ok(output):
    return CommandResult(stdout=output, stderr="", exit_code=0)


def fail(stderr="boom", exit_code=1):
    return CommandResult(stdout="", stderr=stderr, exit_code=exit_code)


def command_step(name, command=None, on_failure=None):
    return Step(name=name, type=StepType.COMMAND, command=command or name, on_failure=on_failure)


class TestWorkflowExecution:
    """Sequencing and result recording."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.workspace = Path(self.temp_dir)

    def make_executor(self, steps, script=None, callbacks=None, agent_factory=None):
        self.runner = ScriptedRunner(script or {})
        workflow = Workflow(name="test", steps=steps)
        return WorkflowExecutor(
            workflow,
            callbacks=callbacks,
            workspace=self.workspace,
            process_runner=self.runner,
            agent_factory=agent_factory or MagicMock(),
        )

    def test_linear_run(self):
        executor = self.make_executor([command_step("a"), command_step("b"), command_step("c")])

        report = executor.run("in")

        assert report.completed
        assert report.status == "completed"
        assert report.halted_step is None
        assert [r.step_index for r in report.results] == [0, 1, 2]
        assert [r.step_name for r in report.results] == ["a", "b", "c"]
        assert report.outputs == ["a ok", "b ok", "c ok"]

    def test_outputs_flow_between_steps(self):
        steps = [
            command_step("first", "echo one"),
            command_step("second", "echo $previous_output"),
            command_step("third", 'echo $step[0].output $step["second"].output {{input}} ${who}'),
        ]
        executor = self.make_executor(steps, {"echo one": [ok("1")], "echo 1": [ok("2")]})

        executor.run("X", {"who": "me"})

        assert self.runner.calls == ["echo one", "echo 1", "echo 1 2 X me"]

    def test_agent_step_in_run(self):
        agent = MagicMock()
        agent.generate.return_value = AgentResponse(content="summary")
        factory = MagicMock()
        factory.create.return_value = agent
        steps = [
            command_step("diff", "git diff"),
            Step(name="summarize", type=StepType.AGENT, prompt="Summarize: $previous_output"),
        ]
        executor = self.make_executor(steps, {"git diff": [ok("+line")]}, agent_factory=factory)

        report = executor.run()

        assert report.outputs == ["+line", "summary"]
        assert agent.generate.call_args[0][0].prompt == "Summarize: +line"

    def test_failure_without_policy_halts(self):
        executor = self.make_executor([command_step("a"), command_step("b")], {"a": [fail()]})

        report = executor.run()

        assert not report.completed
        assert report.status == "halted"
        assert report.halted_step == "a"
        assert report.halted_index == 0
        assert len(report.results) == 1
        assert self.runner.calls == ["a"]

    def test_stop_policy_halts(self):
        executor = self.make_executor([command_step("a", on_failure="stop"), command_step("b")], {"a": [fail()]})

        report = executor.run()

        assert report.status == "halted"
        assert len(report.results) == 1

    def test_continue_policy_proceeds(self):
        executor = self.make_executor(
            [command_step("a", on_failure="continue"), command_step("b")],
            {"a": [fail()]},
        )

        report = executor.run()

        assert report.completed
        assert [r.success for r in report.results] == [False, True]
        assert report.results[1].step_name == "b"

    def test_failed_step_output_is_empty_for_previous_output(self):
        steps = [
            command_step("a", on_failure="continue"),
            command_step("b", "echo [$previous_output]"),
        ]
        executor = self.make_executor(steps, {"a": [fail()]})

        executor.run()

        assert self.runner.calls[1] == "echo []"

    def test_runs_are_independent(self):
        executor = self.make_executor([command_step("a")])

        first = executor.run("one")
        second = executor.run("two")

        assert len(first.results) == 1
        assert len(second.results) == 1

    def test_unexpected_exception_wrapped(self):
        executor = self.make_executor([command_step("a")])
        executor.step_executor = MagicMock()
        executor.step_executor.execute.side_effect = KeyError("lost")

        with pytest.raises(WorkflowExecutionError, match="Workflow execution failed"):
            executor.run()

    def test_invalid_workflow_rejected_before_execution(self):
        with pytest.raises(WorkflowValidationError) as exc_info:
            self.make_executor([Step(name="bad", type="teleport")])

        assert exc_info.value.exit_code == 2

    def test_empty_workflow_rejected(self):
        with pytest.raises(WorkflowValidationError, match="no steps"):
            self.make_executor([])

    def test_unresolvable_retry_target_rejected(self):
        with pytest.raises(WorkflowValidationError, match="does not name a step"):
            self.make_executor([command_step("a", on_failure="retry_step[deploy]")])


class TestBoundedRetry:
    """Retry re-runs only the target step, bounded by max_retries."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.workspace = Path(self.temp_dir)

    def make_executor(self, steps, script, callbacks=None):
        self.runner = ScriptedRunner(script)
        return WorkflowExecutor(
            Workflow(name="retry", steps=steps),
            callbacks=callbacks,
            workspace=self.workspace,
            process_runner=self.runner,
            agent_factory=MagicMock(),
        )

    def test_retry_succeeds_after_two_failures(self):
        on_failure = {"action": "retry", "max_retries": 2}
        executor = self.make_executor(
            [command_step("flaky", on_failure=on_failure), command_step("next")],
            {"flaky": [fail(), fail(), ok("done")]},
        )

        report = executor.run()

        assert report.completed
        flaky = [r for r in report.results if r.step_name == "flaky"]
        assert len(flaky) == 3
        assert [r.attempt for r in flaky] == [1, 2, 3]
        assert [r.success for r in flaky] == [False, False, True]
        assert report.results[-1].step_name == "next"

    def test_retry_exhaustion_halts(self):
        on_failure = {"action": "retry", "max_retries": 2}
        executor = self.make_executor(
            [command_step("flaky", on_failure=on_failure), command_step("next")],
            {"flaky": [fail()]},
        )

        report = executor.run()

        assert report.status == "halted"
        assert report.halted_step == "flaky"
        assert len(report.results) == 3
        assert "next" not in self.runner.calls

    def test_compact_retry_targets_another_step(self):
        steps = [
            command_step("prepare"),
            command_step("check", on_failure="retry_step[prepare]"),
            command_step("finish"),
        ]
        executor = self.make_executor(steps, {"check": [fail()]})

        report = executor.run()

        # prepare is re-run once; check is not re-run
        assert self.runner.calls == ["prepare", "check", "prepare", "finish"]
        assert [(r.step_name, r.attempt) for r in report.results] == [
            ("prepare", 1), ("check", 1), ("prepare", 2), ("finish", 1),
        ]
        assert report.completed

    def test_retry_by_index(self):
        steps = [command_step("a", on_failure="retry_step[0]"), command_step("b")]
        executor = self.make_executor(steps, {"a": [fail(), ok("fine")]})

        report = executor.run()

        assert report.completed
        assert [r.step_index for r in report.results] == [0, 0, 1]

    def test_retry_waits_between_attempts(self):
        on_failure = {"action": "retry", "max_retries": 2, "delay_ms": 100}
        executor = self.make_executor([command_step("flaky", on_failure=on_failure)], {"flaky": [fail()]})

        with patch("ai_workflow.exec.retry.time.sleep") as mock_sleep:
            executor.run()

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.1)

    def test_callbacks_fire_per_attempt(self):
        events = []
        callbacks = ExecutionCallbacks(
            on_step_start=lambda step, index: events.append(("start", step.name, index)),
            on_step_complete=lambda step, result: events.append(("complete", step.name, result.success)),
            on_error=lambda step, error: events.append(("error", step.name, error["type"])),
            on_workflow_complete=lambda results: events.append(("done", len(results))),
        )
        on_failure = {"action": "retry", "max_retries": 1}
        executor = self.make_executor(
            [command_step("flaky", on_failure=on_failure)],
            {"flaky": [fail(), ok("ok")]},
            callbacks=callbacks,
        )

        executor.run()

        assert events == [
            ("start", "flaky", 0),
            ("complete", "flaky", False),
            ("error", "flaky", "command_failed"),
            ("start", "flaky", 0),
            ("complete", "flaky", True),
            ("done", 2),
        ]


class TestCallbacks:
    """Lifecycle notifications."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.workspace = Path(self.temp_dir)

    def test_workflow_complete_fires_on_halt(self):
        on_complete = MagicMock()
        runner = ScriptedRunner({"a": [fail()]})
        executor = WorkflowExecutor(
            Workflow(name="halt", steps=[command_step("a"), command_step("b")]),
            callbacks=ExecutionCallbacks(on_workflow_complete=on_complete),
            workspace=self.workspace,
            process_runner=runner,
            agent_factory=MagicMock(),
        )

        executor.run()

        on_complete.assert_called_once()
        results = on_complete.call_args[0][0]
        assert len(results) == 1

    def test_step_complete_sees_each_result_once(self):
        seen = []
        runner = ScriptedRunner({})
        executor = WorkflowExecutor(
            Workflow(name="seq", steps=[command_step("a"), command_step("b")]),
            callbacks=ExecutionCallbacks(on_step_complete=lambda step, result: seen.append(result)),
            workspace=self.workspace,
            process_runner=runner,
            agent_factory=MagicMock(),
        )

        report = executor.run()

        assert seen == report.results
