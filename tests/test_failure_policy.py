"""
Tests for failure policy parsing and retry target resolution.
"""

import time
from unittest.mock import patch

import pytest

from ai_workflow.exec.retry import (
    Continue,
    FailurePolicyEvaluator,
    Retry,
    Stop,
    parse_failure_action,
    resolve_target,
)
from ai_workflow.workflow.types import Step, StepType


class TestParseFailureAction:
    """Compact and structured declarations normalize to the same actions."""

    def test_none_is_undeclared(self):
        assert parse_failure_action(None) is None

    def test_compact_continue_and_stop(self):
        assert parse_failure_action("continue") == Continue()
        assert parse_failure_action("stop") == Stop()

    def test_compact_retry_by_index(self):
        assert parse_failure_action("retry_step[2]") == Retry(target=2, max_retries=1)

    def test_compact_retry_by_name(self):
        assert parse_failure_action("retry_step[build]") == Retry(target="build")
        assert parse_failure_action('retry_step["build"]') == Retry(target="build")

    def test_structured_forms(self):
        assert parse_failure_action({"action": "continue"}) == Continue()
        assert parse_failure_action({"action": "stop"}) == Stop()
        action = parse_failure_action({"action": "retry", "retry_step": "build", "max_retries": 3, "delay_ms": 50})
        assert action == Retry(target="build", max_retries=3, delay_ms=50)

    def test_compact_and_structured_are_equivalent(self):
        assert parse_failure_action("retry_step[1]") == parse_failure_action({"action": "retry", "retry_step": 1})

    def test_structured_retry_defaults_to_failing_step(self):
        assert parse_failure_action({"action": "retry", "max_retries": 2}, step_index=4) == Retry(4, 2)

    def test_structured_retry_without_target_or_index(self):
        with pytest.raises(ValueError, match="retry_step"):
            parse_failure_action({"action": "retry"})

    def test_action_instance_passes_through(self):
        action = Retry(target=0, max_retries=2)
        assert parse_failure_action(action) is action

    @pytest.mark.parametrize("raw", [
        "explode",
        "retry_step[]",
        {"action": "explode"},
        {"action": "retry", "retry_step": 0, "max_retries": 0},
        {"action": "retry", "retry_step": 0, "delay_ms": -1},
        {"action": "retry", "retry_step": 0, "max_retries": "3"},
        {"action": "retry", "retry_step": True},
        42,
    ])
    def test_malformed_declarations(self, raw):
        with pytest.raises(ValueError):
            parse_failure_action(raw)


class TestResolveTarget:
    """Retry targets resolve to step indices."""

    def setup_method(self):
        self.steps = [
            Step(name="setup", type=StepType.COMMAND, command="true"),
            Step(name="build", type=StepType.COMMAND, command="make"),
            Step(name="build", type=StepType.COMMAND, command="make again"),
        ]

    def test_index_in_range(self):
        assert resolve_target(1, self.steps) == 1

    def test_index_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            resolve_target(3, self.steps)

    def test_name_first_match(self):
        assert resolve_target("build", self.steps) == 1

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="does not name a step"):
            resolve_target("deploy", self.steps)


class TestFailurePolicyEvaluator:
    """Run-time evaluation of a failed step's policy."""

    def setup_method(self):
        self.evaluator = FailurePolicyEvaluator()

    def test_declared_action(self):
        step = Step(name="a", type=StepType.COMMAND, command="x", on_failure="continue")
        assert self.evaluator.evaluate(step, 0) == Continue()

    def test_undeclared(self):
        step = Step(name="a", type=StepType.COMMAND, command="x")
        assert self.evaluator.evaluate(step, 0) is None

    def test_malformed_falls_back_to_stop(self):
        step = Step(name="a", type=StepType.COMMAND, command="x", on_failure="explode")
        assert self.evaluator.evaluate(step, 0) == Stop()


class TestRetryWait:
    """Delay between retry attempts."""

    def test_no_delay_does_not_sleep(self):
        with patch("ai_workflow.exec.retry.time.sleep") as mock_sleep:
            Retry(target=0).wait()
        mock_sleep.assert_not_called()

    def test_delay_sleeps_in_seconds(self):
        with patch("ai_workflow.exec.retry.time.sleep") as mock_sleep:
            Retry(target=0, delay_ms=250).wait()
        mock_sleep.assert_called_once_with(0.25)

    def test_real_delay(self):
        start = time.time()
        Retry(target=0, delay_ms=50).wait()
        assert time.time() - start >= 0.04
