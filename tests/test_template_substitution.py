"""
Tests for template substitution.
Covers input, previous output, indexed and named step output, and custom variables.
"""

from datetime import datetime, timezone

import pytest

from ai_workflow.variables.substitution import TemplateSubstitutor, resolve_template
from ai_workflow.workflow.types import ExecutionContext, StepResult


def make_result(name, index, output, success=True):
    now = datetime.now(timezone.utc)
    return StepResult(
        step_name=name,
        step_index=index,
        output=output,
        success=success,
        started_at=now,
        ended_at=now,
        duration_ms=0,
    )


class TestTemplateSubstitution:
    """Placeholder resolution against the execution context."""

    def setup_method(self):
        self.substitutor = TemplateSubstitutor()
        self.context = ExecutionContext(
            input="X",
            steps=[
                make_result("analyze", 0, "first"),
                make_result("build", 1, "second"),
            ],
            variables={"env": "prod", "count": 3, "debug": False, "items": [1, 2]},
        )

    def test_input_placeholder(self):
        assert self.substitutor.resolve("do {{input}} now", self.context) == "do X now"

    def test_input_replaced_everywhere(self):
        assert self.substitutor.resolve("{{input}}-{{input}}", self.context) == "X-X"

    def test_previous_output(self):
        assert self.substitutor.resolve("got $previous_output", self.context) == "got second"

    def test_previous_output_without_steps(self):
        context = ExecutionContext(input="")
        assert self.substitutor.resolve("[$previous_output]", context) == "[]"

    def test_indexed_output(self):
        assert self.substitutor.resolve("$step[0].output|$step[1].output", self.context) == "first|second"

    def test_indexed_output_out_of_range(self):
        assert self.substitutor.resolve("[$step[5].output]", self.context) == "[]"

    @pytest.mark.parametrize("reference", [
        '$step["build"].output',
        "$step['build'].output",
        "$step[build].output",
    ])
    def test_named_output_quoting_styles(self, reference):
        assert self.substitutor.resolve(reference, self.context) == "second"

    def test_named_output_unknown_name(self):
        assert self.substitutor.resolve('[$step["missing"].output]', self.context) == "[]"

    def test_named_output_first_match_wins(self):
        context = ExecutionContext(
            input="",
            steps=[make_result("flaky", 0, "attempt 1", success=False), make_result("flaky", 0, "attempt 2")],
        )
        assert self.substitutor.resolve('$step["flaky"].output', context) == "attempt 1"

    def test_variables(self):
        result = self.substitutor.resolve("${env}:${count}:${debug}:${items}", self.context)
        assert result == "prod:3:false:[1, 2]"

    def test_none_variable_is_null(self):
        context = ExecutionContext(input="", variables={"value": None})
        assert self.substitutor.resolve("${value}", context) == "null"

    def test_unbound_variable_left_untouched(self):
        assert self.substitutor.resolve("keep ${unknown}", self.context) == "keep ${unknown}"

    def test_resolution_is_deterministic(self):
        template = '{{input}} $previous_output $step[0].output $step["analyze"].output ${env}'
        first = self.substitutor.resolve(template, self.context)
        second = self.substitutor.resolve(template, self.context)
        assert first == second == "X second first first prod"

    def test_context_not_mutated(self):
        before = list(self.context.steps)
        self.substitutor.resolve("$previous_output ${env}", self.context)
        assert self.context.steps == before
        assert self.context.variables["env"] == "prod"

    def test_resolve_all_preserves_order(self):
        assert self.substitutor.resolve_all(["{{input}}", "${env}"], self.context) == ["X", "prod"]

    def test_module_level_helper(self):
        assert resolve_template("{{input}}!", self.context) == "X!"
