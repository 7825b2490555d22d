"""
Template substitution implementation.
Resolves step templates against the accumulated execution state.

Placeholders, applied in this order:
- {{input}}: the run input
- $previous_output: output of the most recent step attempt
- $step[N].output: output of the N-th recorded result
- $step["name"].output: output of the first result with that step name
- ${name}: custom run variable
"""

import json
import re
from typing import Any, List, Optional

from ..workflow.types import ExecutionContext, StepResult


class TemplateSubstitutor:
    """
    Resolves placeholders in step templates.

    Resolution is pure: the execution context is only read. Output references
    that do not resolve become the empty string, while unbound ${name}
    references are left as written.
    """

    INPUT_PLACEHOLDER = "{{input}}"
    PREVIOUS_OUTPUT_PLACEHOLDER = "$previous_output"
    INDEXED_OUTPUT_PATTERN = re.compile(r'\$step\[(\d+)\]\.output')
    NAMED_OUTPUT_PATTERN = re.compile(r'\$step\[([\'"]?)([^\'"\[\]]+)\1\]\.output')
    VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def resolve(self, template: str, context: ExecutionContext) -> str:
        """
        Resolve all placeholders in a template.

        Args:
            template: Template text
            context: Current execution context (read-only)

        Returns:
            Resolved text
        """
        result = template.replace(self.INPUT_PLACEHOLDER, context.input)

        previous = context.steps[-1].output if context.steps else ""
        result = result.replace(self.PREVIOUS_OUTPUT_PLACEHOLDER, previous)

        def replace_indexed(match):
            index = int(match.group(1))
            if index < len(context.steps):
                return context.steps[index].output
            return ""

        result = self.INDEXED_OUTPUT_PATTERN.sub(replace_indexed, result)

        def replace_named(match):
            step_result = self._find_by_name(context.steps, match.group(2))
            return step_result.output if step_result else ""

        result = self.NAMED_OUTPUT_PATTERN.sub(replace_named, result)

        def replace_var(match):
            name = match.group(1)
            if name not in context.variables:
                return match.group(0)
            return self.stringify(context.variables[name])

        return self.VAR_PATTERN.sub(replace_var, result)

    def resolve_all(self, templates: List[str], context: ExecutionContext) -> List[str]:
        """Resolve each template in a list, preserving order."""
        return [self.resolve(template, context) for template in templates]

    @staticmethod
    def stringify(value: Any) -> str:
        """String form of a variable value as inserted into a template."""
        if isinstance(value, bool):
            return 'true' if value else 'false'
        elif value is None:
            return 'null'
        elif isinstance(value, (int, float)):
            return str(value)
        elif isinstance(value, str):
            return value
        else:
            return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def _find_by_name(steps: List[StepResult], name: str) -> Optional[StepResult]:
        # First match wins when names repeat
        for step_result in steps:
            if step_result.step_name == name:
                return step_result
        return None


_default_substitutor = TemplateSubstitutor()


def resolve_template(template: str, context: ExecutionContext) -> str:
    """Resolve a template with the default substitutor."""
    return _default_substitutor.resolve(template, context)
