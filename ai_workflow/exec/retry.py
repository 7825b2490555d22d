"""
Failure policy helpers for step execution.
Normalizes on_failure declarations and drives bounded retry.

Declarations come in two forms that normalize to the same action:
- compact: "continue", "stop", "retry_step[2]", "retry_step[Build]"
- structured: {action: retry, retry_step: 2, max_retries: 3, delay_ms: 500}
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from ..workflow.types import Step

logger = logging.getLogger(__name__)


class FailureAction:
    """Base class for normalized failure actions."""


@dataclass(frozen=True)
class Continue(FailureAction):
    """Proceed to the next step."""


@dataclass(frozen=True)
class Stop(FailureAction):
    """Halt the run."""


@dataclass(frozen=True)
class Retry(FailureAction):
    """
    Re-run a target step after a failure.

    Attributes:
        target: Step index or step name to re-run
        max_retries: Additional attempts beyond the first (>= 1)
        delay_ms: Delay between attempts in milliseconds
    """
    target: Union[int, str]
    max_retries: int = 1
    delay_ms: int = 0

    def wait(self):
        """Wait for the configured delay between attempts."""
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


RETRY_STEP_PATTERN = re.compile(r'retry_step\[\s*([\'"]?)([^\'"\[\]]+?)\1\s*\]')
VALID_ACTIONS = ('continue', 'stop', 'retry')


def _parse_target(value: Any) -> Union[int, str]:
    if isinstance(value, bool):
        raise ValueError(f"Invalid retry target: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        return int(text) if text.isdigit() else text
    raise ValueError(f"Invalid retry target: {value!r}")


def _parse_count(value: Any, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{field}' must be an integer, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"'{field}' must be >= {minimum}, got {value}")
    return value


def parse_failure_action(raw: Any, step_index: Optional[int] = None) -> Optional[FailureAction]:
    """
    Normalize an on_failure declaration.

    Args:
        raw: Compact string, structured mapping, FailureAction, or None
        step_index: Index of the declaring step; default target for a
            structured retry without retry_step

    Returns:
        Normalized action, or None when nothing is declared

    Raises:
        ValueError: If the declaration is malformed or names an unknown action
    """
    if raw is None:
        return None

    if isinstance(raw, FailureAction):
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        if text == 'continue':
            return Continue()
        if text == 'stop':
            return Stop()
        match = RETRY_STEP_PATTERN.fullmatch(text)
        if match:
            return Retry(target=_parse_target(match.group(2)))
        raise ValueError(f"Unknown failure action '{raw}'")

    if isinstance(raw, Mapping):
        action = raw.get('action')
        if action not in VALID_ACTIONS:
            raise ValueError(f"Unknown failure action '{action}'. Expected one of {list(VALID_ACTIONS)}")
        if action == 'continue':
            return Continue()
        if action == 'stop':
            return Stop()

        if 'retry_step' in raw:
            target = _parse_target(raw['retry_step'])
        elif step_index is not None:
            target = step_index
        else:
            raise ValueError("Retry action requires 'retry_step'")

        return Retry(
            target=target,
            max_retries=_parse_count(raw.get('max_retries', 1), 'max_retries', 1),
            delay_ms=_parse_count(raw.get('delay_ms', 0), 'delay_ms', 0),
        )

    raise ValueError(f"on_failure must be a string or mapping, got {type(raw).__name__}")


def resolve_target(target: Union[int, str], steps: Sequence[Step]) -> int:
    """
    Resolve a retry target to a step index.

    Args:
        target: Step index or step name (first match wins)
        steps: Workflow steps

    Returns:
        Index of the target step

    Raises:
        ValueError: If the index is out of range or no step has that name
    """
    if isinstance(target, int):
        if 0 <= target < len(steps):
            return target
        raise ValueError(f"Retry target index {target} out of range (0-{len(steps) - 1})")

    for i, step in enumerate(steps):
        if step.name == target:
            return i
    raise ValueError(f"Retry target '{target}' does not name a step")


class FailurePolicyEvaluator:
    """Decides what the executor does after a failed step."""

    def evaluate(self, step: Step, step_index: Optional[int] = None) -> Optional[FailureAction]:
        """
        Normalize a step's failure policy for use at run time.

        Args:
            step: Failed step
            step_index: Index of the failed step

        Returns:
            The declared action, None when nothing is declared, or Stop when
            the declaration is malformed
        """
        try:
            return parse_failure_action(step.on_failure, step_index)
        except ValueError as e:
            logger.warning(f"Step '{step.name}': invalid on_failure ({e}); stopping")
            return Stop()
