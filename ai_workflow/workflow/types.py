"""
Workflow type definitions.

Defines the workflow document model consumed by the executor and the
run-time records it produces.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union


class StepType(str, Enum):
    """Step capability tag."""
    AGENT = "agent"
    COMMAND = "command"
    HUMAN_APPROVAL = "human_approval"


class AgentType(str, Enum):
    """Agent implementation selector."""
    CLAUDE = "claude"
    OPENAI = "openai"
    CURSOR = "cursor"


@dataclass(frozen=True)
class AgentConfig:
    """
    Agent selection for an agent step.

    Attributes:
        type: Agent implementation ('claude', 'openai', 'cursor')
        model: Model identifier (agent default when omitted)
        temperature: Sampling temperature in [0, 1]
    """
    type: str
    model: Optional[str] = None
    temperature: Optional[float] = None


@dataclass(frozen=True)
class ContextConfig:
    """
    Auxiliary material assembled before an agent step runs.

    Attributes:
        files: Glob patterns whose matched files are included
        commands: Shell commands whose output is included
        variables: Custom name/value pairs rendered as JSON
    """
    files: Tuple[str, ...] = ()
    commands: Tuple[str, ...] = ()
    variables: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.files and not self.commands and not self.variables


@dataclass(frozen=True)
class Step:
    """
    Single workflow step.

    Attributes:
        name: Step name (referenced by $step["name"].output and retry targets)
        type: Step type
        agent: Agent selection for agent steps (default agent when omitted)
        command: Shell command for command steps
        context: Context material for agent steps
        prompt: Prompt template for agent steps
        on_success: Declared success handler (carried, not acted upon)
        on_failure: Failure policy in compact string or structured form
        timeout_sec: Timeout for command steps
    """
    name: str
    type: Union[StepType, str]
    agent: Optional[AgentConfig] = None
    command: Optional[str] = None
    context: Optional[ContextConfig] = None
    prompt: Optional[str] = None
    on_success: Optional[str] = None
    on_failure: Optional[Any] = None
    timeout_sec: Optional[float] = None


@dataclass(frozen=True)
class Workflow:
    """Named, ordered sequence of steps. Immutable once loaded."""
    name: str
    steps: Tuple[Step, ...]
    description: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.steps, tuple):
            object.__setattr__(self, "steps", tuple(self.steps))


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step attempt. Never mutated once recorded."""
    step_name: str
    step_index: int
    output: str
    success: bool
    started_at: datetime
    ended_at: datetime
    duration_ms: int
    error: Optional[Dict[str, Any]] = None
    attempt: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        result: Dict[str, Any] = {
            "step_name": self.step_name,
            "step_index": self.step_index,
            "attempt": self.attempt,
            "success": self.success,
            "output": self.output,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_ms": self.duration_ms,
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class ExecutionContext:
    """
    Run-scoped state.

    Owned by a single executor run. Only the executor appends to ``steps``;
    context building and template substitution read it.
    """
    input: str
    steps: List[StepResult] = field(default_factory=list)
    variables: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecutionCallbacks:
    """Optional lifecycle observer hooks, called in sequencing order."""
    on_step_start: Optional[Callable[[Step, int], None]] = None
    on_step_complete: Optional[Callable[[Step, StepResult], None]] = None
    on_error: Optional[Callable[[Step, Dict[str, Any]], None]] = None
    on_workflow_complete: Optional[Callable[[List[StepResult]], None]] = None


RunStatus = Literal["completed", "halted"]


@dataclass
class ExecutionReport:
    """What a run produced: the full attempt history and how it ended."""
    workflow_name: str
    status: RunStatus
    results: List[StepResult]
    halted_step: Optional[str] = None
    halted_index: Optional[int] = None

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    @property
    def outputs(self) -> List[str]:
        return [result.output for result in self.results]
