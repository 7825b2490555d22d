"""Abstract base class for reasoning agents."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..workflow.types import AgentConfig

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096


@dataclass
class AgentRequest:
    """
    Request handed to an agent.

    Attributes:
        prompt: Resolved step prompt
        context: Assembled context text (may be empty)
        system_prompt: Optional system instructions
    """
    prompt: str
    context: Optional[str] = None
    system_prompt: Optional[str] = None


@dataclass
class TokenUsage:
    """Token accounting reported by an agent."""
    input_tokens: int
    output_tokens: int


@dataclass
class AgentResponse:
    """Agent reply; ``content`` becomes the step output."""
    content: str
    usage: Optional[TokenUsage] = None


class BaseAgent(ABC):
    """Abstract base class for agents.

    Each implementation wraps one provider; ``AgentFactory`` selects the
    implementation from ``AgentConfig.type``.
    """

    def __init__(self, config: AgentConfig) -> None:
        self.config = config

    @abstractmethod
    def generate(self, request: AgentRequest) -> AgentResponse:
        """Generate a response for a request.

        Args:
            request: Prompt, context, and optional system prompt.

        Returns:
            The agent's response.

        Raises:
            AgentError: If the provider call fails.
        """

    @abstractmethod
    def default_model(self) -> str:
        """Model used when the config does not name one."""

    @property
    def model(self) -> str:
        return self.config.model or self.default_model()

    @property
    def temperature(self) -> float:
        if self.config.temperature is None:
            return DEFAULT_TEMPERATURE
        return self.config.temperature
