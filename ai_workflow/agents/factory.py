"""Factory for creating agents."""

import logging
from typing import Optional

from ..config import GlobalConfig
from ..exceptions import AgentNotImplementedError
from ..workflow.types import AgentConfig, AgentType
from .base import BaseAgent
from .cli import ClaudeAgent
from .openai_agent import OpenAIAgent

logger = logging.getLogger(__name__)


class AgentFactory:
    """Creates agent instances from agent configuration."""

    def __init__(self, config: Optional[GlobalConfig] = None) -> None:
        """Initialize the factory.

        Args:
            config: Global configuration supplying the default agent and API keys.
        """
        self.config = config or GlobalConfig()

    def resolve_config(self, agent_config: Optional[AgentConfig]) -> AgentConfig:
        """Agent config for a step, falling back to the configured default."""
        if agent_config is not None:
            return agent_config
        return self.config.default_agent or AgentConfig(type=AgentType.CLAUDE.value)

    def create(self, agent_config: Optional[AgentConfig] = None) -> BaseAgent:
        """Create an agent for a step.

        Args:
            agent_config: Step agent configuration (default agent when None).

        Returns:
            Configured agent instance.

        Raises:
            AgentNotImplementedError: If the agent type is unknown or not implemented.
            AgentError: If the agent cannot be configured (e.g. missing API key).
        """
        agent_config = self.resolve_config(agent_config)
        agent_type = agent_config.type
        logger.debug(f"Creating agent: {agent_type}")

        if agent_type == AgentType.CLAUDE:
            return ClaudeAgent(agent_config, api_key=self.config.get_api_key('anthropic'))
        elif agent_type == AgentType.OPENAI:
            return OpenAIAgent(agent_config, api_key=self.config.get_api_key('openai'))
        elif agent_type == AgentType.CURSOR:
            raise AgentNotImplementedError("Cursor agent is not yet implemented")
        else:
            raise AgentNotImplementedError(f"Unknown agent type: {agent_type}")
