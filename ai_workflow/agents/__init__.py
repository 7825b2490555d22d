"""
Agent implementations and selection.
"""

from .base import AgentRequest, AgentResponse, BaseAgent, TokenUsage
from .cli import ClaudeAgent, CommandLineAgent, CommandTemplate, InputMode
from .factory import AgentFactory
from .openai_agent import OpenAIAgent

__all__ = [
    "AgentRequest",
    "AgentResponse",
    "BaseAgent",
    "TokenUsage",
    "ClaudeAgent",
    "CommandLineAgent",
    "CommandTemplate",
    "InputMode",
    "AgentFactory",
    "OpenAIAgent",
]
