"""OpenAI agent implementation."""

import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from ..exceptions import AgentError
from ..workflow.types import AgentConfig
from .base import DEFAULT_MAX_TOKENS, AgentRequest, AgentResponse, BaseAgent, TokenUsage

logger = logging.getLogger(__name__)


class OpenAIAgent(BaseAgent):
    """OpenAI chat completions agent."""

    def __init__(self, config: AgentConfig, api_key: Optional[str] = None, client: Optional[Any] = None) -> None:
        """Initialize the OpenAI agent.

        Args:
            config: Agent configuration.
            api_key: OpenAI API key.
            client: Pre-built client (used instead of creating one).

        Raises:
            AgentError: If no API key is available.
        """
        super().__init__(config)

        if client is None:
            if not api_key:
                raise AgentError(
                    "OpenAI API key is required. Set OPENAI_API_KEY environment variable "
                    "or configure it in ~/.ai-workflow/config.yml"
                )
            client = OpenAI(api_key=api_key)

        self.client = client
        logger.info(f"OpenAI agent initialized with model: {self.model}")

    def default_model(self) -> str:
        return "gpt-4o"

    def build_messages(self, request: AgentRequest) -> List[Dict[str, str]]:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        if request.context:
            messages.append({"role": "user", "content": f"Context:\n{request.context}"})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    def generate(self, request: AgentRequest) -> AgentResponse:
        messages = self.build_messages(request)
        logger.debug(f"Generating chat completion with {len(messages)} messages")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore
                max_tokens=DEFAULT_MAX_TOKENS,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            raise AgentError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} characters")

        usage = None
        if getattr(response, "usage", None) is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        return AgentResponse(content=content, usage=usage)
