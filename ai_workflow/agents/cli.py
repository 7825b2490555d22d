"""
Command-line agents.

Drives agent CLIs through command templates with argv or stdin prompt
delivery. Template tokens may reference ${PROMPT} (argv mode only) and any
template parameter such as ${model}.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..exceptions import AgentError
from ..workflow.types import AgentConfig
from .base import AgentRequest, AgentResponse, BaseAgent

logger = logging.getLogger(__name__)


class InputMode(str, Enum):
    """How the prompt reaches the CLI."""
    ARGV = "argv"
    STDIN = "stdin"


@dataclass
class CommandTemplate:
    """
    Command template for an agent CLI.

    Attributes:
        name: Template identifier
        command: Command tokens with ${...} placeholders
        defaults: Default parameter values
        input_mode: How to deliver the prompt (argv or stdin)
    """
    name: str
    command: List[str]
    defaults: Dict[str, str] = field(default_factory=dict)
    input_mode: InputMode = InputMode.ARGV

    def validate(self) -> List[str]:
        """
        Validate template configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.command:
            errors.append(f"Template '{self.name}': command cannot be empty")

        if self.input_mode == InputMode.STDIN:
            for token in self.command:
                if "${PROMPT}" in token:
                    errors.append(
                        f"Template '{self.name}': ${{PROMPT}} not allowed in stdin mode"
                    )

        return errors


class CommandLineAgent(BaseAgent):
    """
    Agent backed by a command-line client.

    The context, when present, is placed before the prompt under a
    "Context:" heading; stdout is the response content.
    """

    VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def __init__(
        self,
        config: AgentConfig,
        template: CommandTemplate,
        env: Optional[Dict[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> None:
        """
        Initialize command-line agent.

        Args:
            config: Agent configuration
            template: Command template to invoke
            env: Extra environment variables for the child process
            timeout_sec: Invocation timeout
        """
        super().__init__(config)
        errors = template.validate()
        if errors:
            raise AgentError(f"Invalid command template: {'; '.join(errors)}")
        self.template = template
        self.env = env or {}
        self.timeout_sec = timeout_sec

    def default_model(self) -> str:
        return self.template.defaults.get("model", "")

    def params(self) -> Dict[str, str]:
        """Template parameters; config values override template defaults."""
        params = dict(self.template.defaults)
        if self.config.model:
            params["model"] = self.config.model
        return params

    def compose_prompt(self, request: AgentRequest) -> str:
        if request.context:
            return f"Context:\n{request.context}\n\n{request.prompt}"
        return request.prompt

    def extra_args(self, request: AgentRequest) -> List[str]:
        """Additional argv tokens appended after the template."""
        return []

    def build_command(self, prompt: str, extra_args: Optional[List[str]] = None) -> Tuple[List[str], List[str]]:
        """
        Build argv with placeholder substitution.

        ${PROMPT} is substituted last so prompt text is never scanned for
        placeholders.

        Returns:
            Tuple of (command, missing_placeholders)
        """
        params = self.params()
        command = []
        missing = set()

        for token in self.template.command:
            has_prompt = "${PROMPT}" in token
            processed = token

            for match in self.VAR_PATTERN.finditer(token):
                var = match.group(1)
                if var == "PROMPT":
                    continue
                if var in params:
                    processed = processed.replace(f"${{{var}}}", params[var])
                else:
                    missing.add(var)

            if has_prompt and self.template.input_mode == InputMode.ARGV:
                processed = processed.replace("${PROMPT}", prompt)

            command.append(processed)

        command.extend(extra_args or [])
        return command, sorted(missing)

    def generate(self, request: AgentRequest) -> AgentResponse:
        prompt = self.compose_prompt(request)
        command, missing = self.build_command(prompt, self.extra_args(request))
        if missing:
            raise AgentError(f"Missing placeholders in '{self.template.name}' template: {', '.join(missing)}")

        process_env = os.environ.copy()
        process_env.update(self.env)

        stdin_input = prompt if self.template.input_mode == InputMode.STDIN else None
        logger.debug(f"Executing agent command: {command[0]} ({self.template.input_mode.value} mode, "
                     f"prompt size: {len(prompt)} chars)")

        try:
            result = subprocess.run(
                command,
                env=process_env,
                input=stdin_input,
                capture_output=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout_sec,
            )
        except FileNotFoundError as e:
            raise AgentError(f"{self.template.name} CLI not found: {command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise AgentError(f"{self.template.name} timed out after {self.timeout_sec} seconds") from e
        except OSError as e:
            raise AgentError(f"{self.template.name} failed to start: {e}") from e

        if result.returncode != 0:
            raise AgentError(
                f"{self.template.name} exited with code {result.returncode}: {result.stderr.strip()}"
            )

        content = result.stdout.strip()
        logger.debug(f"Generated {len(content)} characters")
        return AgentResponse(content=content)


CLAUDE_TEMPLATE = CommandTemplate(
    name="claude",
    command=["claude", "-p", "${PROMPT}", "--model", "${model}"],
    defaults={"model": "claude-sonnet-4-5-20250929"},
    input_mode=InputMode.ARGV,
)


class ClaudeAgent(CommandLineAgent):
    """Claude agent driven through the ``claude`` command-line client."""

    def __init__(
        self,
        config: AgentConfig,
        api_key: Optional[str] = None,
        timeout_sec: Optional[float] = None,
    ) -> None:
        env = {"ANTHROPIC_API_KEY": api_key} if api_key else {}
        super().__init__(config, CLAUDE_TEMPLATE, env=env, timeout_sec=timeout_sec)
        if config.temperature is not None:
            logger.debug("claude CLI does not accept a temperature; ignoring configured value")

    def extra_args(self, request: AgentRequest) -> List[str]:
        if request.system_prompt:
            return ["--append-system-prompt", request.system_prompt]
        return []
