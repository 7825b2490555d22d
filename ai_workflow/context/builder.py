"""
Context builder for agent steps.
Assembles files, command output, and custom variables into one text block.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from ..exec.process import ProcessRunner
from ..variables.substitution import TemplateSubstitutor
from ..workflow.types import ContextConfig, ExecutionContext
from .files import FileCollector

logger = logging.getLogger(__name__)


class ContextBuilder:
    """
    Builds the context text handed to an agent alongside its prompt.

    Sections are produced in a fixed order (files, command output,
    variables) and joined by a blank line. File patterns and commands are
    resolved against the execution context before use; the context itself is
    never modified.
    """

    FILES_HEADER = "=== Files ==="
    COMMANDS_HEADER = "=== Command Output ==="
    VARIABLES_HEADER = "=== Variables ==="

    def __init__(
        self,
        workspace: Optional[Path] = None,
        file_collector: Optional[FileCollector] = None,
        process_runner: Optional[ProcessRunner] = None,
        substitutor: Optional[TemplateSubstitutor] = None,
    ):
        """
        Initialize context builder.

        Args:
            workspace: Base workspace directory (default: cwd)
            file_collector: Glob/read collaborator
            process_runner: Shell command collaborator
            substitutor: Template substitution engine
        """
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self.file_collector = file_collector or FileCollector(self.workspace)
        self.process_runner = process_runner or ProcessRunner(self.workspace)
        self.substitutor = substitutor or TemplateSubstitutor()

    def build(self, config: Optional[ContextConfig], context: ExecutionContext) -> str:
        """
        Build the context text for a step.

        Args:
            config: Step context configuration (may be None)
            context: Current execution context (read-only)

        Returns:
            Context text, empty when nothing is configured
        """
        if config is None:
            return ""

        sections: List[str] = []

        if config.files:
            patterns = self.substitutor.resolve_all(list(config.files), context)
            contents = self.file_collector.collect(patterns)
            if contents:
                sections.append(
                    f"{self.FILES_HEADER}\n" + self.file_collector.format_for_context(contents)
                )

        if config.commands:
            commands = self.substitutor.resolve_all(list(config.commands), context)
            command_output = self._run_commands(commands)
            if command_output:
                sections.append(f"{self.COMMANDS_HEADER}\n{command_output}")

        if config.variables:
            lines = [
                f"{key}: {json.dumps(value, ensure_ascii=False, default=str)}"
                for key, value in config.variables.items()
            ]
            sections.append(f"{self.VARIABLES_HEADER}\n" + "\n".join(lines))

        return "\n\n".join(sections)

    def _run_commands(self, commands: List[str]) -> str:
        """Run context commands in order; failures are captured, not raised."""
        blocks = []
        for command in commands:
            result = self.process_runner.run(command)
            if result.exit_code != 0:
                logger.warning(f"Context command exited with code {result.exit_code}: {command}")
            blocks.append(f"$ {command}\n{result.stdout}\n{result.stderr}")
        return "\n---\n".join(blocks)
