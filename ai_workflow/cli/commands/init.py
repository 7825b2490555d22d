"""Init command implementation."""

import logging
from argparse import Namespace
from pathlib import Path

from ...exceptions import ConfigError
from .common import config_manager, setup_logging

logger = logging.getLogger(__name__)

EXAMPLE_WORKFLOW = """\
workflows:
  review:
    description: Summarize recent changes and review them
    steps:
      - name: diff
        type: command
        command: git log -5 --stat

      - name: review
        type: agent
        agent:
          type: claude
        context:
          files:
            - "README*"
        prompt: |
          Review these recent changes and point out risks.
          Focus: {{input}}

          $previous_output
        on_failure: continue

      - name: approve
        type: human_approval
"""


def init_workspace(args: Namespace) -> int:
    """Create the config directory and an example workflow file."""
    setup_logging(args)

    manager = config_manager(args)
    existed = manager.config_exists()
    try:
        manager.initialize()
    except (ConfigError, OSError) as e:
        logger.error(f"Failed to initialize configuration: {e}")
        return 1

    print(f"{'Using existing' if existed else 'Created'} config: {manager.config_path}")

    workflow_path = Path(args.file)
    if workflow_path.exists():
        print(f"Workflow file already exists: {workflow_path}")
    else:
        workflow_path.write_text(EXAMPLE_WORKFLOW, encoding='utf-8')
        print(f"Created example workflow: {workflow_path}")

    return 0
