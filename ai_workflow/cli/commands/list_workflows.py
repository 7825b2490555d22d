"""List command implementation."""

import logging
from argparse import Namespace
from pathlib import Path

from ...exceptions import WorkflowValidationError
from ...loader import WorkflowLoader
from .common import setup_logging

logger = logging.getLogger(__name__)


def list_workflows(args: Namespace) -> int:
    """Print the workflows in a file with their descriptions and step counts."""
    setup_logging(args)

    loader = WorkflowLoader(Path.cwd())
    try:
        workflows = loader.list_workflows(args.file)
    except WorkflowValidationError as e:
        for error in e.errors:
            logger.error(f"Validation error: {error.message}")
        return e.exit_code

    for workflow in workflows:
        count = len(workflow.steps)
        print(f"{workflow.name} ({count} step{'s' if count != 1 else ''})")
        if workflow.description:
            print(f"  {workflow.description}")

    return 0
