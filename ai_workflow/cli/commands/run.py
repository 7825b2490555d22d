"""Run command implementation."""

import json
import logging
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict

from ...exceptions import ConfigError, WorkflowDefinitionError, WorkflowExecutionError, WorkflowValidationError
from ...loader import WorkflowLoader
from ...state import RunLog
from ...workflow.executor import WorkflowExecutor
from ...workflow.types import Workflow
from .common import config_manager, setup_logging

logger = logging.getLogger(__name__)


def parse_variables(args: Namespace) -> Dict[str, Any]:
    """
    Parse --var KEY=VALUE pairs.

    Values that parse as JSON (numbers, booleans, lists, objects) keep their
    type; anything else is taken as a plain string.
    """
    variables: Dict[str, Any] = {}

    for item in args.var or []:
        if '=' not in item:
            raise ValueError(f"Invalid variable format: {item}. Expected KEY=VALUE")
        key, value = item.split('=', 1)
        if not key:
            raise ValueError(f"Invalid variable format: {item}. KEY cannot be empty")
        try:
            variables[key] = json.loads(value)
        except ValueError:
            variables[key] = value

    return variables


def describe_plan(workflow: Workflow) -> str:
    """Plain-text plan of a workflow for --dry-run."""
    lines = [f"Workflow: {workflow.name}"]
    if workflow.description:
        lines.append(f"  {workflow.description}")
    for i, step in enumerate(workflow.steps):
        step_type = getattr(step.type, 'value', step.type)
        line = f"  [{i}] {step.name} ({step_type})"
        if step.on_failure is not None:
            line += f" on_failure={step.on_failure}"
        lines.append(line)
    return "\n".join(lines)


def run_workflow(args: Namespace) -> int:
    """
    Run a named workflow.

    Returns:
        0 when the run completes, 1 when it halts or fails, 2 on validation errors
    """
    manager = config_manager(args)
    try:
        config = manager.load()
    except ConfigError as e:
        setup_logging(args)
        logger.error(str(e))
        return 1

    setup_logging(args, config)

    workspace = Path.cwd()
    loader = WorkflowLoader(workspace)
    try:
        workflow = loader.get_workflow(args.file, args.workflow)
    except WorkflowValidationError as e:
        for error in e.errors:
            logger.error(f"Validation error: {error.message}")
        return e.exit_code

    try:
        variables = parse_variables(args)
    except ValueError as e:
        logger.error(str(e))
        return 2

    if args.dry_run:
        print(describe_plan(workflow))
        logger.info("[DRY RUN] Workflow validation successful")
        return 0

    run_log = RunLog(manager.get_log_dir(config), workflow.name, input=args.input, variables=variables)
    log_file = run_log.start()
    logger.info(f"Created new run: {run_log.run_id}")

    try:
        executor = WorkflowExecutor(
            workflow=workflow,
            config=config,
            callbacks=run_log.callbacks(),
            workspace=workspace,
        )
        report = executor.run(args.input, variables)
    except WorkflowValidationError as e:
        run_log.fail(str(e))
        for error in e.errors:
            logger.error(f"Validation error: {error.message}")
        return e.exit_code
    except (WorkflowDefinitionError, WorkflowExecutionError) as e:
        run_log.fail(str(e))
        logger.error(str(e))
        return 1

    run_log.finish(report)
    logger.info(f"Run log written to {log_file}")

    if not report.completed:
        failed = report.results[-1] if report.results else None
        message = failed.error.get('message') if failed and failed.error else 'unknown error'
        logger.error(f"Workflow halted at step '{report.halted_step}': {message}")
        return 1

    if report.results:
        print(report.results[-1].output)
    return 0
