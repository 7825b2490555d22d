"""Logs command implementation."""

import json
import logging
from argparse import Namespace

from ...exceptions import ConfigError
from ...state import list_runs, load_run
from .common import config_manager, setup_logging

logger = logging.getLogger(__name__)


def show_logs(args: Namespace) -> int:
    """List run logs, or print the most recent one with --last."""
    setup_logging(args)

    manager = config_manager(args)
    try:
        log_dir = manager.get_log_dir()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    runs = list_runs(log_dir)
    if not runs:
        print(f"No run logs in {log_dir}")
        return 0

    if args.last:
        try:
            record = load_run(runs[0])
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to read run log {runs[0]}: {e}")
            return 1
        print(json.dumps(record.to_dict(), indent=2))
        return 0

    for path in runs:
        try:
            record = load_run(path)
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"Skipping unreadable run log {path.name}: {e}")
            continue
        print(f"{record.run_id}  {record.workflow_name}  {record.status}  {len(record.steps)} step result(s)")

    return 0
