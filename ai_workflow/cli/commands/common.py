"""Helpers shared by CLI commands."""

import logging
from argparse import Namespace
from pathlib import Path
from typing import Optional

from ...config import ConfigManager, GlobalConfig


def config_manager(args: Namespace) -> ConfigManager:
    config_dir = getattr(args, 'config_dir', None)
    return ConfigManager(Path(config_dir).expanduser() if config_dir else None)


def resolve_log_level(args: Namespace, config: Optional[GlobalConfig] = None) -> int:
    """
    Log level from flags, then the config file.

    --debug/--verbose win over --quiet, which wins over --log-level.
    """
    if getattr(args, 'debug', False) or getattr(args, 'verbose', False):
        return logging.DEBUG
    if getattr(args, 'quiet', False):
        return logging.ERROR

    name = getattr(args, 'log_level', None) or (config.log_level if config else 'info')
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(args: Namespace, config: Optional[GlobalConfig] = None):
    logging.basicConfig(
        level=resolve_log_level(args, config),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
