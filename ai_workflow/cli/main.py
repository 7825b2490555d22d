"""Main CLI entry point for ai-workflow."""

import argparse
import sys
from typing import Optional

from ..config import LOG_LEVELS
from .commands import init_workspace, list_workflows, run_workflow, show_logs


def _add_logging_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    parser.add_argument(
        '--log-level',
        choices=list(LOG_LEVELS),
        default=None,
        help='Set log level (default: config file log_level)'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ai-workflow CLI."""
    parser = argparse.ArgumentParser(
        prog='ai-workflow',
        description='Run multi-step AI workflows defined in YAML'
    )
    parser.add_argument(
        '--config-dir',
        type=str,
        default=None,
        help='Configuration directory (default: ~/.ai-workflow)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Init command
    init_parser = subparsers.add_parser('init', help='Initialize configuration and an example workflow')
    init_parser.add_argument(
        '-f', '--file',
        type=str,
        default='workflow.yml',
        help='Example workflow file to create (default: workflow.yml)'
    )
    _add_logging_arguments(init_parser)

    # Run command
    run_parser = subparsers.add_parser('run', help='Run a workflow')
    run_parser.add_argument(
        'workflow',
        type=str,
        help='Name of the workflow to run'
    )
    run_parser.add_argument(
        'input',
        nargs='?',
        default='',
        help='Run input, substituted for {{input}}'
    )
    run_parser.add_argument(
        '-f', '--file',
        type=str,
        default='workflow.yml',
        help='Workflow file (default: workflow.yml)'
    )
    run_parser.add_argument(
        '--var',
        action='append',
        metavar='KEY=VALUE',
        help='Variables substituted for ${KEY} (can be specified multiple times)'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate and print the plan without execution'
    )
    _add_logging_arguments(run_parser)

    # List command
    list_parser = subparsers.add_parser('list', help='List workflows in a workflow file')
    list_parser.add_argument(
        '-f', '--file',
        type=str,
        default='workflow.yml',
        help='Workflow file (default: workflow.yml)'
    )
    _add_logging_arguments(list_parser)

    # Logs command
    logs_parser = subparsers.add_parser('logs', help='List run logs')
    logs_parser.add_argument(
        '--last',
        action='store_true',
        help='Print the most recent run log'
    )
    _add_logging_arguments(logs_parser)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'init':
        return init_workspace(parsed_args)
    elif parsed_args.command == 'run':
        return run_workflow(parsed_args)
    elif parsed_args.command == 'list':
        return list_workflows(parsed_args)
    elif parsed_args.command == 'logs':
        return show_logs(parsed_args)
    else:
        parser.print_help()
        return 1


def cli():
    """Console script entry point."""
    sys.exit(main())


if __name__ == '__main__':
    cli()
