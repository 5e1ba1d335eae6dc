"""Main CLI entry point for promptvars."""

import argparse
import sys
from typing import Optional

from .commands import (
    delete_variable,
    freeze_variable,
    list_variables,
    load_variable,
    reload_variables,
    render_template,
    show_variable,
    unfreeze_variable,
)


def _common_parser() -> argparse.ArgumentParser:
    """Options shared by every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--vars-file',
        type=str,
        help='Variables file (default: .promptvars/variables.json)'
    )
    common.add_argument(
        '--config',
        type=str,
        help='Settings YAML file (default: promptvars.yaml if present)'
    )
    common.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    common.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    common.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    common.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='warn',
        help='Set log level'
    )
    return common


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the promptvars CLI."""
    parser = argparse.ArgumentParser(
        prog='promptvars',
        description='Template variables backed by literals, files and commands'
    )
    common = _common_parser()

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    load_parser = subparsers.add_parser('load', parents=[common], help='Bind a source to a variable')
    load_parser.add_argument(
        'source',
        type=str,
        help="Source: '=text', '@path' or '!command'"
    )
    load_parser.add_argument(
        'name',
        type=str,
        nargs='?',
        help='Variable name (derived from the source if omitted)'
    )
    load_parser.add_argument(
        '--timeout',
        type=int,
        help='Timeout in seconds for command sources'
    )
    load_parser.add_argument(
        '--freeze',
        action='store_true',
        help='Freeze the value right after loading'
    )

    subparsers.add_parser('list', parents=[common], help='List variables')

    show_parser = subparsers.add_parser('show', parents=[common], help='Show a variable and its value')
    show_parser.add_argument('name', type=str, help='Variable name')

    delete_parser = subparsers.add_parser('delete', parents=[common], help='Delete a variable')
    delete_parser.add_argument('name', type=str, help='Variable name')

    freeze_parser = subparsers.add_parser('freeze', parents=[common], help='Snapshot the current value')
    freeze_parser.add_argument('name', type=str, help='Variable name')

    unfreeze_parser = subparsers.add_parser('unfreeze', parents=[common], help='Go back to live evaluation')
    unfreeze_parser.add_argument('name', type=str, help='Variable name')

    reload_parser = subparsers.add_parser('reload', parents=[common], help='Refresh frozen snapshots')
    reload_parser.add_argument(
        'name',
        type=str,
        nargs='?',
        help='Variable name (all frozen variables if omitted)'
    )

    render_parser = subparsers.add_parser('render', parents=[common], help='Substitute a template')
    render_parser.add_argument(
        'template',
        type=str,
        nargs='?',
        help='Template file (stdin if omitted and --text not given)'
    )
    render_parser.add_argument(
        '--text',
        type=str,
        help='Template text given inline'
    )
    render_parser.add_argument(
        '--out',
        type=str,
        help='Write the result to a file instead of stdout'
    )
    render_parser.add_argument(
        '--on-error',
        choices=['ask', 'skip', 'abort', 'retry', 'edit'],
        help='What to do when a token fails (default from settings)'
    )
    render_parser.add_argument(
        '--max-retries',
        type=int,
        help='Maximum retries when --on-error is retry'
    )
    render_parser.add_argument(
        '--retry-delay',
        type=int,
        help='Retry delay in milliseconds'
    )

    return parser


COMMANDS = {
    'load': load_variable,
    'list': list_variables,
    'show': show_variable,
    'delete': delete_variable,
    'freeze': freeze_variable,
    'unfreeze': unfreeze_variable,
    'reload': reload_variables,
    'render': render_template,
}


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    handler = COMMANDS.get(parsed_args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(parsed_args)


if __name__ == '__main__':
    sys.exit(main())
