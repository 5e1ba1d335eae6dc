"""Shared setup for CLI command handlers."""

import functools
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Callable, Tuple

from promptvars.bindings import BindingStore, BindingTable
from promptvars.config import Settings, load_settings
from promptvars.exceptions import (
    ConfigValidationError,
    EvaluationError,
    ParseError,
    UnknownVariableError,
)


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(args: Namespace):
    """Set up root logging from --log-level/--debug/--quiet/--verbose."""
    level_name = getattr(args, 'log_level', 'warn') or 'warn'
    log_level = getattr(logging, 'WARNING' if level_name == 'warn' else level_name.upper())
    if getattr(args, 'debug', False):
        log_level = logging.DEBUG
    elif getattr(args, 'quiet', False):
        log_level = logging.ERROR
    elif getattr(args, 'verbose', False):
        log_level = logging.INFO

    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logging.getLogger('promptvars').setLevel(log_level)


def open_session(args: Namespace) -> Tuple[Settings, BindingStore, BindingTable]:
    """Load settings, then the variables table they point at."""
    config_path = Path(args.config) if getattr(args, 'config', None) else None
    settings = load_settings(config_path)
    vars_file = getattr(args, 'vars_file', None) or settings.vars_file
    store = BindingStore(Path(vars_file))
    return settings, store, store.load()


def cli_command(handler: Callable[[Namespace], int]) -> Callable[[Namespace], int]:
    """Configure logging and map promptvars errors to exit codes.

    2 for parse and validation problems, 1 for everything else.
    """
    @functools.wraps(handler)
    def wrapper(args: Namespace) -> int:
        configure_logging(args)
        try:
            return handler(args)
        except ParseError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        except ConfigValidationError as e:
            for error in e.errors:
                logger.error(f"Validation error: {error.message}")
            print(f"Error: {e}", file=sys.stderr)
            return e.exit_code
        except UnknownVariableError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except EvaluationError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        except FileNotFoundError as e:
            logger.error(f"File not found: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return wrapper
