"""Variable management commands: load, list, show, delete, freeze, unfreeze, reload."""

import logging
from argparse import Namespace

from promptvars.exec import SourceEvaluator
from promptvars.sources import CommandSource, command_with_timeout, parse

from .common import cli_command, open_session


logger = logging.getLogger(__name__)


@cli_command
def load_variable(args: Namespace) -> int:
    """Bind a source to a variable, optionally freezing it straight away."""
    settings, store, table = open_session(args)

    source = parse(args.source)
    if isinstance(source, CommandSource):
        timeout = args.timeout if args.timeout is not None else settings.default_timeout_secs
        source = command_with_timeout(source.command, timeout)
    elif args.timeout is not None:
        logger.warning("--timeout only applies to command sources, ignoring")

    binding = table.load(source, args.name)
    if args.freeze:
        evaluation = binding.freeze(SourceEvaluator(settings))
        if evaluation.warning:
            logger.warning(evaluation.warning)

    store.save(table)
    print(f"Loaded {binding.name} {binding.status} {source.render()}")
    return 0


@cli_command
def list_variables(args: Namespace) -> int:
    """Print one line per variable."""
    _, _, table = open_session(args)

    rows = table.describe()
    if not rows:
        print("No variables")
        return 0

    width = max(len(name) for name, _, _, _ in rows)
    for name, status, indicator, label in rows:
        print(f"  {name.ljust(width)}  {status:<8}  {indicator}{label}")
    return 0


@cli_command
def show_variable(args: Namespace) -> int:
    """Print a variable's details and its current value."""
    settings, _, table = open_session(args)

    binding = table.get(args.name)
    print(f"Name:   {binding.name}")
    print(f"Status: {binding.status}")
    print(f"Source: {binding.source.render()}")
    if isinstance(binding.source, CommandSource):
        print(f"Timeout: {binding.source.timeout_secs}s")

    evaluation = binding.resolve(SourceEvaluator(settings))
    if evaluation.warning:
        logger.warning(evaluation.warning)
    print("Value:")
    print(evaluation.value)
    return 0


@cli_command
def delete_variable(args: Namespace) -> int:
    _, store, table = open_session(args)
    table.delete(args.name)
    store.save(table)
    print(f"Deleted {args.name}")
    return 0


@cli_command
def freeze_variable(args: Namespace) -> int:
    settings, store, table = open_session(args)
    evaluation = table.freeze(args.name, SourceEvaluator(settings))
    if evaluation.warning:
        logger.warning(evaluation.warning)
    store.save(table)
    print(f"Froze {args.name} ({len(evaluation.value)} chars)")
    return 0


@cli_command
def unfreeze_variable(args: Namespace) -> int:
    _, store, table = open_session(args)
    table.unfreeze(args.name)
    store.save(table)
    print(f"Unfroze {args.name}")
    return 0


@cli_command
def reload_variables(args: Namespace) -> int:
    """Refresh one frozen variable, or all of them."""
    settings, store, table = open_session(args)

    reloaded = table.reload(args.name, SourceEvaluator(settings))
    store.save(table)

    if reloaded:
        print(f"Reloaded {', '.join(reloaded)}")
    elif args.name:
        print(f"{args.name} is live, nothing to reload")
    else:
        print("No frozen variables to reload")
    return 0
