"""Render command: substitute a template and print or write the result."""

import logging
import sys
from argparse import Namespace
from pathlib import Path

from promptvars.exec import SourceEvaluator
from promptvars.recovery import (
    ConsolePrompt,
    FixedPolicy,
    RecoveryAction,
    RecoveryController,
    RetryPolicy,
)
from promptvars.variables import SubstitutionEngine

from .common import cli_command, open_session


logger = logging.getLogger(__name__)

EXIT_EDIT_REQUESTED = 3


def read_template(args: Namespace) -> str:
    """Template from --text, a file, or stdin, in that order."""
    if args.text is not None:
        return args.text
    if args.template:
        template_path = Path(args.template)
        if not template_path.exists():
            raise FileNotFoundError(f"Template file not found: {template_path}")
        return template_path.read_text(encoding='utf-8')
    return sys.stdin.read()


def build_decision_maker(on_error: str):
    if on_error == 'ask':
        return ConsolePrompt()
    return FixedPolicy(RecoveryAction(on_error))


@cli_command
def render_template(args: Namespace) -> int:
    """
    Substitute a template against the variables file.

    Exit codes: 0 rendered (possibly with skipped tokens), 1 aborted,
    3 the user chose to edit the template.
    """
    settings, _, table = open_session(args)
    template = read_template(args)

    on_error = args.on_error or settings.on_error
    if on_error == 'ask' and args.text is None and not args.template:
        logger.warning("Template read from stdin, cannot prompt; aborting on failures")
        on_error = 'abort'

    max_retries = args.max_retries if args.max_retries is not None else settings.max_retries
    retry_delay = args.retry_delay if args.retry_delay is not None else settings.retry_delay_ms

    if on_error == 'ask':
        retry_policy = RetryPolicy.unbounded(delay_ms=retry_delay)
    else:
        retry_policy = RetryPolicy(max_retries=max_retries, delay_ms=retry_delay)

    controller = RecoveryController(
        decide=build_decision_maker(on_error),
        engine=SubstitutionEngine(SourceEvaluator(settings)),
        retry_policy=retry_policy,
    )
    outcome = controller.run(template, table)

    for warning in outcome.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if outcome.action == RecoveryAction.EDIT_SOURCE:
        print("Edit requested, template not rendered", file=sys.stderr)
        return EXIT_EDIT_REQUESTED

    if not outcome.should_send:
        for failure in outcome.failures:
            print(f"Error: {failure.label}: {failure.message}", file=sys.stderr)
        print("Aborted", file=sys.stderr)
        return 1

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(outcome.text, encoding='utf-8')
        logger.info(f"Wrote rendered template to {out_path}")
    else:
        sys.stdout.write(outcome.text)
    return 0
