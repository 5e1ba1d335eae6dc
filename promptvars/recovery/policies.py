"""Decision makers for the recovery controller.

A decision maker is any callable taking the list of failed tokens and
returning one RecoveryAction for all of them.

- FixedPolicy: always the same answer (batch mode, tests)
- ConsolePrompt: asks on a terminal
"""

import sys
from enum import Enum
from typing import Callable, List, Optional, TextIO

from ..variables.substitution import TokenFailure


class RecoveryAction(str, Enum):
    """The four choices offered when substitution fails."""
    SKIP = "skip"
    ABORT = "abort"
    RETRY = "retry"
    EDIT_SOURCE = "edit"


DecisionMaker = Callable[[List[TokenFailure]], RecoveryAction]


def format_failures(failures: List[TokenFailure]) -> str:
    """One line per failed token: its name or source text, then the error."""
    lines = [f"Failed to substitute {len(failures)} token(s):"]
    for failure in failures:
        lines.append(f"  {failure.label}: {failure.message}")
    return "\n".join(lines)


class FixedPolicy:
    """Answers every failure with the same action."""

    def __init__(self, action: RecoveryAction):
        self.action = RecoveryAction(action)

    def __call__(self, failures: List[TokenFailure]) -> RecoveryAction:
        return self.action


class ConsolePrompt:
    """Prints the failures and reads a choice from the user.

    End of input counts as abort.
    """

    CHOICES = {
        "s": RecoveryAction.SKIP,
        "skip": RecoveryAction.SKIP,
        "a": RecoveryAction.ABORT,
        "abort": RecoveryAction.ABORT,
        "r": RecoveryAction.RETRY,
        "retry": RecoveryAction.RETRY,
        "e": RecoveryAction.EDIT_SOURCE,
        "edit": RecoveryAction.EDIT_SOURCE,
    }
    PROMPT = "[s]kip / [a]bort / [r]etry / [e]dit? "

    def __init__(
        self,
        input_func: Callable[[], str] = input,
        output: Optional[TextIO] = None,
    ):
        """
        Initialize the prompt.

        Args:
            input_func: Reads one answer line
            output: Stream for the failure report and prompt (default: stderr)
        """
        self.input_func = input_func
        self.output = output

    def __call__(self, failures: List[TokenFailure]) -> RecoveryAction:
        output = self.output or sys.stderr
        print(format_failures(failures), file=output)

        while True:
            print(self.PROMPT, end="", file=output, flush=True)
            try:
                answer = self.input_func()
            except EOFError:
                return RecoveryAction.ABORT

            action = self.CHOICES.get(answer.strip().lower())
            if action is not None:
                return action
            print(f"Unrecognised choice '{answer.strip()}'", file=output)
