"""
Recovery controller: decides what happens to a send when substitution fails.

One decision covers every failed token:

- skip: send the original template with every substituted or failed token
  blanked out
- abort: cancel the send
- retry: substitute again from the original template
- edit: cancel the send and return to composing the template
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..bindings.table import BindingTable
from ..variables.substitution import SubstitutionEngine, TokenFailure
from .policies import DecisionMaker, RecoveryAction
from .retry import RetryPolicy


logger = logging.getLogger(__name__)


@dataclass
class RecoveryOutcome:
    """What the caller should do with the template.

    action is None when substitution succeeded and no decision was needed.
    text is the string to send; it is None for abort and edit.
    """
    action: Optional[RecoveryAction]
    text: Optional[str] = None
    failures: List[TokenFailure] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    retries: int = 0

    @property
    def should_send(self) -> bool:
        return self.text is not None


def blank_tokens(template: str, tokens: Iterable[str]) -> str:
    """Replace every occurrence of each token with an empty string."""
    for token in tokens:
        template = template.replace(token, "")
    return template


class RecoveryController:
    """Turns substitution failures into a single outcome."""

    def __init__(
        self,
        decide: DecisionMaker,
        engine: Optional[SubstitutionEngine] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize recovery controller.

        Args:
            decide: Chooses an action for a list of failures
            engine: Substitution engine used by run()
            retry_policy: Bounds retries in run() (default: 3 retries, no delay)
        """
        self.decide = decide
        self.engine = engine or SubstitutionEngine()
        self.retry_policy = retry_policy or RetryPolicy()

    def resolve(
        self,
        template: str,
        failures: List[TokenFailure],
        resolved_tokens: Iterable[str] = (),
    ) -> RecoveryOutcome:
        """
        Ask for a decision and apply it.

        Args:
            template: The original, unsubstituted template
            failures: Every token that failed in the last substitution
            resolved_tokens: Tokens that did substitute; blanked on skip too

        Returns:
            RecoveryOutcome; only skip carries text
        """
        action = RecoveryAction(self.decide(failures))
        logger.info(f"Recovery decision for {len(failures)} failed token(s): {action.value}")

        if action == RecoveryAction.SKIP:
            tokens = [failure.token for failure in failures] + list(resolved_tokens)
            return RecoveryOutcome(action=action, text=blank_tokens(template, tokens), failures=failures)

        return RecoveryOutcome(action=action, failures=failures)

    def run(self, template: str, table: BindingTable) -> RecoveryOutcome:
        """
        Substitute template, recovering from failures until an outcome is final.

        A retry decision re-runs substitution from scratch. When the retry
        policy is exhausted the outcome becomes abort.
        """
        retries = 0
        while True:
            result = self.engine.substitute(template, table)
            if result.ok:
                return RecoveryOutcome(action=None, text=result.text, warnings=result.warnings, retries=retries)

            outcome = self.resolve(template, result.failures, result.resolved_tokens)
            outcome.warnings = result.warnings
            outcome.retries = retries

            if outcome.action != RecoveryAction.RETRY:
                return outcome

            if not self.retry_policy.should_retry(retries):
                logger.warning(f"Giving up after {retries} retries")
                return RecoveryOutcome(
                    action=RecoveryAction.ABORT,
                    failures=result.failures,
                    warnings=result.warnings,
                    retries=retries,
                )

            retries += 1
            self.retry_policy.wait()
            logger.info(f"Retrying substitution (attempt {retries + 1})")
