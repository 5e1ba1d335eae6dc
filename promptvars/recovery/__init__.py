"""
Recovery module.
Skip / abort / retry / edit decisions for failed substitutions.
"""

from .controller import RecoveryController, RecoveryOutcome, blank_tokens
from .policies import ConsolePrompt, FixedPolicy, RecoveryAction, format_failures
from .retry import RetryPolicy

__all__ = [
    "ConsolePrompt",
    "FixedPolicy",
    "RecoveryAction",
    "RecoveryController",
    "RecoveryOutcome",
    "RetryPolicy",
    "blank_tokens",
    "format_failures",
]
