"""
Execution module for promptvars.
Evaluates literal, file and command sources.
"""

from .command_runner import CommandRunner, CommandResult
from .evaluator import Evaluation, SourceEvaluator, evaluate

__all__ = [
    "CommandRunner",
    "CommandResult",
    "Evaluation",
    "SourceEvaluator",
    "evaluate",
]
