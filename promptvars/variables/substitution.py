"""
Template substitution implementation.
Handles {{name}} tokens resolved against a BindingTable and inline
{{=text}}, {{@path}}, {{!cmd}} tokens evaluated on the spot.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..bindings.table import BindingTable
from ..exceptions import EvaluationError, ParseError
from ..exec.evaluator import SourceEvaluator
from ..sources.descriptor import parse


logger = logging.getLogger(__name__)


NAMED = "named"
INLINE = "inline"


@dataclass
class TokenFailure:
    """A token that could not be substituted."""
    token: str  # Full marker as it appears, e.g. {{name}} or {{@path}}
    label: str  # Variable name or inline source text
    kind: str  # named or inline
    error: Union[EvaluationError, ParseError]

    @property
    def message(self) -> str:
        if isinstance(self.error, EvaluationError):
            return self.error.message
        return str(self.error)

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.error, EvaluationError):
            error = self.error.to_dict()
        else:
            error = {"type": "parse_error", "message": str(self.error), "context": {}}
        return {
            "token": self.token,
            "label": self.label,
            "kind": self.kind,
            "error": error,
        }


@dataclass
class SubstitutionResult:
    """Outcome of one substitution call.

    text is set only when there were no failures. template is always the
    original, unmodified input; partial is the working string after both
    passes, with failed tokens still in place.
    """
    template: str
    text: Optional[str] = None
    partial: str = ""
    failures: List[TokenFailure] = field(default_factory=list)
    resolved_tokens: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_tokens(self) -> List[str]:
        return [failure.token for failure in self.failures]


class SubstitutionEngine:
    """
    Performs the two substitution passes over a template.

    1. Named pass: each binding whose {{name}} marker occurs is resolved once
       (frozen snapshot or live evaluation) and replaced everywhere.
       Unreferenced bindings are never evaluated.
    2. Inline pass: each {{<prefix>...}} token in the result of the named pass
       is parsed and evaluated fresh; identical tokens are evaluated once.

    Failures from both passes are collected, never raised.
    """

    NAMED_PATTERN = re.compile(r'\{\{([^{}]+)\}\}')
    INLINE_PATTERN = re.compile(r'\{\{([=@!].*?)\}\}')

    def __init__(self, evaluator: Optional[SourceEvaluator] = None):
        """
        Initialize the engine.

        Args:
            evaluator: Source evaluator (default: one with default settings)
        """
        self.evaluator = evaluator or SourceEvaluator()

    def substitute(self, template: str, table: BindingTable) -> SubstitutionResult:
        """
        Substitute all recognised tokens in template.

        Args:
            template: Text containing {{...}} tokens
            table: Bindings available for named tokens

        Returns:
            SubstitutionResult with text on success, failures otherwise
        """
        result = SubstitutionResult(template=template)

        working = self._substitute_named(template, table, result)
        working = self._substitute_inline(working, result)
        result.partial = working

        if result.failures:
            for failure in result.failures:
                logger.info(f"Failed to substitute {failure.token}: {failure.message}")
            return result

        result.text = working
        return result

    def _substitute_named(self, text: str, table: BindingTable, result: SubstitutionResult) -> str:
        values: Dict[str, str] = {}
        for binding in table:
            marker = f"{{{{{binding.name}}}}}"
            if marker not in text:
                continue

            try:
                evaluation = binding.resolve(self.evaluator)
            except EvaluationError as e:
                result.failures.append(TokenFailure(
                    token=marker, label=binding.name, kind=NAMED, error=e
                ))
                continue

            if evaluation.warning:
                result.warnings.append(f"{binding.name}: {evaluation.warning}")
            values[binding.name] = evaluation.value
            result.resolved_tokens.append(marker)

        if not values:
            return text

        # One sweep; inserted values are never rescanned for names
        def replace_marker(match):
            return values.get(match.group(1), match.group(0))

        return self.NAMED_PATTERN.sub(replace_marker, text)

    def _substitute_inline(self, text: str, result: SubstitutionResult) -> str:
        values: Dict[str, str] = {}
        failed: Dict[str, TokenFailure] = {}

        def replace_token(match):
            token = match.group(0)
            if token in values:
                return values[token]
            if token in failed:
                return token

            source_text = match.group(1)
            try:
                evaluation = self.evaluator.evaluate(parse(source_text))
            except (ParseError, EvaluationError) as e:
                failed[token] = TokenFailure(token=token, label=source_text, kind=INLINE, error=e)
                return token

            if evaluation.warning:
                result.warnings.append(f"{source_text}: {evaluation.warning}")
            values[token] = evaluation.value
            result.resolved_tokens.append(token)
            return evaluation.value

        text = self.INLINE_PATTERN.sub(replace_token, text)
        result.failures.extend(failed.values())
        return text
