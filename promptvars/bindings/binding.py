"""Named variable bindings with a live/frozen state machine.

A live binding evaluates its source on every use. A frozen binding holds a
snapshot taken by freeze() and returns that until unfrozen or reloaded.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..exec.evaluator import Evaluation, SourceEvaluator
from ..sources.descriptor import (
    DEFAULT_TIMEOUT_SECS,
    CommandSource,
    LiteralSource,
    SourceDescriptor,
    parse,
)


logger = logging.getLogger(__name__)


class BindingState(str, Enum):
    """Binding states."""
    LIVE = "live"
    FROZEN = "frozen"


@dataclass
class Binding:
    """A name bound to a source, optionally holding a frozen snapshot."""
    name: str
    source: SourceDescriptor
    frozen_value: Optional[str] = None

    @property
    def is_frozen(self) -> bool:
        return self.frozen_value is not None

    @property
    def state(self) -> BindingState:
        return BindingState.FROZEN if self.is_frozen else BindingState.LIVE

    @property
    def status(self) -> str:
        """Short status tag for listings."""
        if isinstance(self.source, LiteralSource):
            return "[static]"
        return f"[{self.state.value}]"

    def freeze(self, evaluator: Optional[SourceEvaluator] = None) -> Evaluation:
        """
        Capture the current value of the source as the frozen snapshot.

        Freezing an already frozen binding re-evaluates and keeps the
        latest value. If evaluation fails the binding is left untouched.

        Raises:
            EvaluationError: If the source cannot be evaluated
        """
        evaluator = evaluator or SourceEvaluator()
        evaluation = evaluator.evaluate(self.source)
        self.frozen_value = evaluation.value
        logger.info(f"Froze variable '{self.name}' ({len(evaluation.value)} chars)")
        return evaluation

    def unfreeze(self):
        """Drop the snapshot; the binding evaluates live again."""
        if self.is_frozen:
            logger.info(f"Unfroze variable '{self.name}'")
        self.frozen_value = None

    def reload(self, evaluator: Optional[SourceEvaluator] = None) -> Optional[Evaluation]:
        """
        Refresh the snapshot of a frozen binding.

        Live bindings evaluate on every use, so reloading one does nothing
        and returns None.
        """
        if not self.is_frozen:
            logger.debug(f"Variable '{self.name}' is live, nothing to reload")
            return None
        return self.freeze(evaluator)

    def resolve(self, evaluator: Optional[SourceEvaluator] = None) -> Evaluation:
        """
        Value to substitute: the snapshot if frozen, else a live evaluation.

        Raises:
            EvaluationError: If a live evaluation fails
        """
        if self.frozen_value is not None:
            return Evaluation(source=self.source, value=self.frozen_value)
        evaluator = evaluator or SourceEvaluator()
        return evaluator.evaluate(self.source)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted binding shape."""
        result: Dict[str, Any] = {
            "name": self.name,
            "source": self.source.render(),
            "frozen": self.is_frozen,
            "frozen_value": self.frozen_value,
        }
        if isinstance(self.source, CommandSource) and self.source.timeout_secs != DEFAULT_TIMEOUT_SECS:
            result["timeout_secs"] = self.source.timeout_secs
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None) -> "Binding":
        """
        Create a Binding from its persisted shape.

        Args:
            data: Persisted binding dict
            name: Table key, used when the dict carries no name

        Raises:
            ParseError: If the source string has no valid prefix
            KeyError: If the source field is missing
            ValueError: If a field has the wrong type
        """
        raw_source = data["source"]
        if not isinstance(raw_source, str):
            raise ValueError(f"'source' must be a string, got {type(raw_source).__name__}")
        source = parse(raw_source)

        timeout = data.get("timeout_secs")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
                raise ValueError(f"'timeout_secs' must be a positive integer, got {timeout!r}")
            if isinstance(source, CommandSource):
                source = CommandSource(source.command, timeout)

        frozen_value = data.get("frozen_value")
        if frozen_value is not None and not isinstance(frozen_value, str):
            raise ValueError(f"'frozen_value' must be a string or null, got {type(frozen_value).__name__}")

        frozen = data.get("frozen", frozen_value is not None)
        if not isinstance(frozen, bool):
            raise ValueError(f"'frozen' must be a boolean, got {type(frozen).__name__}")

        stored_name = data.get("name")
        if stored_name is not None and not isinstance(stored_name, str):
            raise ValueError(f"'name' must be a string, got {type(stored_name).__name__}")

        if not frozen:
            frozen_value = None
        elif frozen_value is None:
            logger.warning(f"Variable '{stored_name or name}' marked frozen without a value, loading as live")

        return cls(
            name=stored_name or name or "",
            source=source,
            frozen_value=frozen_value,
        )
