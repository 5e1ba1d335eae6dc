"""Binding table: the per-session mapping of variable name to Binding."""

import logging
import re
import shlex
from pathlib import PurePath
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..exceptions import ConfigValidationError, UnknownVariableError, ValidationError
from ..exec.evaluator import Evaluation, SourceEvaluator
from ..sources.descriptor import FileSource, LiteralSource, SourceDescriptor
from .binding import Binding


logger = logging.getLogger(__name__)


# A name must not open with a source prefix, or {{name}} would read as an inline token
NAME_PATTERN = re.compile(r'^[A-Za-z0-9_][A-Za-z0-9_.\-]*$')
UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9_\-]')


def validate_name(name: str) -> str:
    """Return name unchanged if usable as a {{name}} marker, else raise ValueError."""
    if not NAME_PATTERN.match(name or ""):
        raise ValueError(
            f"Invalid variable name '{name}': use letters, digits, '_', '-' or '.', "
            f"not starting with '-' or '.'"
        )
    return name


def derive_name(source: SourceDescriptor) -> str:
    """
    Derive a variable name from a source.

    File sources use the file stem, command sources the program name.
    Literal sources have nothing to derive from.

    Raises:
        ValueError: For literal sources or when nothing usable remains
    """
    if isinstance(source, LiteralSource):
        raise ValueError("Literal sources need an explicit variable name")

    if isinstance(source, FileSource):
        base = PurePath(source.path).stem
    else:
        try:
            words = shlex.split(source.command)
        except ValueError:
            words = source.command.split()
        base = PurePath(words[0]).name if words else ""

    name = UNSAFE_NAME_CHARS.sub('_', base).lstrip('-')
    if not name:
        raise ValueError(f"Cannot derive a variable name from '{source.render()}', give one explicitly")
    return name


class BindingTable:
    """
    Mapping of name to Binding.

    Names are unique and case-sensitive. Loading an existing name replaces
    its binding. The table assumes a single writer.
    """

    def __init__(self, bindings: Optional[Dict[str, Binding]] = None):
        self._bindings: Dict[str, Binding] = dict(bindings or {})

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[Binding]:
        return iter(list(self._bindings.values()))

    def __len__(self) -> int:
        return len(self._bindings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BindingTable):
            return NotImplemented
        return self._bindings == other._bindings

    def names(self) -> List[str]:
        return sorted(self._bindings)

    def get(self, name: str) -> Binding:
        """Return the binding for name or raise UnknownVariableError."""
        try:
            return self._bindings[name]
        except KeyError:
            raise UnknownVariableError(name)

    def load(self, source: SourceDescriptor, name: Optional[str] = None) -> Binding:
        """
        Bind a source to a name, replacing any previous binding.

        Args:
            source: Parsed source descriptor
            name: Explicit name; derived from the source when omitted

        Returns:
            The new live binding
        """
        name = validate_name(name) if name else derive_name(source)
        binding = Binding(name=name, source=source)
        if name in self._bindings:
            logger.info(f"Replacing variable '{name}' with {source.render()}")
        else:
            logger.info(f"Loaded variable '{name}' from {source.render()}")
        self._bindings[name] = binding
        return binding

    def put(self, binding: Binding):
        """Store a prebuilt binding under its own name."""
        self._bindings[binding.name] = binding

    def delete(self, name: str) -> Binding:
        """Remove and return the binding for name."""
        binding = self.get(name)
        del self._bindings[name]
        logger.info(f"Deleted variable '{name}'")
        return binding

    def freeze(self, name: str, evaluator: Optional[SourceEvaluator] = None) -> Evaluation:
        return self.get(name).freeze(evaluator)

    def unfreeze(self, name: str):
        self.get(name).unfreeze()

    def reload(
        self,
        name: Optional[str] = None,
        evaluator: Optional[SourceEvaluator] = None,
    ) -> List[str]:
        """
        Refresh frozen snapshots.

        Args:
            name: A single variable; all frozen variables when None
            evaluator: Evaluator to use

        Returns:
            Names whose snapshot was refreshed

        Raises:
            EvaluationError: On the first source that fails to evaluate
        """
        targets = [self.get(name)] if name is not None else list(self._bindings.values())
        reloaded = []
        for binding in targets:
            if binding.reload(evaluator) is not None:
                reloaded.append(binding.name)
        return reloaded

    def describe(self) -> List[Tuple[str, str, str, str]]:
        """Rows of (name, status, type indicator, label), sorted by name."""
        rows = []
        for name in self.names():
            binding = self._bindings[name]
            rows.append((name, binding.status, binding.source.type_indicator, binding.source.label()))
        return rows

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted mapping of name to binding dict."""
        return {name: binding.to_dict() for name, binding in self._bindings.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BindingTable":
        """
        Create a table from either persisted shape.

        Current shape maps name to binding dict. The legacy shape maps a file
        path to a variable name; each entry becomes a live FileSource binding.

        Raises:
            ConfigValidationError: If the mapping matches neither shape
        """
        if not isinstance(data, dict):
            raise ConfigValidationError([ValidationError(
                f"Variables must be a mapping, got {type(data).__name__}", "variables"
            )])

        if data and all(isinstance(value, str) for value in data.values()):
            return cls._from_legacy(data)

        errors: List[ValidationError] = []
        bindings: Dict[str, Binding] = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                errors.append(ValidationError(
                    f"Expected a binding object, got {type(value).__name__}", f"variables.{key}"
                ))
                continue
            try:
                binding = Binding.from_dict(value, name=key)
            except (KeyError, ValueError) as e:
                errors.append(ValidationError(f"Invalid binding: {e}", f"variables.{key}"))
                continue
            if binding.name != key:
                logger.warning(f"Binding name '{binding.name}' differs from key '{key}', using key")
                binding.name = key
            bindings[key] = binding

        if errors:
            raise ConfigValidationError(errors)
        return cls(bindings)

    @classmethod
    def _from_legacy(cls, data: Dict[str, str]) -> "BindingTable":
        bindings: Dict[str, Binding] = {}
        for path, name in data.items():
            bindings[name] = Binding(name=name, source=FileSource(path))
        logger.info(f"Migrated {len(bindings)} legacy file variable(s)")
        return cls(bindings)
