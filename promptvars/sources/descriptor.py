"""
Source descriptors: where a variable's value comes from.

A descriptor is one of exactly three immutable variants, selected by a
one-character prefix:

- ``=text``  LiteralSource, the text itself
- ``@path``  FileSource, the contents of a file
- ``!cmd``   CommandSource, the stdout of a shell command
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..exceptions import ParseError


DEFAULT_TIMEOUT_SECS = 30

LITERAL_LABEL_LIMIT = 20
COMMAND_LABEL_LIMIT = 30


class SourceKind(str, Enum):
    """Source variants keyed by their prefix character."""
    LITERAL = "="
    FILE = "@"
    COMMAND = "!"


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


@dataclass(frozen=True)
class LiteralSource:
    """Static text, used verbatim."""
    text: str

    kind = SourceKind.LITERAL

    @property
    def payload(self) -> str:
        return self.text

    @property
    def type_indicator(self) -> str:
        return self.kind.value

    def render(self) -> str:
        return f"{self.kind.value}{self.text}"

    def label(self) -> str:
        return _truncate(self.text, LITERAL_LABEL_LIMIT)


@dataclass(frozen=True)
class FileSource:
    """File contents; a relative path is resolved at evaluation time."""
    path: str

    kind = SourceKind.FILE

    @property
    def payload(self) -> str:
        return self.path

    @property
    def type_indicator(self) -> str:
        return self.kind.value

    def render(self) -> str:
        return f"{self.kind.value}{self.path}"

    def label(self) -> str:
        return self.path


@dataclass(frozen=True)
class CommandSource:
    """Standard output of a shell command, bounded by a timeout."""
    command: str
    timeout_secs: int = DEFAULT_TIMEOUT_SECS

    kind = SourceKind.COMMAND

    @property
    def payload(self) -> str:
        return self.command

    @property
    def type_indicator(self) -> str:
        return self.kind.value

    def render(self) -> str:
        return f"{self.kind.value}{self.command}"

    def label(self) -> str:
        return _truncate(self.command, COMMAND_LABEL_LIMIT)


SourceDescriptor = Union[LiteralSource, FileSource, CommandSource]


def parse(raw: str) -> SourceDescriptor:
    """
    Parse a prefixed source specification.

    Args:
        raw: Specification such as ``=text``, ``@path`` or ``!cmd``

    Returns:
        The matching source descriptor

    Raises:
        ParseError: If raw is empty or starts with any other character
    """
    if not raw:
        raise ParseError(raw)

    prefix, payload = raw[0], raw[1:]
    if prefix == SourceKind.LITERAL.value:
        return LiteralSource(payload)
    elif prefix == SourceKind.FILE.value:
        return FileSource(payload)
    elif prefix == SourceKind.COMMAND.value:
        return CommandSource(payload)
    raise ParseError(raw)


def command_with_timeout(command: str, timeout_secs: int) -> CommandSource:
    """Build a command source with an explicit timeout."""
    if timeout_secs <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_secs}")
    return CommandSource(command, timeout_secs)
