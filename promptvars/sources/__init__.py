"""
Source descriptor module.
Parses and renders the =literal, @file and !command source specifications.
"""

from .descriptor import (
    DEFAULT_TIMEOUT_SECS,
    CommandSource,
    FileSource,
    LiteralSource,
    SourceDescriptor,
    SourceKind,
    command_with_timeout,
    parse,
)

__all__ = [
    "DEFAULT_TIMEOUT_SECS",
    "CommandSource",
    "FileSource",
    "LiteralSource",
    "SourceDescriptor",
    "SourceKind",
    "command_with_timeout",
    "parse",
]
