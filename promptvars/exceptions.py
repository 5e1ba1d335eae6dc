"""promptvars exceptions."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass


PARSE_ERROR_MESSAGE = (
    "Missing source prefix. Use:\n"
    "  =text    - literal value\n"
    "  @path    - file contents\n"
    "  !cmd     - command output"
)


class ParseError(ValueError):
    """Raised when a source specification lacks a valid prefix.

    The message is user-facing and always lists the three prefixes.
    """

    def __init__(self, raw: str = ""):
        self.raw = raw
        super().__init__(PARSE_ERROR_MESSAGE)


class EvaluationError(Exception):
    """Base class for failures while evaluating a source."""

    kind = "evaluation_error"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the error dict recorded alongside failed tokens."""
        return {
            "type": self.kind,
            "message": self.message,
            "context": dict(self.context),
        }


class FileReadError(EvaluationError):
    """A file source could not be read.

    kind is one of not_found, permission_denied or io_error.
    """

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"

    def __init__(self, path: str, cause: Exception, kind: str = IO_ERROR):
        self.path = path
        self.cause = cause
        self.kind = kind
        super().__init__(
            f"Failed to read file '{path}': {cause}",
            {"path": path, "cause": str(cause)},
        )


class SpawnError(EvaluationError):
    """The shell for a command source could not be started."""

    kind = "spawn_failed"

    def __init__(self, command: str, shell: str, cause: Exception):
        self.command = command
        self.shell = shell
        self.cause = cause
        super().__init__(
            f"Failed to spawn command '{command}': {cause}",
            {"command": command, "shell": shell, "cause": str(cause)},
        )


class CommandTimeoutError(EvaluationError):
    """A command source exceeded its timeout and was killed."""

    kind = "timeout"

    def __init__(self, command: str, timeout_secs: float):
        self.command = command
        self.timeout_secs = timeout_secs
        super().__init__(
            f"Command '{command}' timed out after {timeout_secs:g}s",
            {"command": command, "timeout_secs": timeout_secs},
        )


class UnknownVariableError(KeyError):
    """Raised by table operations on a name that is not bound."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Variable '{self.name}' not found"


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class ConfigValidationError(Exception):
    """Raised when a settings file or variables file has the wrong shape.

    Collects every problem found so the CLI can report them together and
    map them to exit code 2.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at {error.path}: {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))
