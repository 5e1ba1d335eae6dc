"""
Source evaluator: turns a source descriptor into its current text.

All side effects (file reads, process spawns) live here. Failures are
raised as typed EvaluationError subclasses; a non-zero command exit is not
a failure, it is reported as a warning on the Evaluation.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import ExecutionEnvironment, Settings
from ..exceptions import FileReadError
from ..sources.descriptor import CommandSource, FileSource, LiteralSource, SourceDescriptor
from .command_runner import CommandRunner


logger = logging.getLogger(__name__)


@dataclass
class Evaluation:
    """Successful evaluation of one source."""
    source: SourceDescriptor
    value: str
    duration_ms: int = 0
    exit_code: Optional[int] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "source": self.source.render(),
            "duration_ms": self.duration_ms,
        }
        if self.exit_code is not None:
            result["exit_code"] = self.exit_code
        if self.warning:
            result["warning"] = self.warning
        return result


class SourceEvaluator:
    """
    Evaluates source descriptors.

    The execution environment (shell, working directory) is resolved on
    every call unless a fixed one is injected.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        environment: Optional[ExecutionEnvironment] = None,
        runner: Optional[CommandRunner] = None,
    ):
        """
        Initialize source evaluator.

        Args:
            settings: Settings for shell lookup and poll interval
            environment: Fixed environment to use instead of resolving per call
            runner: Command runner (default: one using settings.poll_ms)
        """
        self.settings = settings or Settings()
        self.environment = environment
        self.runner = runner or CommandRunner(poll_ms=self.settings.poll_ms)

    def resolve_environment(self) -> ExecutionEnvironment:
        if self.environment is not None:
            return self.environment
        return self.settings.environment()

    def evaluate(self, source: SourceDescriptor) -> Evaluation:
        """
        Evaluate a source to its current value.

        Args:
            source: Descriptor to evaluate

        Returns:
            Evaluation holding the value and any warning

        Raises:
            FileReadError: File source could not be read
            SpawnError: Command shell could not be started
            CommandTimeoutError: Command exceeded its timeout
        """
        if isinstance(source, LiteralSource):
            return Evaluation(source=source, value=source.text)
        elif isinstance(source, FileSource):
            return self._evaluate_file(source, self.resolve_environment())
        elif isinstance(source, CommandSource):
            return self._evaluate_command(source, self.resolve_environment())
        else:
            raise TypeError(f"Unknown source type: {type(source).__name__}")

    def evaluate_value(self, source: SourceDescriptor) -> str:
        """Evaluate and return only the text value."""
        return self.evaluate(source).value

    def _evaluate_file(self, source: FileSource, environment: ExecutionEnvironment) -> Evaluation:
        start_time = time.time()
        path = environment.resolve_path(source.path)

        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            raise FileReadError(source.path, e, FileReadError.NOT_FOUND)
        except PermissionError as e:
            raise FileReadError(source.path, e, FileReadError.PERMISSION_DENIED)
        except OSError as e:
            raise FileReadError(source.path, e, FileReadError.IO_ERROR)

        try:
            value = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FileReadError(source.path, e, FileReadError.IO_ERROR)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Read {len(data)} bytes from {path}")
        return Evaluation(source=source, value=value, duration_ms=duration_ms)

    def _evaluate_command(self, source: CommandSource, environment: ExecutionEnvironment) -> Evaluation:
        result = self.runner.run(source.command, source.timeout_secs, environment)
        return Evaluation(
            source=source,
            value=result.stdout,
            duration_ms=result.duration_ms,
            exit_code=result.exit_code,
            warning=result.warning,
        )


def evaluate(source: SourceDescriptor, environment: Optional[ExecutionEnvironment] = None) -> str:
    """Evaluate a source with default settings and return its text."""
    return SourceEvaluator(environment=environment).evaluate_value(source)
