"""Settings loading and execution environment resolution.

Settings come from built-in defaults, an optional YAML file and a few
PROMPTVARS_* environment overrides, in that order of precedence.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .exceptions import ConfigValidationError, ValidationError
from .sources.descriptor import DEFAULT_TIMEOUT_SECS


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILE = "promptvars.yaml"
DEFAULT_VARS_FILE = ".promptvars/variables.json"
DEFAULT_SHELL = "/bin/sh"

SHELL_OVERRIDE_ENV = "PROMPTVARS_SHELL"
TIMEOUT_OVERRIDE_ENV = "PROMPTVARS_DEFAULT_TIMEOUT"
VARS_FILE_OVERRIDE_ENV = "PROMPTVARS_VARS_FILE"

ON_ERROR_CHOICES = ("ask", "skip", "abort", "retry", "edit")


@dataclass
class ExecutionEnvironment:
    """Shell, working directory and environment for one evaluation call."""
    shell: str
    cwd: Path
    env: Optional[Dict[str, str]] = None

    @classmethod
    def from_environ(
        cls,
        shell_env_var: str = "SHELL",
        default_shell: str = DEFAULT_SHELL,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ExecutionEnvironment":
        """
        Resolve the current shell and working directory.

        PROMPTVARS_SHELL wins over the shell env var, which wins over
        default_shell. The child inherits the parent environment unchanged.
        """
        environ = os.environ if environ is None else environ
        shell = environ.get(SHELL_OVERRIDE_ENV) or environ.get(shell_env_var) or default_shell
        return cls(shell=shell, cwd=Path.cwd())

    def resolve_path(self, path: str) -> Path:
        """Resolve a possibly relative path against cwd; no ~ expansion."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.cwd / candidate


@dataclass
class Settings:
    """User settings for evaluation, persistence and failure recovery."""
    default_timeout_secs: int = DEFAULT_TIMEOUT_SECS
    poll_ms: int = 50
    shell_env_var: str = "SHELL"
    default_shell: str = DEFAULT_SHELL
    vars_file: str = DEFAULT_VARS_FILE
    on_error: str = "ask"
    max_retries: int = 3
    retry_delay_ms: int = 0

    def environment(self, environ: Optional[Mapping[str, str]] = None) -> ExecutionEnvironment:
        """Resolve a fresh execution environment for one evaluation call."""
        return ExecutionEnvironment.from_environ(
            shell_env_var=self.shell_env_var,
            default_shell=self.default_shell,
            environ=environ,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class SettingsLoader:
    """Loads and validates promptvars.yaml."""

    POSITIVE_INT_FIELDS = {"default_timeout_secs", "poll_ms"}
    NON_NEGATIVE_INT_FIELDS = {"max_retries", "retry_delay_ms"}
    STRING_FIELDS = {"shell_env_var", "default_shell", "vars_file", "on_error"}

    def __init__(self):
        """Initialize loader."""
        self.errors: List[ValidationError] = []

    def load(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Settings:
        """
        Build Settings from defaults, the YAML file and env overrides.

        Args:
            config_path: Explicit settings file; when None, promptvars.yaml in
                the working directory is used if present
            environ: Environment mapping (default: os.environ)

        Returns:
            Validated Settings

        Raises:
            ConfigValidationError: If the file is malformed or has bad values
        """
        self.errors = []
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if config_path is not None:
            if not Path(config_path).exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
            values.update(self._read_file(Path(config_path)))
        elif Path(DEFAULT_CONFIG_FILE).exists():
            values.update(self._read_file(Path(DEFAULT_CONFIG_FILE)))

        values.update(self._read_environ(environ))
        self._validate(values)

        if self.errors:
            raise ConfigValidationError(self.errors)

        settings = Settings(**values)
        logger.debug(f"Loaded settings: {settings.to_dict()}")
        return settings

    def _read_file(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError([ValidationError(f"Failed to load settings: {e}", str(path))])

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigValidationError([ValidationError("Settings must be a YAML mapping", str(path))])

        known = {f.name for f in fields(Settings)}
        for key in data:
            if key not in known:
                self.errors.append(ValidationError(f"Unknown setting '{key}'", str(path)))
        return {k: v for k, v in data.items() if k in known}

    def _read_environ(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}

        timeout = environ.get(TIMEOUT_OVERRIDE_ENV)
        if timeout:
            try:
                overrides["default_timeout_secs"] = int(timeout)
            except ValueError:
                self.errors.append(ValidationError(
                    f"{TIMEOUT_OVERRIDE_ENV} must be an integer, got '{timeout}'"
                ))

        vars_file = environ.get(VARS_FILE_OVERRIDE_ENV)
        if vars_file:
            overrides["vars_file"] = vars_file

        return overrides

    def _validate(self, values: Dict[str, Any]):
        for name in self.POSITIVE_INT_FIELDS:
            if name in values:
                value = values[name]
                if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                    self.errors.append(ValidationError(f"'{name}' must be a positive integer", name))

        for name in self.NON_NEGATIVE_INT_FIELDS:
            if name in values:
                value = values[name]
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    self.errors.append(ValidationError(f"'{name}' must be a non-negative integer", name))

        for name in self.STRING_FIELDS:
            if name in values and not isinstance(values[name], str):
                self.errors.append(ValidationError(
                    f"'{name}' must be a string, got {type(values[name]).__name__}", name
                ))

        on_error = values.get("on_error")
        if isinstance(on_error, str) and on_error not in ON_ERROR_CHOICES:
            self.errors.append(ValidationError(
                f"'on_error' must be one of {', '.join(ON_ERROR_CHOICES)}", "on_error"
            ))


def load_settings(config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Convenience wrapper around SettingsLoader.load."""
    return SettingsLoader().load(config_path, environ)
