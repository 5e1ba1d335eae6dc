"""
Tests for settings loading.
Defaults, promptvars.yaml, environment overrides and validation errors.
"""

import pytest

from promptvars.config import Settings, SettingsLoader, load_settings
from promptvars.exceptions import ConfigValidationError


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestDefaults:

    def test_no_file_gives_defaults(self, in_tmp):
        settings = load_settings(environ={})

        assert settings == Settings()
        assert settings.default_timeout_secs == 30
        assert settings.poll_ms == 50
        assert settings.vars_file == ".promptvars/variables.json"
        assert settings.on_error == "ask"

    def test_empty_file_gives_defaults(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("")
        assert load_settings(environ={}) == Settings()


class TestYamlFile:

    def test_values_read_from_working_directory(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text(
            "default_timeout_secs: 90\n"
            "on_error: skip\n"
            "vars_file: vars.json\n"
        )

        settings = load_settings(environ={})

        assert settings.default_timeout_secs == 90
        assert settings.on_error == "skip"
        assert settings.vars_file == "vars.json"
        assert settings.max_retries == 3

    def test_explicit_path(self, in_tmp):
        path = in_tmp / "custom.yaml"
        path.write_text("max_retries: 0\n")

        assert load_settings(path, environ={}).max_retries == 0

    def test_explicit_missing_path(self, in_tmp):
        with pytest.raises(FileNotFoundError):
            load_settings(in_tmp / "nope.yaml", environ={})

    def test_unknown_key_rejected(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("timeout: 5\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_settings(environ={})

        assert exc_info.value.exit_code == 2
        assert "Unknown setting 'timeout'" in exc_info.value.errors[0].message

    def test_bad_values_reported_together(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text(
            "default_timeout_secs: 0\n"
            "poll_ms: fast\n"
            "retry_delay_ms: -1\n"
            "default_shell: 5\n"
            "on_error: ignore\n"
        )

        loader = SettingsLoader()
        with pytest.raises(ConfigValidationError):
            loader.load(environ={})

        paths = sorted(error.path for error in loader.errors)
        assert paths == sorted(["default_timeout_secs", "poll_ms", "retry_delay_ms", "default_shell", "on_error"])

    def test_boolean_is_not_an_integer(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("max_retries: true\n")
        with pytest.raises(ConfigValidationError):
            load_settings(environ={})

    def test_non_mapping_rejected(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigValidationError):
            load_settings(environ={})

    def test_malformed_yaml_rejected(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("key: [unclosed\n")
        with pytest.raises(ConfigValidationError):
            load_settings(environ={})


class TestEnvironmentOverrides:

    def test_timeout_override_wins_over_file(self, in_tmp):
        (in_tmp / "promptvars.yaml").write_text("default_timeout_secs: 90\n")

        settings = load_settings(environ={"PROMPTVARS_DEFAULT_TIMEOUT": "12"})

        assert settings.default_timeout_secs == 12

    def test_bad_timeout_override(self, in_tmp):
        with pytest.raises(ConfigValidationError) as exc_info:
            load_settings(environ={"PROMPTVARS_DEFAULT_TIMEOUT": "soon"})
        assert "must be an integer" in exc_info.value.errors[0].message

    def test_vars_file_override(self, in_tmp):
        settings = load_settings(environ={"PROMPTVARS_VARS_FILE": "/tmp/other.json"})
        assert settings.vars_file == "/tmp/other.json"

    def test_environment_uses_configured_shell_var(self, in_tmp):
        settings = Settings(shell_env_var="MY_SHELL", default_shell="/bin/bash")

        assert settings.environment({"MY_SHELL": "/bin/zsh", "SHELL": "/bin/sh"}).shell == "/bin/zsh"
        assert settings.environment({}).shell == "/bin/bash"
        assert settings.environment({}).cwd == in_tmp
