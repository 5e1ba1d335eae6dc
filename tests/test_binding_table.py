"""
Tests for the binding table.
Loading, name derivation, deletion, bulk reload and both persisted shapes,
including migration from the legacy path -> name mapping.
"""

import pytest

from promptvars.bindings import Binding, BindingTable, derive_name, validate_name
from promptvars.exceptions import ConfigValidationError, UnknownVariableError
from promptvars.sources import CommandSource, FileSource, LiteralSource


class TestLoad:

    def test_load_with_explicit_name(self):
        table = BindingTable()
        binding = table.load(FileSource("src/main.rs"), "code")

        assert binding.name == "code"
        assert "code" in table
        assert table.get("code").source == FileSource("src/main.rs")
        assert not binding.is_frozen

    def test_reload_name_replaces_binding(self, evaluator, tmp_path):
        (tmp_path / "a.txt").write_text("v")
        table = BindingTable()
        table.load(FileSource("a.txt"), "x")
        table.freeze("x", evaluator)

        table.load(LiteralSource("new"), "x")

        assert len(table) == 1
        assert table.get("x").source == LiteralSource("new")
        assert not table.get("x").is_frozen

    def test_names_are_case_sensitive(self):
        table = BindingTable()
        table.load(LiteralSource("lower"), "name")
        table.load(LiteralSource("upper"), "Name")

        assert table.names() == ["Name", "name"]

    def test_derived_name_from_file(self):
        table = BindingTable()
        binding = table.load(FileSource("src/main.rs"))
        assert binding.name == "main"

    def test_literal_requires_name(self):
        with pytest.raises(ValueError):
            BindingTable().load(LiteralSource("text"))

    @pytest.mark.parametrize("name", ["=x", "@x", "!x", "has space", "a}}b", "-lead"])
    def test_invalid_names_rejected(self, name):
        with pytest.raises(ValueError):
            BindingTable().load(LiteralSource("v"), name)

    def test_empty_name_means_derive(self):
        assert BindingTable().load(FileSource("a.txt"), "").name == "a"


class TestDeriveName:

    @pytest.mark.parametrize("source, expected", [
        (FileSource("src/main.rs"), "main"),
        (FileSource("README"), "README"),
        (FileSource("docs/my notes.v2.md"), "my_notes_v2"),
        (CommandSource("git diff --stat"), "git"),
        (CommandSource("/usr/bin/env python3 x.py"), "env"),
        (CommandSource("'quoted cmd' arg"), "quoted_cmd"),
    ])
    def test_derivation(self, source, expected):
        assert derive_name(source) == expected

    def test_empty_command_cannot_derive(self):
        with pytest.raises(ValueError):
            derive_name(CommandSource(""))

    def test_validate_name_accepts_common_names(self):
        for name in ("code", "git_diff", "v2", "file.name", "x-y", "_private"):
            assert validate_name(name) == name


class TestTableOperations:

    def test_get_unknown_raises(self):
        with pytest.raises(UnknownVariableError) as exc_info:
            BindingTable().get("nope")
        assert "nope" in str(exc_info.value)
        assert isinstance(exc_info.value, KeyError)

    def test_delete(self):
        table = BindingTable()
        table.load(LiteralSource("v"), "x")

        removed = table.delete("x")

        assert removed.name == "x"
        assert "x" not in table
        with pytest.raises(UnknownVariableError):
            table.delete("x")

    def test_freeze_and_unfreeze_by_name(self, evaluator, tmp_path):
        (tmp_path / "a.txt").write_text("v")
        table = BindingTable()
        table.load(FileSource("a.txt"), "x")

        table.freeze("x", evaluator)
        assert table.get("x").is_frozen

        table.unfreeze("x")
        assert not table.get("x").is_frozen

    def test_reload_all_only_touches_frozen(self, evaluator, tmp_path):
        (tmp_path / "a.txt").write_text("a1")
        (tmp_path / "b.txt").write_text("b1")
        table = BindingTable()
        table.load(FileSource("a.txt"), "a")
        table.load(FileSource("b.txt"), "b")
        table.freeze("a", evaluator)

        (tmp_path / "a.txt").write_text("a2")
        reloaded = table.reload(evaluator=evaluator)

        assert reloaded == ["a"]
        assert table.get("a").frozen_value == "a2"
        assert not table.get("b").is_frozen

    def test_reload_single_live_variable(self, evaluator):
        table = BindingTable()
        table.load(LiteralSource("v"), "x")
        assert table.reload("x", evaluator) == []

    def test_describe(self, evaluator, tmp_path):
        (tmp_path / "a.txt").write_text("v")
        table = BindingTable()
        table.load(FileSource("a.txt"), "file")
        table.load(CommandSource("echo " + "x" * 40), "cmd")
        table.load(LiteralSource("hello"), "lit")
        table.freeze("file", evaluator)

        rows = table.describe()

        assert rows == [
            ("cmd", "[live]", "!", ("echo " + "x" * 40)[:30] + "..."),
            ("file", "[frozen]", "@", "a.txt"),
            ("lit", "[static]", "=", "hello"),
        ]


class TestDeserialization:

    def test_legacy_shape_migrates_to_file_bindings(self):
        table = BindingTable.from_dict({"src/main.rs": "code"})

        binding = table.get("code")
        assert binding.source == FileSource("src/main.rs")
        assert binding.frozen_value is None
        assert not binding.is_frozen

    def test_legacy_shape_multiple_entries(self):
        table = BindingTable.from_dict({"a.txt": "a", "dir/b.md": "b"})
        assert table.names() == ["a", "b"]
        assert table.get("b").source == FileSource("dir/b.md")

    def test_current_shape(self):
        data = {
            "code": {"name": "code", "source": "@src/main.rs", "frozen": False, "frozen_value": None},
            "diff": {"name": "diff", "source": "!git diff", "frozen": True, "frozen_value": "patch"},
        }
        table = BindingTable.from_dict(data)

        assert table.get("code").source == FileSource("src/main.rs")
        assert table.get("diff").frozen_value == "patch"

    def test_round_trip(self):
        table = BindingTable()
        table.load(FileSource("a.txt"), "a")
        table.load(CommandSource("make", 90), "build")
        table.put(Binding("lit", LiteralSource("v"), frozen_value="v"))

        assert BindingTable.from_dict(table.to_dict()) == table

    def test_empty_mapping(self):
        assert len(BindingTable.from_dict({})) == 0

    def test_key_wins_over_inner_name(self):
        table = BindingTable.from_dict({"outer": {"name": "inner", "source": "=v"}})
        assert table.names() == ["outer"]
        assert table.get("outer").name == "outer"

    def test_mixed_shapes_rejected(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            BindingTable.from_dict({"a.txt": "a", "b": {"source": "=v"}})
        assert exc_info.value.exit_code == 2

    def test_invalid_entries_reported_together(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            BindingTable.from_dict({
                "one": {"source": "missing prefix"},
                "two": {"frozen": True},
                "three": 42,
            })
        paths = sorted(error.path for error in exc_info.value.errors)
        assert paths == ["variables.one", "variables.three", "variables.two"]

    def test_non_mapping_rejected(self):
        with pytest.raises(ConfigValidationError):
            BindingTable.from_dict(["a", "b"])

    def test_wrong_field_types_reported_as_validation_errors(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            BindingTable.from_dict({
                "src": {"source": 5},
                "slow": {"source": "!make", "timeout_secs": [1]},
                "snap": {"source": "@a.txt", "frozen": True, "frozen_value": 42},
            })

        errors = {error.path: error.message for error in exc_info.value.errors}
        assert sorted(errors) == ["variables.slow", "variables.snap", "variables.src"]
        assert "'source' must be a string" in errors["variables.src"]
        assert "'timeout_secs' must be a positive integer" in errors["variables.slow"]
        assert "'frozen_value' must be a string or null" in errors["variables.snap"]
