"""
Tests for source descriptor parsing and rendering.
Covers the =literal, @file and !command prefixes and the parse error text.
"""

import pytest

from promptvars.exceptions import ParseError
from promptvars.sources import (
    DEFAULT_TIMEOUT_SECS,
    CommandSource,
    FileSource,
    LiteralSource,
    SourceKind,
    command_with_timeout,
    parse,
)


class TestParse:
    """Prefix dispatch in parse()."""

    def test_literal(self):
        assert parse("=hello world") == LiteralSource("hello world")

    def test_empty_literal_allowed(self):
        assert parse("=") == LiteralSource("")

    def test_file(self):
        source = parse("@src/main.rs")
        assert source == FileSource("src/main.rs")
        assert source.kind == SourceKind.FILE

    def test_file_not_checked_at_parse_time(self, tmp_path):
        missing = tmp_path / "does_not_exist.txt"
        assert parse(f"@{missing}") == FileSource(str(missing))

    def test_command_gets_default_timeout(self):
        source = parse("!echo hello")
        assert source == CommandSource("echo hello", 30)
        assert source.timeout_secs == DEFAULT_TIMEOUT_SECS == 30

    def test_only_first_character_is_the_prefix(self):
        assert parse("==x") == LiteralSource("=x")
        assert parse("!!") == CommandSource("!")

    @pytest.mark.parametrize("raw", ["no_prefix", "", " =leading space", "#comment"])
    def test_invalid_prefix_raises(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    def test_parse_error_lists_every_prefix(self):
        with pytest.raises(ParseError) as exc_info:
            parse("no_prefix")

        message = str(exc_info.value)
        assert message.startswith("Missing source prefix")
        assert "=text" in message and "literal value" in message
        assert "@path" in message and "file contents" in message
        assert "!cmd" in message and "command output" in message

    def test_parse_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse("x")


class TestRender:
    """render() and the display helpers."""

    @pytest.mark.parametrize("source", [
        LiteralSource("some text"),
        LiteralSource(""),
        FileSource("notes/today.md"),
        FileSource("./relative/../path.txt"),
    ])
    def test_literal_and_file_round_trip(self, source):
        assert parse(source.render()) == source

    def test_command_round_trips_text(self):
        source = command_with_timeout("git diff --stat", 90)
        reparsed = parse(source.render())
        assert reparsed.command == "git diff --stat"
        assert source.render() == "!git diff --stat"

    def test_type_indicator(self):
        assert LiteralSource("x").type_indicator == "="
        assert FileSource("x").type_indicator == "@"
        assert CommandSource("x").type_indicator == "!"

    def test_labels_truncate_long_text(self):
        assert LiteralSource("a" * 25).label() == "a" * 20 + "..."
        assert LiteralSource("short").label() == "short"
        assert CommandSource("b" * 31).label() == "b" * 30 + "..."
        assert CommandSource("ls -la").label() == "ls -la"
        assert FileSource("x" * 50).label() == "x" * 50

    def test_variants_never_compare_equal(self):
        assert LiteralSource("x") != FileSource("x")
        assert FileSource("x") != CommandSource("x")


class TestCommandWithTimeout:

    def test_explicit_timeout(self):
        source = command_with_timeout("make test", 120)
        assert source == CommandSource("make test", 120)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            command_with_timeout("make", 0)
