"""Template variables backed by literals, files and shell commands."""

__version__ = "0.1.0"
