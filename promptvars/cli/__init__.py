"""Command-line interface for promptvars."""
