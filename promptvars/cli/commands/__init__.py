"""CLI command handlers."""

from .render import render_template
from .variables import (
    delete_variable,
    freeze_variable,
    list_variables,
    load_variable,
    reload_variables,
    show_variable,
    unfreeze_variable,
)

__all__ = [
    'delete_variable',
    'freeze_variable',
    'list_variables',
    'load_variable',
    'reload_variables',
    'render_template',
    'show_variable',
    'unfreeze_variable',
]
