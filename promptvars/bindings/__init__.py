"""
Bindings module.
Named variables, their freeze state and the per-session binding table.
"""

from .binding import Binding, BindingState
from .store import BindingStore
from .table import BindingTable, derive_name, validate_name

__all__ = [
    "Binding",
    "BindingState",
    "BindingStore",
    "BindingTable",
    "derive_name",
    "validate_name",
]
