"""
Variable substitution module.
Replaces {{name}} and inline {{=|@|!...}} tokens in templates.
"""

from .substitution import INLINE, NAMED, SubstitutionEngine, SubstitutionResult, TokenFailure

__all__ = ['INLINE', 'NAMED', 'SubstitutionEngine', 'SubstitutionResult', 'TokenFailure']
