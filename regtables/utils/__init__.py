# regtables/utils/__init__.py
"""Utility functions module."""
from .formula import Formula, FormulaParser, parse_formula
from .helpers import escape_html, escape_latex, resolve_transform

__all__ = [
    "Formula",
    "FormulaParser",
    "escape_html",
    "escape_latex",
    "parse_formula",
    "resolve_transform",
]
