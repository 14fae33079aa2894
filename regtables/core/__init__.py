# regtables/core/__init__.py
"""Core table-assembly modules for regtables."""
from . import align, axis, errors, names, selectors, statistics

__all__ = ["align", "axis", "errors", "names", "selectors", "statistics"]
