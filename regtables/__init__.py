"""regtables: side-by-side summary tables for fitted regression models.

This package aligns the coefficients and statistics of several models onto
shared rows and renders them as text, Markdown, HTML or LaTeX tables.
"""
from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    "UNSUPPORTED",
    "Backend",
    "DataRow",
    "End",
    "EstimationResult",
    "Last",
    "ModelAdapter",
    "Span",
    "StatsmodelsAdapter",
    "SummaryConfig",
    "SummaryTable",
    "VcovOverride",
    "VcovSpec",
    "as_adapter",
    "get_theme",
    "list_themes",
    "materialize_vcov",
    "modelsummary",
    "register_adapter",
    "register_statistic",
    "with_vcov",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "UNSUPPORTED": ("regtables.models.base", "UNSUPPORTED"),
    "EstimationResult": ("regtables.models.base", "EstimationResult"),
    "ModelAdapter": ("regtables.models.base", "ModelAdapter"),
    "StatsmodelsAdapter": ("regtables.models.statsmodels", "StatsmodelsAdapter"),
    "as_adapter": ("regtables.models.statsmodels", "as_adapter"),
    "register_adapter": ("regtables.models.statsmodels", "register_adapter"),
    "VcovOverride": ("regtables.models.vcov", "VcovOverride"),
    "VcovSpec": ("regtables.models.vcov", "VcovSpec"),
    "materialize_vcov": ("regtables.models.vcov", "materialize_vcov"),
    "with_vcov": ("regtables.models.vcov", "with_vcov"),
    "Last": ("regtables.core.selectors", "Last"),
    "End": ("regtables.core.selectors", "End"),
    "register_statistic": ("regtables.core.statistics", "register_statistic"),
    "Backend": ("regtables.output.config", "Backend"),
    "SummaryConfig": ("regtables.output.config", "SummaryConfig"),
    "get_theme": ("regtables.output.formats", "get_theme"),
    "list_themes": ("regtables.output.formats", "list_themes"),
    "DataRow": ("regtables.output.sections", "DataRow"),
    "Span": ("regtables.output.sections", "Span"),
    "SummaryTable": ("regtables.output.table", "SummaryTable"),
    "modelsummary": ("regtables.output.summary", "modelsummary"),
}


def __getattr__(name: str) -> Any:
    """Lazily import public classes and functions on first access."""
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module 'regtables' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Ensure dir() exposes lazily imported names."""
    return sorted(set(globals()) | set(__all__))
