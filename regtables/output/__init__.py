# regtables/output/__init__.py
"""Summary table assembly and rendering."""
from .config import Backend, SummaryConfig, backend_from_path
from .formats import get_theme, list_themes, normalize_table_format
from .sections import DataRow, Section, SectionAssembler, Span
from .summary import modelsummary
from .table import SummaryTable

__all__ = [
    "Backend",
    "DataRow",
    "Section",
    "SectionAssembler",
    "Span",
    "SummaryConfig",
    "SummaryTable",
    "backend_from_path",
    "get_theme",
    "list_themes",
    "modelsummary",
    "normalize_table_format",
]
