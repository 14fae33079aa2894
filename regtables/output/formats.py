"""Table formats per backend and named themes.

A table format is anything ``tabulate`` accepts as ``tablefmt``: a format
name such as ``"simple_outline"`` or a :class:`tabulate.TableFormat` object.
:func:`normalize_table_format` turns the ``table_format`` option into a full
``{Backend: format}`` map; :func:`get_theme` looks up a theme, which bundles
such a map with optional summary option overrides.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tabulate import DataRow, Line, TableFormat, tabulate_formats

from regtables.output.config import Backend

__all__ = [
    "ALIASES",
    "THEMES",
    "Theme",
    "default_table_formats",
    "format_family",
    "get_theme",
    "list_themes",
    "normalize_table_format",
]

_LOGGER = logging.getLogger(__name__)

ALIASES: dict[str, str] = {
    "booktabs": "latex_booktabs",
    "tex": "latex_booktabs",
    "unicode": "simple_outline",
    "box": "simple_outline",
    "rounded": "rounded_outline",
    "double": "double_outline",
    "heavy": "heavy_outline",
    "ascii": "outline",
    "markdown": "pipe",
    "md": "pipe",
    "gfm": "github",
    "matrix": "plain",
    "html": "unsafehtml",
}

_LATEX_FORMATS = frozenset({"latex", "latex_raw", "latex_booktabs", "latex_longtable"})
_HTML_FORMATS = frozenset({"html", "unsafehtml"})
_MARKDOWN_FORMATS = frozenset({"pipe", "github"})


def format_family(fmt: Any) -> set[Backend]:
    """Backends a format is meaningful for."""
    if isinstance(fmt, TableFormat):
        return {Backend.TEXT, Backend.ASCII}
    if fmt in _LATEX_FORMATS:
        return {Backend.LATEX}
    if fmt in _HTML_FORMATS:
        return {Backend.HTML}
    if fmt in _MARKDOWN_FORMATS:
        return {Backend.MARKDOWN}
    return {Backend.TEXT, Backend.ASCII}


def _resolve_name(name: str) -> str:
    key = str(name).strip().lower()
    key = ALIASES.get(key, key)
    if key not in tabulate_formats:
        raise ValueError(
            f"Unknown table format {name!r}; use a tabulate format name, one of the aliases "
            f"{sorted(ALIASES)}, or a tabulate.TableFormat.",
        )
    return key


# ---------------------------------------------------------------------
# Custom tabulate formats used by the themes
# ---------------------------------------------------------------------

_ASCII_RULE = Line("+", "-", "+", "+")
_ASCII_ROW = DataRow("|", "|", "|")

MINIMAL_TEXT = TableFormat(
    lineabove=None,
    linebelowheader=Line("├", "─", "┼", "┤"),
    linebetweenrows=None,
    linebelow=None,
    headerrow=DataRow("│", "│", "│"),
    datarow=DataRow("│", "│", "│"),
    padding=1,
    with_header_hide=None,
)

MINIMAL_ASCII = TableFormat(
    lineabove=None,
    linebelowheader=_ASCII_RULE,
    linebetweenrows=None,
    linebelow=None,
    headerrow=_ASCII_ROW,
    datarow=_ASCII_ROW,
    padding=1,
    with_header_hide=None,
)

# outer frame, no rules between data columns
COMPACT_ASCII = TableFormat(
    lineabove=Line("+", "-", "-", "+"),
    linebelowheader=Line("+", "-", "-", "+"),
    linebetweenrows=None,
    linebelow=Line("+", "-", "-", "+"),
    headerrow=DataRow("|", " ", "|"),
    datarow=DataRow("|", " ", "|"),
    padding=1,
    with_header_hide=None,
)

UNICODE_ASCII = TableFormat(
    lineabove=Line("+", "=", "+", "+"),
    linebelowheader=Line("+", "=", "+", "+"),
    linebetweenrows=None,
    linebelow=Line("+", "=", "+", "+"),
    headerrow=_ASCII_ROW,
    datarow=_ASCII_ROW,
    padding=1,
    with_header_hide=None,
)


_DEFAULT_FORMATS: dict[Backend, Any] = {
    Backend.TEXT: "simple_outline",
    Backend.ASCII: "outline",
    Backend.MARKDOWN: "pipe",
    Backend.HTML: "unsafehtml",
    Backend.LATEX: "latex_booktabs",
}


def default_table_formats() -> dict[Backend, Any]:
    return dict(_DEFAULT_FORMATS)


def _coerce_value(value: Any, backend: Backend) -> Any:
    if value is None or (isinstance(value, str) and value.strip().lower() == "default"):
        return _DEFAULT_FORMATS[backend]
    if isinstance(value, TableFormat):
        return value
    if isinstance(value, str):
        return _resolve_name(value)
    raise TypeError(
        f"table_format entries must be format names, tabulate.TableFormat objects or 'default'; "
        f"got {type(value).__name__}.",
    )


def normalize_table_format(spec: Any) -> dict[Backend, Any]:
    """Normalize the ``table_format`` option into a ``{Backend: format}`` map.

    - ``None`` gives the default format of every backend.
    - A format name or alias is used for every backend it is meaningful for
      (``"latex_booktabs"`` only affects LaTeX, ``"grid"`` text and ASCII);
      the other backends keep their defaults.
    - A ``tabulate.TableFormat`` object is used for the text backends.
    - A mapping sets formats per backend; unknown backend keys raise
      ``ValueError``.
    """
    formats = default_table_formats()
    if spec is None:
        return formats
    if isinstance(spec, Mapping):
        for key, value in spec.items():
            backend = Backend.coerce(key)
            formats[backend] = _coerce_value(value, backend)
        return formats
    if isinstance(spec, str) and spec.strip().lower() == "default":
        return formats
    fmt = _coerce_value(spec, Backend.TEXT)
    for backend in format_family(fmt):
        formats[backend] = fmt
    return formats


# ---------------------------------------------------------------------
# Themes
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class Theme:
    """Named bundle of per-backend formats and summary option overrides."""

    name: str
    description: str
    formats: Mapping[Backend, Any]
    options: Mapping[str, Any] = field(default_factory=dict)

    def table_formats(self) -> dict[Backend, Any]:
        return normalize_table_format(dict(self.formats))


def _theme(name: str, description: str, **formats: Any) -> Theme:
    full = default_table_formats()
    full.update({Backend.coerce(k): v for k, v in formats.items()})
    return Theme(name, description, full)


ACADEMIC = _theme("academic", "Professional academic publication style")
MODERN = _theme("modern", "Modern style with unicode box-drawing", text="rounded_outline")
MINIMAL = _theme("minimal", "Minimalist style with clean lines", text=MINIMAL_TEXT, ascii=MINIMAL_ASCII)
COMPACT = _theme("compact", "Space-efficient style for dense tables", text="plain", ascii=COMPACT_ASCII)
DEFAULT = Theme("default", "Default regtables theme", ACADEMIC.formats)
UNICODE = _theme("unicode", "Clean unicode-based terminal tables", text="double_outline", ascii=UNICODE_ASCII)

THEMES: dict[str, Theme] = {t.name: t for t in (ACADEMIC, MODERN, MINIMAL, COMPACT, DEFAULT, UNICODE)}

_THEME_OPTIONS = frozenset({
    "fe_symbol",
    "fe_empty",
    "fe_suffix",
    "add_vcov_stat",
    "spacer_before_vcov",
    "spacer_after_coef",
    "spacer_after_fe",
})


def get_theme(theme: str | Theme | Mapping[str, Any]) -> Theme:
    """Look up a theme by name, or build one from a mapping.

    A mapping holds backend keys with formats and optionally an ``"options"``
    entry with summary option overrides (``fe_symbol``, ``fe_empty``,
    ``fe_suffix``, ``add_vcov_stat``, ``spacer_before_vcov``,
    ``spacer_after_coef``, ``spacer_after_fe``).
    """
    if isinstance(theme, Theme):
        return theme
    if isinstance(theme, str):
        key = theme.strip().lower()
        if key not in THEMES:
            available = ", ".join(THEMES)
            raise ValueError(f"Unknown theme {theme!r}. Available themes: {available}.")
        return THEMES[key]
    if isinstance(theme, Mapping):
        spec = dict(theme)
        options = dict(spec.pop("options", None) or {})
        unknown = sorted(set(options) - _THEME_OPTIONS)
        if unknown:
            raise ValueError(f"Unsupported theme options {unknown}; allowed: {sorted(_THEME_OPTIONS)}.")
        formats = normalize_table_format(spec)
        return Theme("custom", "User-defined theme", formats, options)
    raise TypeError(f"theme must be a name, a Theme or a mapping, got {type(theme).__name__}.")


def list_themes() -> dict[str, str]:
    """Available theme names with one-line descriptions."""
    return {name: t.description for name, t in THEMES.items()}
